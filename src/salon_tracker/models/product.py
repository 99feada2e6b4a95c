"""
Product model for retail products sold during a visit.
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, Index, CheckConstraint

from .base import BaseModel


class Product(BaseModel):
    """
    Retail product (shampoo, mask, styling product).

    Attributes:
        owner_id: Account that owns the catalog entry
        name: Display name
        price: Default unit price
        is_active: Soft delete flag
        sort_order: Display ordering
    """

    __tablename__ = "products"

    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_product_owner_name", "owner_id", "name"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )
