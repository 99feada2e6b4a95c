"""
Product sale models - retail products sold without a visit.

This module contains:
- ProductSale: One sale with its date, payment and total
- ProductSaleLine: One product of the sale, priced at the time of the sale

A sale may name a client or be anonymous. Like visits, it copies the client
and product names so the record reads the same after the catalog changes.
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    Text,
    Date,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class ProductSale(BaseModel):
    """
    Standalone product sale.

    Attributes:
        owner_id: Account that owns the record
        client_id: Foreign key to Client (null for an anonymous sale or once
            the client is deleted)
        client_name: Client name at the time of the sale
        sale_date: Date of the sale
        note: Free-text note
        payment_method: 'cash', 'qr' or None
        total_amount: Sum of the line totals
    """

    __tablename__ = "product_sales"

    owner_id = Column(String(128), nullable=False, index=True)
    client_id = Column(
        Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True
    )
    client_name = Column(String(200), nullable=True)

    sale_date = Column(Date, nullable=False, index=True)
    note = Column(Text, nullable=True)
    payment_method = Column(String(10), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)

    client = relationship("Client")
    lines = relationship(
        "ProductSaleLine",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="ProductSaleLine.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_product_sale_owner_date", "owner_id", "sale_date"),
        CheckConstraint(
            "payment_method IS NULL OR payment_method IN ('cash', 'qr')",
            name="ck_product_sale_payment_method",
        ),
        CheckConstraint("total_amount >= 0", name="ck_product_sale_total"),
    )

    def __repr__(self) -> str:
        return f"ProductSale(uuid={self.uuid!r}, date={self.sale_date})"


class ProductSaleLine(BaseModel):
    """
    One product of a sale.

    Attributes:
        sale_id: Foreign key to ProductSale
        position: 1-based order within the sale
        product_id: Foreign key to Product (null once the product is deleted)
        product_name: Product name at the time of the sale
        quantity: Number of pieces (>= 1)
        unit_price: Price per piece
    """

    __tablename__ = "product_sale_lines"

    sale_id = Column(
        Integer, ForeignKey("product_sales.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)

    sale = relationship("ProductSale", back_populates="lines")
    product = relationship("Product")

    __table_args__ = (
        Index("idx_product_sale_line_sale", "sale_id", "position"),
        CheckConstraint("quantity >= 1", name="ck_product_sale_line_quantity"),
        CheckConstraint("unit_price >= 0", name="ck_product_sale_line_unit_price"),
    )

    @property
    def line_total(self):
        """quantity * unit_price."""
        return self.unit_price * self.quantity
