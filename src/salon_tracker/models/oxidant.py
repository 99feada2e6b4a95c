"""
Oxidant model for developers/peroxides mixed with colouring materials.
"""

from sqlalchemy import Column, String, Text, Integer, Boolean, Index

from .base import BaseModel


class Oxidant(BaseModel):
    """
    Catalog oxidant (developer), e.g. "6%" or "9% cream developer".

    Attributes:
        owner_id: Account that owns the catalog entry
        name: Display name
        description: Optional description
        is_active: Soft delete flag
        sort_order: Display ordering
    """

    __tablename__ = "oxidants"

    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("idx_oxidant_owner_name", "owner_id", "name"),)
