"""
Client model for salon customers.
"""

from sqlalchemy import Column, String, Text, Boolean, Index
from sqlalchemy.orm import relationship

from .base import BaseModel


class Client(BaseModel):
    """
    A salon client.

    Attributes:
        owner_id: Account that owns the record
        first_name: Given name (required)
        last_name: Family name (required)
        phone: Optional phone number
        note: Free-text note
        allergies: Known allergies (e.g., to PPD)
        preferences: Styling preferences
        is_active: Soft delete flag

    Relationships:
        visits: Visits recorded for this client
        groups: Client groups the client is filed under
    """

    __tablename__ = "clients"

    owner_id = Column(String(128), nullable=False, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    note = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    preferences = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    visits = relationship("Visit", back_populates="client", lazy="select")
    groups = relationship(
        "ClientGroup",
        secondary="client_group_members",
        back_populates="clients",
        order_by="ClientGroup.name",
        lazy="selectin",
    )

    __table_args__ = (Index("idx_client_owner_name", "owner_id", "last_name", "first_name"),)

    @property
    def full_name(self) -> str:
        """First and last name joined with a space."""
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        """String representation of client."""
        return f"Client(id={self.id}, name='{self.full_name}')"
