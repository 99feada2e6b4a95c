"""
Client group model - coloured tags clients can be filed under (e.g., "VIP", "Blonde").

A client can belong to any number of groups; membership rows live in the
``client_group_members`` association table and go away with either side.
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Index, Table
from sqlalchemy.orm import relationship

from salon_tracker.utils.constants import DEFAULT_GROUP_COLOUR

from .base import Base, BaseModel

client_group_members = Table(
    "client_group_members",
    Base.metadata,
    Column("client_id", Integer, ForeignKey("clients.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "group_id", Integer, ForeignKey("client_groups.id", ondelete="CASCADE"), primary_key=True
    ),
)


class ClientGroup(BaseModel):
    """
    Named, coloured group of clients.

    Attributes:
        owner_id: Account that owns the group
        name: Display name
        colour: Tag colour as ``#rrggbb``

    Relationships:
        clients: Clients filed under the group
    """

    __tablename__ = "client_groups"

    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    colour = Column(String(7), nullable=False, default=DEFAULT_GROUP_COLOUR)

    clients = relationship(
        "Client", secondary=client_group_members, back_populates="groups", lazy="select"
    )

    __table_args__ = (Index("idx_client_group_owner_name", "owner_id", "name"),)
