"""
Service template model.

A service template is a quick-add entry for a named treatment together with
the number of mixing bowls it usually needs. A template with zero bowls is a
service without material (cut, blow-dry) and produces no recipe.
"""

from sqlalchemy import Column, String, Integer, Boolean, Index, CheckConstraint

from .base import BaseModel


class ServiceTemplate(BaseModel):
    """
    Named treatment offered by the salon.

    Attributes:
        owner_id: Account that owns the catalog entry
        name: Treatment name (e.g., "Root colour", "Cut")
        bowl_count: Number of empty bowls to start with (0 = no material)
        is_active: Soft delete flag
        sort_order: Display ordering
    """

    __tablename__ = "service_templates"

    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    bowl_count = Column(Integer, nullable=False, default=1)

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("idx_service_template_owner", "owner_id", "sort_order"),
        CheckConstraint("bowl_count >= 0", name="ck_service_template_bowl_count"),
    )

    @property
    def requires_materials(self) -> bool:
        """True when the treatment is mixed in at least one bowl."""
        return (self.bowl_count or 0) > 0
