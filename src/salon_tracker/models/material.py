"""
Colouring material models.

This module contains:
- Material: A colouring product (tint, lightener) with its default mixing ratio
- MaterialRatio: Alternate named mixing ratios offered for a material
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Material(BaseModel):
    """
    Catalog material mixed with an oxidant in a bowl.

    The mixing ratio is stored as (ratio_material : ratio_oxidant), e.g. 1:1.5
    means 40 g of material needs 60 g of oxidant.

    Attributes:
        owner_id: Account that owns the catalog entry
        name: Display name (e.g., "Majirel")
        input_mode: 'shade' (free text) or 'number' (numeric shade code)
        ratio_material: Material parts of the default ratio (> 0)
        ratio_oxidant: Oxidant parts of the default ratio (> 0)
        is_active: Soft delete flag
        sort_order: Display ordering

    Relationships:
        alternate_ratios: Other ratios the material may be mixed at
    """

    __tablename__ = "materials"

    owner_id = Column(String(128), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    input_mode = Column(String(10), nullable=False, default="shade")

    ratio_material = Column(Float, nullable=False, default=1.0)
    ratio_oxidant = Column(Float, nullable=False, default=1.0)

    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    alternate_ratios = relationship(
        "MaterialRatio",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="MaterialRatio.sort_order",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_material_owner_name", "owner_id", "name"),
        CheckConstraint("ratio_material > 0", name="ck_material_ratio_material_positive"),
        CheckConstraint("ratio_oxidant > 0", name="ck_material_ratio_oxidant_positive"),
        CheckConstraint("input_mode IN ('shade', 'number')", name="ck_material_input_mode"),
    )

    def __repr__(self) -> str:
        """String representation of material."""
        return (
            f"Material(id={self.id}, name='{self.name}', "
            f"ratio={self.ratio_material:g}:{self.ratio_oxidant:g})"
        )


class MaterialRatio(BaseModel):
    """
    Alternate mixing ratio for a material (e.g., 1:2 for high-lift blondes).

    Attributes:
        material_id: Foreign key to Material
        ratio_material: Material parts (> 0)
        ratio_oxidant: Oxidant parts (> 0)
        sort_order: Display ordering among the material's ratios
    """

    __tablename__ = "material_ratios"

    material_id = Column(
        Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ratio_material = Column(Float, nullable=False)
    ratio_oxidant = Column(Float, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    material = relationship("Material", back_populates="alternate_ratios")

    __table_args__ = (
        CheckConstraint("ratio_material > 0", name="ck_material_ratio_alt_material_positive"),
        CheckConstraint("ratio_oxidant > 0", name="ck_material_ratio_alt_oxidant_positive"),
    )

    def __repr__(self) -> str:
        """String representation of material ratio."""
        return (
            f"MaterialRatio(material_id={self.material_id}, "
            f"{self.ratio_material:g}:{self.ratio_oxidant:g})"
        )
