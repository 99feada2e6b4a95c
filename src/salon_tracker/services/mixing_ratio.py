"""
Mixing ratio resolution for colouring materials.

A mixing ratio is a (material parts : oxidant parts) pair. A material has one
default ratio and any number of alternate ratios; a material line in a bowl
carries the ratio chosen for it.
"""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from salon_tracker.services.catalog_lookup import CatalogMaterial


@dataclass(frozen=True)
class MixingRatio:
    """Material:oxidant ratio, e.g. ``MixingRatio(1, 1.5)`` for 1:1.5.

    Both parts must be positive finite numbers; they are stored as floats so
    1:2 and 1.0:2.0 compare equal.

    Raises:
        ValueError: If either part is zero, negative, NaN or infinite
    """

    material_parts: float
    oxidant_parts: float

    def __post_init__(self) -> None:
        for field_name in ("material_parts", "oxidant_parts"):
            value = getattr(self, field_name)
            if isinstance(value, bool):
                raise ValueError(f"{field_name} must be a number, got {value!r}")
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{field_name} must be a number, got {value!r}")
            if not math.isfinite(number) or number <= 0:
                raise ValueError(f"{field_name} must be greater than zero, got {value!r}")
            object.__setattr__(self, field_name, number)

    def oxidant_for(self, material_grams: float) -> float:
        """Oxidant grams needed for ``material_grams`` of material (unrounded)."""
        return material_grams * self.oxidant_parts / self.material_parts

    def __str__(self) -> str:
        return f"{self.material_parts:g}:{self.oxidant_parts:g}"


def parse_ratio(text: str) -> MixingRatio:
    """
    Parse the ``material:oxidant`` display form.

    Args:
        text: Ratio such as "1:2" or "1:1,5" (decimal comma accepted)

    Returns:
        MixingRatio

    Raises:
        ValueError: If the text is not two positive numbers separated by ':'

    Examples:
        >>> parse_ratio("1:2")
        MixingRatio(material_parts=1.0, oxidant_parts=2.0)
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise ValueError(f"Mixing ratio must look like '1:2', got {text!r}")
    material, oxidant = (part.strip().replace(",", ".") for part in parts)
    return MixingRatio(float(material), float(oxidant))


def resolve_ratio(
    material: "CatalogMaterial", requested: Optional[MixingRatio] = None
) -> MixingRatio:
    """
    Resolve the ratio a material line is mixed at.

    Transaction boundary: Pure computation (no database access).

    Args:
        material: Catalog material (active, known to the caller)
        requested: Ratio picked for the line, if any

    Returns:
        ``requested`` when it is the material's default or one of its
        alternate ratios, otherwise the material's default ratio.
    """
    if requested is not None and requested in material.ratios:
        return requested
    return material.default_ratio
