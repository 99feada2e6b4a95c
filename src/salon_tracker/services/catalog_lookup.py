"""
Read-only catalog lookup tables for an editing session.

The recipe engine never reads the database. ``catalog_service.load_catalog``
builds a ``CatalogLookup`` once per editing session and the caller passes it to
every draft, aggregation and validation function.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from salon_tracker.models.enums import InputMode
from salon_tracker.services.dto import StoredId
from salon_tracker.services.mixing_ratio import MixingRatio


@dataclass(frozen=True)
class CatalogMaterial:
    """Material as seen by the recipe engine."""

    id: StoredId
    name: str
    default_ratio: MixingRatio
    alternate_ratios: Tuple[MixingRatio, ...] = ()
    input_mode: InputMode = InputMode.SHADE
    is_active: bool = True
    sort_order: int = 0

    @property
    def ratios(self) -> Tuple[MixingRatio, ...]:
        """Default ratio followed by the alternates."""
        return (self.default_ratio,) + tuple(self.alternate_ratios)

    @classmethod
    def from_model(cls, material) -> "CatalogMaterial":
        """Build from a ``Material`` row (alternate ratios must be loaded)."""
        return cls(
            id=StoredId(material.uuid),
            name=material.name,
            default_ratio=MixingRatio(material.ratio_material, material.ratio_oxidant),
            alternate_ratios=tuple(
                MixingRatio(r.ratio_material, r.ratio_oxidant) for r in material.alternate_ratios
            ),
            input_mode=InputMode(material.input_mode),
            is_active=bool(material.is_active),
            sort_order=material.sort_order or 0,
        )


@dataclass(frozen=True)
class CatalogOxidant:
    id: StoredId
    name: str
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0

    @classmethod
    def from_model(cls, oxidant) -> "CatalogOxidant":
        return cls(
            id=StoredId(oxidant.uuid),
            name=oxidant.name,
            description=oxidant.description,
            is_active=bool(oxidant.is_active),
            sort_order=oxidant.sort_order or 0,
        )


@dataclass(frozen=True)
class CatalogProduct:
    id: StoredId
    name: str
    price: Decimal
    is_active: bool = True
    sort_order: int = 0

    @classmethod
    def from_model(cls, product) -> "CatalogProduct":
        return cls(
            id=StoredId(product.uuid),
            name=product.name,
            price=Decimal(str(product.price)),
            is_active=bool(product.is_active),
            sort_order=product.sort_order or 0,
        )


@dataclass(frozen=True)
class CatalogServiceTemplate:
    id: StoredId
    name: str
    bowl_count: int = 1
    is_active: bool = True
    sort_order: int = 0

    @property
    def requires_materials(self) -> bool:
        return self.bowl_count > 0

    @classmethod
    def from_model(cls, template) -> "CatalogServiceTemplate":
        return cls(
            id=StoredId(template.uuid),
            name=template.name,
            bowl_count=template.bowl_count,
            is_active=bool(template.is_active),
            sort_order=template.sort_order or 0,
        )


def _freeze(records: Iterable) -> Mapping:
    return MappingProxyType({record.id: record for record in records})


def _sorted_active(records: Iterable) -> List:
    return sorted(
        (record for record in records if record.is_active),
        key=lambda record: (record.sort_order, record.name.lower()),
    )


@dataclass(frozen=True, eq=False)
class CatalogLookup:
    """
    Read-only catalog tables keyed by stored id.

    The mappings hold inactive records too (stored visits may still point at
    them), but the lookup methods only resolve active ones: an inactive or
    unknown id is treated as unresolvable.
    """

    materials: Mapping[StoredId, CatalogMaterial] = field(default_factory=dict)
    oxidants: Mapping[StoredId, CatalogOxidant] = field(default_factory=dict)
    products: Mapping[StoredId, CatalogProduct] = field(default_factory=dict)
    service_templates: Mapping[StoredId, CatalogServiceTemplate] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("materials", "oxidants", "products", "service_templates"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def build(
        cls,
        materials: Iterable[CatalogMaterial] = (),
        oxidants: Iterable[CatalogOxidant] = (),
        products: Iterable[CatalogProduct] = (),
        service_templates: Iterable[CatalogServiceTemplate] = (),
    ) -> "CatalogLookup":
        """Build lookup tables from record iterables."""
        return cls(
            materials=_freeze(materials),
            oxidants=_freeze(oxidants),
            products=_freeze(products),
            service_templates=_freeze(service_templates),
        )

    def material(self, material_id: Optional[StoredId]) -> Optional[CatalogMaterial]:
        """Active material by id, or None."""
        record = self.materials.get(material_id) if material_id else None
        return record if record is not None and record.is_active else None

    def oxidant(self, oxidant_id: Optional[StoredId]) -> Optional[CatalogOxidant]:
        """Active oxidant by id, or None."""
        record = self.oxidants.get(oxidant_id) if oxidant_id else None
        return record if record is not None and record.is_active else None

    def product(self, product_id: Optional[StoredId]) -> Optional[CatalogProduct]:
        """Active product by id, or None."""
        record = self.products.get(product_id) if product_id else None
        return record if record is not None and record.is_active else None

    def service_template(self, template_id: Optional[StoredId]) -> Optional[CatalogServiceTemplate]:
        """Active service template by id, or None."""
        record = self.service_templates.get(template_id) if template_id else None
        return record if record is not None and record.is_active else None

    def active_materials(self) -> List[CatalogMaterial]:
        return _sorted_active(self.materials.values())

    def active_oxidants(self) -> List[CatalogOxidant]:
        return _sorted_active(self.oxidants.values())

    def active_products(self) -> List[CatalogProduct]:
        return _sorted_active(self.products.values())

    def active_service_templates(self) -> List[CatalogServiceTemplate]:
        return _sorted_active(self.service_templates.values())
