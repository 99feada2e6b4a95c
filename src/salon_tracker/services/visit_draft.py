"""
Visit draft - the editable recipe tree of a visit in progress.

The draft is a tree of frozen records:

    VisitDraft -> ServiceDraft[] -> BowlDraft[] -> MaterialLineDraft[]
               -> ProductLineDraft[]

Every node carries a ``DraftId`` assigned here, never a stored id. All
functions in this module are pure: they take a draft and return a new one,
copying only the path to the changed node. Functions that touch a bowl's
lines or oxidant return the bowl already recomputed by
``oxidant_calculator.recompute_bowl``, so the oxidant grams shown while
editing always match the current inputs.

Ordering is the tuple order; the 1-based positions written to the database
come from ``service_ordinals`` / ``bowl_ordinals``.

Duplication keeps weights: ``duplicate_bowl`` appends a verbatim copy of the
bowl (oxidant and lines including grams) and ``duplicate_material_line``
inserts a copy of the line (material, ratio, shade and grams) right after
the source. Copies get fresh draft ids.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional, Tuple, TypeVar, Union

from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services.catalog_lookup import CatalogLookup, CatalogServiceTemplate
from salon_tracker.services.dto import MaterialLineRecord, StoredId, VisitRecord
from salon_tracker.services.exceptions import DraftNodeNotFound, LastBowlRemovalNotConfirmed
from salon_tracker.services.mixing_ratio import MixingRatio, resolve_ratio
from salon_tracker.services.oxidant_calculator import GramsInput, recompute_bowl
from salon_tracker.utils.rounding import round_money

N = TypeVar("N")

PriceInput = Union[Decimal, int, float, str, None]
QuantityInput = Union[int, str, None]


@dataclass(frozen=True)
class DraftId:
    """Identity of a node while the visit is being edited.

    Distinct from ``StoredId``: a draft id is never written to the database.
    """

    value: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __str__(self) -> str:
        return f"draft:{self.value[:8]}"


@dataclass(frozen=True)
class MaterialLineDraft:
    id: DraftId = field(default_factory=DraftId)
    material_id: Optional[StoredId] = None
    shade_label: str = ""
    grams: GramsInput = ""
    ratio: Optional[MixingRatio] = None


@dataclass(frozen=True)
class BowlDraft:
    id: DraftId = field(default_factory=DraftId)
    oxidant_id: Optional[StoredId] = None
    oxidant_grams: float = 0.0
    material_lines: Tuple[MaterialLineDraft, ...] = ()


@dataclass(frozen=True)
class ServiceDraft:
    """A treatment in the draft.

    ``requires_materials`` is False for services without a recipe (cut,
    blow-dry); removing their last bowl needs no confirmation.
    """

    id: DraftId = field(default_factory=DraftId)
    name: str = ""
    requires_materials: bool = True
    bowls: Tuple[BowlDraft, ...] = ()


@dataclass(frozen=True)
class ProductLineDraft:
    id: DraftId = field(default_factory=DraftId)
    product_id: Optional[StoredId] = None
    quantity: QuantityInput = 1
    unit_price: PriceInput = None


@dataclass(frozen=True)
class VisitDraft:
    client_id: Optional[StoredId] = None
    visit_date: Optional[date] = None
    note: str = ""
    payment_method: Optional[PaymentMethod] = None
    service_amount: PriceInput = None
    services: Tuple[ServiceDraft, ...] = ()
    products: Tuple[ProductLineDraft, ...] = ()


# ============================================================================
# Tree helpers
# ============================================================================


def _index_of(nodes: Tuple[N, ...], node_id: DraftId, kind: str) -> int:
    for index, node in enumerate(nodes):
        if node.id == node_id:
            return index
    raise DraftNodeNotFound(kind, node_id)


def _replace_at(nodes: Tuple[N, ...], index: int, node: N) -> Tuple[N, ...]:
    return nodes[:index] + (node,) + nodes[index + 1 :]


def _remove_at(nodes: Tuple[N, ...], index: int) -> Tuple[N, ...]:
    return nodes[:index] + nodes[index + 1 :]


def _move(nodes: Tuple[N, ...], node_id: DraftId, new_index: int, kind: str) -> Tuple[N, ...]:
    index = _index_of(nodes, node_id, kind)
    node = nodes[index]
    rest = _remove_at(nodes, index)
    new_index = max(0, min(new_index, len(rest)))
    return rest[:new_index] + (node,) + rest[new_index:]


def _update_service(
    draft: VisitDraft, service_id: DraftId, update: Callable[[ServiceDraft], ServiceDraft]
) -> VisitDraft:
    index = _index_of(draft.services, service_id, "Service")
    service = update(draft.services[index])
    return replace(draft, services=_replace_at(draft.services, index, service))


def _update_bowl(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    update: Callable[[BowlDraft], BowlDraft],
    catalog: CatalogLookup,
) -> VisitDraft:
    def _apply(service: ServiceDraft) -> ServiceDraft:
        index = _index_of(service.bowls, bowl_id, "Bowl")
        bowl = recompute_bowl(update(service.bowls[index]), catalog)
        return replace(service, bowls=_replace_at(service.bowls, index, bowl))

    return _update_service(draft, service_id, _apply)


def _update_line(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    update: Callable[[MaterialLineDraft], MaterialLineDraft],
    catalog: CatalogLookup,
) -> VisitDraft:
    def _apply(bowl: BowlDraft) -> BowlDraft:
        index = _index_of(bowl.material_lines, line_id, "Material line")
        line = update(bowl.material_lines[index])
        return replace(bowl, material_lines=_replace_at(bowl.material_lines, index, line))

    return _update_bowl(draft, service_id, bowl_id, _apply, catalog)


def find_service(draft: VisitDraft, service_id: DraftId) -> ServiceDraft:
    """Service node by draft id (raises DraftNodeNotFound)."""
    return draft.services[_index_of(draft.services, service_id, "Service")]


def find_bowl(draft: VisitDraft, service_id: DraftId, bowl_id: DraftId) -> BowlDraft:
    """Bowl node by draft ids (raises DraftNodeNotFound)."""
    service = find_service(draft, service_id)
    return service.bowls[_index_of(service.bowls, bowl_id, "Bowl")]


# ============================================================================
# Construction
# ============================================================================


def new_visit_draft(
    client_id: Optional[StoredId] = None,
    visit_date: Optional[date] = None,
    note: str = "",
    payment_method: Optional[PaymentMethod] = None,
) -> VisitDraft:
    """Empty draft for a new visit."""
    return VisitDraft(
        client_id=client_id,
        visit_date=visit_date,
        note=note,
        payment_method=PaymentMethod(payment_method) if payment_method else None,
    )


def new_bowl() -> BowlDraft:
    """Bowl with one empty material line, ready to be filled in."""
    return BowlDraft(material_lines=(MaterialLineDraft(),))


def new_service(name: str = "", bowl_count: int = 1) -> ServiceDraft:
    """Service with ``bowl_count`` empty bowls; zero bowls means no material."""
    bowl_count = max(0, bowl_count)
    return ServiceDraft(
        name=name,
        requires_materials=bowl_count > 0,
        bowls=tuple(new_bowl() for _ in range(bowl_count)),
    )


def update_visit_fields(draft: VisitDraft, **changes) -> VisitDraft:
    """
    Change top-level visit fields.

    Accepted keys: client_id, visit_date, note, payment_method, service_amount.

    Raises:
        ValueError: For any other key (services and products have their own operations)
    """
    allowed = {"client_id", "visit_date", "note", "payment_method", "service_amount"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Cannot set {', '.join(sorted(unknown))} on a visit draft")
    if changes.get("payment_method"):
        changes["payment_method"] = PaymentMethod(changes["payment_method"])
    return replace(draft, **changes)


# ============================================================================
# Services
# ============================================================================


def add_service(draft: VisitDraft, name: str = "", bowl_count: int = 1) -> VisitDraft:
    """Append a service with ``bowl_count`` empty bowls."""
    return replace(draft, services=draft.services + (new_service(name, bowl_count),))


def add_service_from_template(draft: VisitDraft, template: CatalogServiceTemplate) -> VisitDraft:
    """Append a service named after ``template`` with its usual number of bowls."""
    return add_service(draft, name=template.name, bowl_count=template.bowl_count)


def rename_service(draft: VisitDraft, service_id: DraftId, name: str) -> VisitDraft:
    return _update_service(draft, service_id, lambda service: replace(service, name=name))


def remove_service(draft: VisitDraft, service_id: DraftId) -> VisitDraft:
    """Remove a service together with its bowls and their lines."""
    index = _index_of(draft.services, service_id, "Service")
    return replace(draft, services=_remove_at(draft.services, index))


def move_service(draft: VisitDraft, service_id: DraftId, new_index: int) -> VisitDraft:
    """Move a service to ``new_index`` (0-based, clamped). Bowl order is untouched."""
    return replace(draft, services=_move(draft.services, service_id, new_index, "Service"))


# ============================================================================
# Bowls
# ============================================================================


def add_bowl(draft: VisitDraft, service_id: DraftId) -> VisitDraft:
    """Append an empty bowl to a service."""
    return _update_service(
        draft, service_id, lambda service: replace(service, bowls=service.bowls + (new_bowl(),))
    )


def remove_bowl(
    draft: VisitDraft, service_id: DraftId, bowl_id: DraftId, confirmed: bool = False
) -> VisitDraft:
    """
    Remove a bowl and its lines.

    Raises:
        LastBowlRemovalNotConfirmed: If this is the last bowl of a service that
            requires materials and ``confirmed`` is False
    """

    def _apply(service: ServiceDraft) -> ServiceDraft:
        index = _index_of(service.bowls, bowl_id, "Bowl")
        if len(service.bowls) == 1 and service.requires_materials and not confirmed:
            raise LastBowlRemovalNotConfirmed(service.name)
        return replace(service, bowls=_remove_at(service.bowls, index))

    return _update_service(draft, service_id, _apply)


def _copy_line(line: MaterialLineDraft) -> MaterialLineDraft:
    return replace(line, id=DraftId())


def duplicate_bowl(draft: VisitDraft, service_id: DraftId, bowl_id: DraftId) -> VisitDraft:
    """Append a copy of a bowl (oxidant, lines with their grams) to the same service."""

    def _apply(service: ServiceDraft) -> ServiceDraft:
        source = service.bowls[_index_of(service.bowls, bowl_id, "Bowl")]
        copy = replace(
            source,
            id=DraftId(),
            material_lines=tuple(_copy_line(line) for line in source.material_lines),
        )
        return replace(service, bowls=service.bowls + (copy,))

    return _update_service(draft, service_id, _apply)


def move_bowl(
    draft: VisitDraft, service_id: DraftId, bowl_id: DraftId, new_index: int
) -> VisitDraft:
    """Move a bowl within its service. Other services' bowls are untouched."""
    return _update_service(
        draft,
        service_id,
        lambda service: replace(service, bowls=_move(service.bowls, bowl_id, new_index, "Bowl")),
    )


def select_oxidant(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    oxidant_id: Optional[StoredId],
    catalog: CatalogLookup,
) -> VisitDraft:
    """Pick (or clear, with None) the bowl's oxidant."""
    return _update_bowl(
        draft, service_id, bowl_id, lambda bowl: replace(bowl, oxidant_id=oxidant_id), catalog
    )


# ============================================================================
# Material lines
# ============================================================================


def add_material_line(
    draft: VisitDraft, service_id: DraftId, bowl_id: DraftId, catalog: CatalogLookup
) -> VisitDraft:
    """Append an empty material line to a bowl."""
    return _update_bowl(
        draft,
        service_id,
        bowl_id,
        lambda bowl: replace(bowl, material_lines=bowl.material_lines + (MaterialLineDraft(),)),
        catalog,
    )


def remove_material_line(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    catalog: CatalogLookup,
) -> VisitDraft:
    def _apply(bowl: BowlDraft) -> BowlDraft:
        index = _index_of(bowl.material_lines, line_id, "Material line")
        return replace(bowl, material_lines=_remove_at(bowl.material_lines, index))

    return _update_bowl(draft, service_id, bowl_id, _apply, catalog)


def duplicate_material_line(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    catalog: CatalogLookup,
) -> VisitDraft:
    """Insert a copy of a line (material, ratio, shade and grams) right after it."""

    def _apply(bowl: BowlDraft) -> BowlDraft:
        index = _index_of(bowl.material_lines, line_id, "Material line")
        copy = _copy_line(bowl.material_lines[index])
        lines = bowl.material_lines[: index + 1] + (copy,) + bowl.material_lines[index + 1 :]
        return replace(bowl, material_lines=lines)

    return _update_bowl(draft, service_id, bowl_id, _apply, catalog)


def set_line_material(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    material_id: Optional[StoredId],
    catalog: CatalogLookup,
) -> VisitDraft:
    """
    Pick the material of a line.

    The line takes the material's default ratio. Switching to a different
    material clears the shade label, which belongs to the old material.
    """

    def _apply(line: MaterialLineDraft) -> MaterialLineDraft:
        material = catalog.material(material_id)
        ratio = material.default_ratio if material is not None else None
        shade_label = line.shade_label if material_id == line.material_id else ""
        return replace(line, material_id=material_id, ratio=ratio, shade_label=shade_label)

    return _update_line(draft, service_id, bowl_id, line_id, _apply, catalog)


def set_line_ratio(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    ratio: Optional[MixingRatio],
    catalog: CatalogLookup,
) -> VisitDraft:
    """
    Pick the mixing ratio of a line.

    A ratio the material does not offer falls back to its default. Without a
    resolvable material the line keeps no ratio.
    """

    def _apply(line: MaterialLineDraft) -> MaterialLineDraft:
        material = catalog.material(line.material_id)
        resolved = resolve_ratio(material, ratio) if material is not None else None
        return replace(line, ratio=resolved)

    return _update_line(draft, service_id, bowl_id, line_id, _apply, catalog)


def set_line_grams(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    grams: GramsInput,
    catalog: CatalogLookup,
) -> VisitDraft:
    """Set the material weight as typed; unparseable input is kept and skipped."""
    return _update_line(
        draft, service_id, bowl_id, line_id, lambda line: replace(line, grams=grams), catalog
    )


def set_line_shade(
    draft: VisitDraft,
    service_id: DraftId,
    bowl_id: DraftId,
    line_id: DraftId,
    shade_label: str,
    catalog: CatalogLookup,
) -> VisitDraft:
    return _update_line(
        draft,
        service_id,
        bowl_id,
        line_id,
        lambda line: replace(line, shade_label=shade_label),
        catalog,
    )


# ============================================================================
# Products
# ============================================================================


def add_product_line(
    draft: VisitDraft,
    product_id: Optional[StoredId] = None,
    catalog: Optional[CatalogLookup] = None,
    quantity: QuantityInput = 1,
    unit_price: PriceInput = None,
) -> VisitDraft:
    """Append a product line; the price defaults to the catalog price."""
    if unit_price is None and catalog is not None:
        product = catalog.product(product_id)
        if product is not None:
            unit_price = product.price
    line = ProductLineDraft(product_id=product_id, quantity=quantity, unit_price=unit_price)
    return replace(draft, products=draft.products + (line,))


def update_product_line(
    draft: VisitDraft,
    line_id: DraftId,
    catalog: Optional[CatalogLookup] = None,
    **changes,
) -> VisitDraft:
    """
    Change a product line.

    Accepted keys: product_id, quantity, unit_price. Picking another product
    without a price takes the catalog price.
    """
    allowed = {"product_id", "quantity", "unit_price"}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Cannot set {', '.join(sorted(unknown))} on a product line")

    index = _index_of(draft.products, line_id, "Product line")
    line = draft.products[index]
    if "product_id" in changes and "unit_price" not in changes and catalog is not None:
        product = catalog.product(changes["product_id"])
        if product is not None:
            changes["unit_price"] = product.price
    return replace(draft, products=_replace_at(draft.products, index, replace(line, **changes)))


def remove_product_line(draft: VisitDraft, line_id: DraftId) -> VisitDraft:
    index = _index_of(draft.products, line_id, "Product line")
    return replace(draft, products=_remove_at(draft.products, index))


def parse_quantity(value: QuantityInput) -> Optional[int]:
    """Whole positive number of pieces, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        quantity = int(str(value).strip())
    except ValueError:
        return None
    return quantity if quantity >= 1 else None


def parse_price(value: PriceInput) -> Optional[Decimal]:
    """Non-negative price (decimal comma accepted), or None."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip().replace(",", ".")
    if not text:
        return None
    try:
        price = Decimal(text)
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def product_amount(draft: VisitDraft) -> Decimal:
    """
    Sum of the product lines that name a product.

    An unreadable quantity counts as one piece and an unreadable price as zero.
    """
    total = Decimal("0")
    for line in draft.products:
        if not line.product_id:
            continue
        quantity = parse_quantity(line.quantity) or 1
        price = parse_price(line.unit_price) or Decimal("0")
        total += quantity * price
    return round_money(total)


def total_amount(draft: VisitDraft) -> Decimal:
    """Service amount plus product amount."""
    service = parse_price(draft.service_amount) or Decimal("0")
    return round_money(service + product_amount(draft))


# ============================================================================
# Ordinals
# ============================================================================


def service_ordinals(draft: VisitDraft) -> Dict[DraftId, int]:
    """1-based position of every service."""
    return {service.id: position for position, service in enumerate(draft.services, start=1)}


def bowl_ordinals(service: ServiceDraft) -> Dict[DraftId, int]:
    """1-based position of every bowl within one service."""
    return {bowl.id: position for position, bowl in enumerate(service.bowls, start=1)}


# ============================================================================
# Copy of a stored visit
# ============================================================================


def _copy_stored_line(line: MaterialLineRecord, catalog: CatalogLookup) -> MaterialLineDraft:
    material = catalog.material(line.material_id)
    ratio = resolve_ratio(material, line.ratio) if material is not None else line.ratio
    return MaterialLineDraft(
        material_id=line.material_id,
        shade_label=line.shade_label,
        grams=line.grams,
        ratio=ratio,
    )


def copy_visit_to_draft(
    record: VisitRecord, catalog: CatalogLookup, visit_date: Optional[date] = None
) -> VisitDraft:
    """
    Start a new visit from a stored one ("repeat last colour").

    The client, services, bowls, lines (with their grams) and products are
    copied. A stored ratio is kept while the material still offers it and
    otherwise replaced by the material's current default, so the copied
    line shows the ratio its oxidant is computed with. The date becomes
    ``visit_date`` (today by default) and the note, amount and payment method
    start empty. Bowls are recomputed against the current catalog.
    """
    services = []
    for service in record.services:
        bowls = []
        for bowl in service.bowls:
            lines = tuple(_copy_stored_line(line, catalog) for line in bowl.material_lines)
            bowls.append(
                recompute_bowl(
                    BowlDraft(
                        oxidant_id=bowl.oxidant_id,
                        oxidant_grams=bowl.oxidant_grams,
                        material_lines=lines,
                    ),
                    catalog,
                )
            )
        services.append(
            ServiceDraft(name=service.name, requires_materials=bool(bowls), bowls=tuple(bowls))
        )

    products = tuple(
        ProductLineDraft(
            product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price
        )
        for line in record.products
    )

    return VisitDraft(
        client_id=record.client_id,
        visit_date=visit_date or date.today(),
        services=tuple(services),
        products=products,
    )
