"""
Catalog Service - CRUD operations for the salon catalog.

This service provides CRUD operations for:
- Materials (with default and alternate mixing ratios)
- Oxidants
- Retail products
- Service templates (quick-add treatments with their usual bowl count)

and builds the read-only ``CatalogLookup`` the recipe engine works with.

Catalog entries are never hard-deleted: stored visits keep pointing at them,
so removal is a soft delete (``is_active = False``).

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from salon_tracker.models import Material, MaterialRatio, Oxidant, Product, ServiceTemplate
from salon_tracker.models.enums import InputMode
from salon_tracker.services.catalog_lookup import (
    CatalogLookup,
    CatalogMaterial,
    CatalogOxidant,
    CatalogProduct,
    CatalogServiceTemplate,
)
from salon_tracker.services.database import session_scope
from salon_tracker.services.exceptions import (
    MaterialNotFound,
    OxidantNotFound,
    ProductNotFound,
    ServiceTemplateNotFound,
    ValidationError,
)
from salon_tracker.services.logging_utils import get_service_logger, log_operation
from salon_tracker.services.mixing_ratio import MixingRatio
from salon_tracker.utils.validators import (
    validate_catalog_material_data,
    validate_oxidant_data,
    validate_product_data,
    validate_service_template_data,
)

logger = get_service_logger(__name__)

RatioInput = Union[MixingRatio, Tuple[float, float]]


# ============================================================================
# Helpers
# ============================================================================


def _as_ratio(value: RatioInput) -> MixingRatio:
    if isinstance(value, MixingRatio):
        return value
    try:
        material_parts, oxidant_parts = value
        return MixingRatio(material_parts, oxidant_parts)
    except (TypeError, ValueError) as e:
        raise ValidationError([f"Invalid mixing ratio {value!r}: {e}"])


def _get_owned(sess: Session, model, owner_id: str, record_id: str, not_found):
    record = (
        sess.query(model).filter(model.owner_id == owner_id, model.uuid == str(record_id)).first()
    )
    if record is None:
        raise not_found(record_id)
    return record


def _list_owned(sess: Session, model, owner_id: str, include_inactive: bool) -> list:
    query = sess.query(model).filter(model.owner_id == owner_id)
    if not include_inactive:
        query = query.filter(model.is_active.is_(True))
    return query.order_by(model.sort_order, model.name).all()


def _ensure_unique_name(
    sess: Session, model, owner_id: str, name: str, exclude_id: Optional[int] = None
) -> None:
    """Reject a second active entry with the same name (case-insensitive)."""
    query = sess.query(model).filter(
        model.owner_id == owner_id,
        model.is_active.is_(True),
        func.lower(model.name) == name.strip().lower(),
    )
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"'{name.strip()}' already exists"])


def _check(result: Tuple[bool, list]) -> None:
    is_valid, errors = result
    if not is_valid:
        raise ValidationError(errors)


def _set_alternate_ratios(material: Material, ratios: Iterable[RatioInput]) -> None:
    default = MixingRatio(material.ratio_material, material.ratio_oxidant)
    resolved: List[MixingRatio] = []
    for value in ratios:
        ratio = _as_ratio(value)
        if ratio != default and ratio not in resolved:
            resolved.append(ratio)
    material.alternate_ratios = [
        MaterialRatio(
            ratio_material=ratio.material_parts,
            ratio_oxidant=ratio.oxidant_parts,
            sort_order=index,
        )
        for index, ratio in enumerate(resolved)
    ]


def _parse_price(value) -> Decimal:
    try:
        return Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise ValidationError([f"Price: invalid amount {value!r}"])


# ============================================================================
# Materials
# ============================================================================


def create_material(
    owner_id: str,
    name: str,
    ratio: Optional[RatioInput] = None,
    input_mode: InputMode = InputMode.SHADE,
    alternate_ratios: Sequence[RatioInput] = (),
    sort_order: int = 0,
    session: Optional[Session] = None,
) -> Material:
    """
    Create a catalog material.

    Args:
        owner_id: Account that owns the catalog
        name: Display name (e.g., "Majirel")
        ratio: Default mixing ratio (defaults to 1:1)
        input_mode: How shades of this material are entered
        alternate_ratios: Other ratios the material may be mixed at; the
            default ratio and duplicates are dropped
        sort_order: Display ordering
        session: Optional database session

    Returns:
        Created Material instance

    Raises:
        ValidationError: If a field is invalid or the name is taken
    """
    ratio = _as_ratio(ratio) if ratio is not None else MixingRatio(1, 1)
    alternates = [_as_ratio(value) for value in alternate_ratios]
    _check(
        validate_catalog_material_data(
            {
                "name": name,
                "ratio_material": ratio.material_parts,
                "ratio_oxidant": ratio.oxidant_parts,
                "input_mode": input_mode,
                "alternate_ratios": [(r.material_parts, r.oxidant_parts) for r in alternates],
            }
        )
    )

    def _impl(sess: Session) -> Material:
        _ensure_unique_name(sess, Material, owner_id, name)
        material = Material(
            owner_id=owner_id,
            name=name.strip(),
            input_mode=InputMode(input_mode).value,
            ratio_material=ratio.material_parts,
            ratio_oxidant=ratio.oxidant_parts,
            is_active=True,
            sort_order=sort_order,
        )
        _set_alternate_ratios(material, alternates)
        sess.add(material)
        sess.flush()
        log_operation(
            logger,
            operation="create_material",
            outcome="success",
            material_id=material.uuid,
            ratio=str(ratio),
        )
        return material

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_material(owner_id: str, material_id: str, session: Optional[Session] = None) -> Material:
    """
    Get a material by stored id.

    Raises:
        MaterialNotFound: If the owner has no such material
    """

    def _impl(sess: Session) -> Material:
        return _get_owned(sess, Material, owner_id, material_id, MaterialNotFound)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_materials(
    owner_id: str, include_inactive: bool = False, session: Optional[Session] = None
) -> List[Material]:
    """Materials of the owner ordered by sort_order, then name."""

    def _impl(sess: Session) -> List[Material]:
        return _list_owned(sess, Material, owner_id, include_inactive)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_material(
    owner_id: str, material_id: str, updates: dict, session: Optional[Session] = None
) -> Material:
    """
    Update a material.

    Args:
        owner_id: Account that owns the catalog
        material_id: Stored id of the material
        updates: Any of name, ratio, input_mode, alternate_ratios,
            sort_order, is_active
        session: Optional database session

    Returns:
        Updated Material instance

    Raises:
        MaterialNotFound: If the owner has no such material
        ValidationError: If a field is invalid or unknown

    Note:
        Stored visits keep the ratio and name they were saved with; changing
        the catalog only affects recipes edited from now on.
    """
    allowed = {"name", "ratio", "input_mode", "alternate_ratios", "sort_order", "is_active"}
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError([f"Cannot update material field(s): {', '.join(sorted(unknown))}"])

    def _impl(sess: Session) -> Material:
        material = _get_owned(sess, Material, owner_id, material_id, MaterialNotFound)

        ratio = (
            _as_ratio(updates["ratio"])
            if "ratio" in updates
            else MixingRatio(material.ratio_material, material.ratio_oxidant)
        )
        alternates = (
            [_as_ratio(value) for value in updates["alternate_ratios"]]
            if "alternate_ratios" in updates
            else [MixingRatio(r.ratio_material, r.ratio_oxidant) for r in material.alternate_ratios]
        )
        name = updates.get("name", material.name)
        _check(
            validate_catalog_material_data(
                {
                    "name": name,
                    "ratio_material": ratio.material_parts,
                    "ratio_oxidant": ratio.oxidant_parts,
                    "input_mode": updates.get("input_mode", material.input_mode),
                }
            )
        )
        if "name" in updates:
            _ensure_unique_name(sess, Material, owner_id, name, exclude_id=material.id)
            material.name = name.strip()

        material.ratio_material = ratio.material_parts
        material.ratio_oxidant = ratio.oxidant_parts
        if "input_mode" in updates:
            material.input_mode = InputMode(updates["input_mode"]).value
        if "sort_order" in updates:
            material.sort_order = updates["sort_order"]
        if "is_active" in updates:
            material.is_active = bool(updates["is_active"])
        if "ratio" in updates or "alternate_ratios" in updates:
            _set_alternate_ratios(material, alternates)

        sess.flush()
        log_operation(
            logger,
            operation="update_material",
            outcome="success",
            material_id=material.uuid,
            fields=sorted(updates),
        )
        return material

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def deactivate_material(
    owner_id: str, material_id: str, session: Optional[Session] = None
) -> Material:
    """Soft delete a material; drafts treat it as unresolvable from now on."""
    return update_material(owner_id, material_id, {"is_active": False}, session=session)


# ============================================================================
# Oxidants
# ============================================================================


def create_oxidant(
    owner_id: str,
    name: str,
    description: Optional[str] = None,
    sort_order: int = 0,
    session: Optional[Session] = None,
) -> Oxidant:
    """
    Create a catalog oxidant (e.g., "6%", "Developer 20 vol").

    Raises:
        ValidationError: If the name is empty, too long or taken
    """
    _check(validate_oxidant_data({"name": name, "description": description}))

    def _impl(sess: Session) -> Oxidant:
        _ensure_unique_name(sess, Oxidant, owner_id, name)
        oxidant = Oxidant(
            owner_id=owner_id,
            name=name.strip(),
            description=description,
            is_active=True,
            sort_order=sort_order,
        )
        sess.add(oxidant)
        sess.flush()
        log_operation(
            logger, operation="create_oxidant", outcome="success", oxidant_id=oxidant.uuid
        )
        return oxidant

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_oxidant(owner_id: str, oxidant_id: str, session: Optional[Session] = None) -> Oxidant:
    def _impl(sess: Session) -> Oxidant:
        return _get_owned(sess, Oxidant, owner_id, oxidant_id, OxidantNotFound)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_oxidants(
    owner_id: str, include_inactive: bool = False, session: Optional[Session] = None
) -> List[Oxidant]:
    def _impl(sess: Session) -> List[Oxidant]:
        return _list_owned(sess, Oxidant, owner_id, include_inactive)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_oxidant(
    owner_id: str, oxidant_id: str, updates: dict, session: Optional[Session] = None
) -> Oxidant:
    """
    Update an oxidant.

    Args:
        updates: Any of name, description, sort_order, is_active

    Raises:
        OxidantNotFound: If the owner has no such oxidant
        ValidationError: If a field is invalid or unknown
    """
    allowed = {"name", "description", "sort_order", "is_active"}
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError([f"Cannot update oxidant field(s): {', '.join(sorted(unknown))}"])
    updates = dict(updates)

    def _impl(sess: Session) -> Oxidant:
        oxidant = _get_owned(sess, Oxidant, owner_id, oxidant_id, OxidantNotFound)
        name = updates.get("name", oxidant.name)
        _check(
            validate_oxidant_data(
                {"name": name, "description": updates.get("description", oxidant.description)}
            )
        )
        if "name" in updates:
            _ensure_unique_name(sess, Oxidant, owner_id, name, exclude_id=oxidant.id)
            updates["name"] = name.strip()
        oxidant.update_from_dict(updates)
        sess.flush()
        log_operation(
            logger,
            operation="update_oxidant",
            outcome="success",
            oxidant_id=oxidant.uuid,
            fields=sorted(updates),
        )
        return oxidant

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def deactivate_oxidant(
    owner_id: str, oxidant_id: str, session: Optional[Session] = None
) -> Oxidant:
    return update_oxidant(owner_id, oxidant_id, {"is_active": False}, session=session)


# ============================================================================
# Products
# ============================================================================


def create_product(
    owner_id: str,
    name: str,
    price,
    sort_order: int = 0,
    session: Optional[Session] = None,
) -> Product:
    """
    Create a retail product sold during visits.

    Args:
        price: Unit price; a decimal comma is accepted

    Raises:
        ValidationError: If the name or price is invalid
    """
    price = _parse_price(price)
    _check(validate_product_data({"name": name, "price": price}))

    def _impl(sess: Session) -> Product:
        _ensure_unique_name(sess, Product, owner_id, name)
        product = Product(
            owner_id=owner_id,
            name=name.strip(),
            price=price,
            is_active=True,
            sort_order=sort_order,
        )
        sess.add(product)
        sess.flush()
        log_operation(
            logger, operation="create_product", outcome="success", product_id=product.uuid
        )
        return product

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_product(owner_id: str, product_id: str, session: Optional[Session] = None) -> Product:
    def _impl(sess: Session) -> Product:
        return _get_owned(sess, Product, owner_id, product_id, ProductNotFound)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_products(
    owner_id: str, include_inactive: bool = False, session: Optional[Session] = None
) -> List[Product]:
    def _impl(sess: Session) -> List[Product]:
        return _list_owned(sess, Product, owner_id, include_inactive)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_product(
    owner_id: str, product_id: str, updates: dict, session: Optional[Session] = None
) -> Product:
    """
    Update a product.

    Args:
        updates: Any of name, price, sort_order, is_active

    Note:
        Visits keep the unit price they were sold at.
    """
    allowed = {"name", "price", "sort_order", "is_active"}
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError([f"Cannot update product field(s): {', '.join(sorted(unknown))}"])
    updates = dict(updates)
    if "price" in updates:
        updates["price"] = _parse_price(updates["price"])

    def _impl(sess: Session) -> Product:
        product = _get_owned(sess, Product, owner_id, product_id, ProductNotFound)
        name = updates.get("name", product.name)
        _check(validate_product_data({"name": name, "price": updates.get("price", product.price)}))
        if "name" in updates:
            _ensure_unique_name(sess, Product, owner_id, name, exclude_id=product.id)
            updates["name"] = name.strip()
        product.update_from_dict(updates)
        sess.flush()
        log_operation(
            logger,
            operation="update_product",
            outcome="success",
            product_id=product.uuid,
            fields=sorted(updates),
        )
        return product

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def deactivate_product(
    owner_id: str, product_id: str, session: Optional[Session] = None
) -> Product:
    return update_product(owner_id, product_id, {"is_active": False}, session=session)


# ============================================================================
# Service templates
# ============================================================================


def create_service_template(
    owner_id: str,
    name: str,
    bowl_count: int = 1,
    sort_order: int = 0,
    session: Optional[Session] = None,
) -> ServiceTemplate:
    """
    Create a quick-add service.

    Args:
        bowl_count: Bowls a new service starts with; 0 for treatments
            without material (cut, blow-dry)

    Raises:
        ValidationError: If the name or bowl count is invalid
    """
    _check(validate_service_template_data({"name": name, "bowl_count": bowl_count}))

    def _impl(sess: Session) -> ServiceTemplate:
        _ensure_unique_name(sess, ServiceTemplate, owner_id, name)
        template = ServiceTemplate(
            owner_id=owner_id,
            name=name.strip(),
            bowl_count=bowl_count,
            is_active=True,
            sort_order=sort_order,
        )
        sess.add(template)
        sess.flush()
        log_operation(
            logger,
            operation="create_service_template",
            outcome="success",
            template_id=template.uuid,
            bowl_count=bowl_count,
        )
        return template

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_service_template(
    owner_id: str, template_id: str, session: Optional[Session] = None
) -> ServiceTemplate:
    def _impl(sess: Session) -> ServiceTemplate:
        return _get_owned(sess, ServiceTemplate, owner_id, template_id, ServiceTemplateNotFound)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_service_templates(
    owner_id: str, include_inactive: bool = False, session: Optional[Session] = None
) -> List[ServiceTemplate]:
    def _impl(sess: Session) -> List[ServiceTemplate]:
        return _list_owned(sess, ServiceTemplate, owner_id, include_inactive)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_service_template(
    owner_id: str, template_id: str, updates: dict, session: Optional[Session] = None
) -> ServiceTemplate:
    """
    Update a service template.

    Args:
        updates: Any of name, bowl_count, sort_order, is_active
    """
    allowed = {"name", "bowl_count", "sort_order", "is_active"}
    unknown = set(updates) - allowed
    if unknown:
        raise ValidationError(
            [f"Cannot update service template field(s): {', '.join(sorted(unknown))}"]
        )
    updates = dict(updates)

    def _impl(sess: Session) -> ServiceTemplate:
        template = _get_owned(
            sess, ServiceTemplate, owner_id, template_id, ServiceTemplateNotFound
        )
        name = updates.get("name", template.name)
        _check(
            validate_service_template_data(
                {"name": name, "bowl_count": updates.get("bowl_count", template.bowl_count)}
            )
        )
        if "name" in updates:
            _ensure_unique_name(sess, ServiceTemplate, owner_id, name, exclude_id=template.id)
            updates["name"] = name.strip()
        template.update_from_dict(updates)
        sess.flush()
        log_operation(
            logger,
            operation="update_service_template",
            outcome="success",
            template_id=template.uuid,
            fields=sorted(updates),
        )
        return template

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def deactivate_service_template(
    owner_id: str, template_id: str, session: Optional[Session] = None
) -> ServiceTemplate:
    return update_service_template(owner_id, template_id, {"is_active": False}, session=session)


# ============================================================================
# Catalog reads for the recipe engine
# ============================================================================


def get_materials(owner_id: str, session: Optional[Session] = None) -> List[CatalogMaterial]:
    """All materials of the owner, active and inactive, as engine records."""
    return [
        CatalogMaterial.from_model(m)
        for m in list_materials(owner_id, include_inactive=True, session=session)
    ]


def get_oxidants(owner_id: str, session: Optional[Session] = None) -> List[CatalogOxidant]:
    """All oxidants of the owner, active and inactive, as engine records."""
    return [
        CatalogOxidant.from_model(o)
        for o in list_oxidants(owner_id, include_inactive=True, session=session)
    ]


def load_catalog(owner_id: str, session: Optional[Session] = None) -> CatalogLookup:
    """
    Load the owner's whole catalog into lookup tables for one editing session.

    Inactive entries are included so stored visits can still show them; the
    lookup itself resolves only active ones.

    Returns:
        CatalogLookup detached from the database
    """

    def _impl(sess: Session) -> CatalogLookup:
        catalog = CatalogLookup.build(
            materials=get_materials(owner_id, session=sess),
            oxidants=get_oxidants(owner_id, session=sess),
            products=[
                CatalogProduct.from_model(p)
                for p in _list_owned(sess, Product, owner_id, include_inactive=True)
            ],
            service_templates=[
                CatalogServiceTemplate.from_model(t)
                for t in _list_owned(sess, ServiceTemplate, owner_id, include_inactive=True)
            ],
        )
        logger.debug(
            "Loaded catalog",
            extra={
                "owner_id": owner_id,
                "materials": len(catalog.materials),
                "oxidants": len(catalog.oxidants),
                "products": len(catalog.products),
                "service_templates": len(catalog.service_templates),
            },
        )
        return catalog

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
