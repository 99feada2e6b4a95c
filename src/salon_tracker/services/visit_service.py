"""
Visit Service - persistence of the visit recipe tree.

A visit is stored one table per tree level:

    visits -> visit_services -> bowls -> material_lines
           -> visit_products

Writes go top-down (the visit row first, then each service, its bowls and
their lines, then the products); deletes go bottom-up (material lines, bowls,
services, products, then the visit). Every create, replace and delete runs in
a single transaction: if any row fails, nothing of the visit is written or
removed.

Names and mixing ratios are copied onto the stored rows, so a visit reads back
the same after its materials, oxidants or products change in the catalog.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from salon_tracker.models import (
    Bowl,
    Client,
    Material,
    MaterialLine,
    Oxidant,
    Product,
    Visit,
    VisitProduct,
    VisitService,
)
from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services.catalog_lookup import CatalogLookup
from salon_tracker.services.database import session_scope
from salon_tracker.services.dto import (
    BowlPayload,
    BowlRecord,
    MaterialLinePayload,
    MaterialLineRecord,
    PaginatedResult,
    PaginationParams,
    ProductLinePayload,
    ProductLineRecord,
    ServicePayload,
    ServiceRecord,
    StoredId,
    VisitPayload,
    VisitRecord,
    VisitSummary,
)
from salon_tracker.services.exceptions import (
    ClientNotFound,
    DatabaseError,
    MaterialNotFound,
    OxidantNotFound,
    ProductNotFound,
    ValidationError,
    VisitNotFound,
)
from salon_tracker.services.logging_utils import get_service_logger, log_operation
from salon_tracker.services.mixing_ratio import MixingRatio, resolve_ratio
from salon_tracker.services.oxidant_calculator import calculate_oxidant_grams, parse_grams
from salon_tracker.services.visit_draft import VisitDraft, parse_price, parse_quantity
from salon_tracker.utils.datetime_utils import parse_visit_date
from salon_tracker.utils.rounding import round_money
from salon_tracker.utils.validators import validate_payment_method, validate_visit_draft

logger = get_service_logger(__name__)

UPDATABLE_VISIT_FIELDS = ("note", "service_amount", "payment_method", "visit_date")


# ============================================================================
# Draft -> payload
# ============================================================================


def build_visit_payload(draft: VisitDraft, catalog: CatalogLookup) -> VisitPayload:
    """
    Turn a validated draft into the payload that is written to the database.

    Material and oxidant names, the resolved mixing ratio and product names
    are snapshotted from ``catalog``; oxidant grams are recomputed. Product
    lines without a product are dropped.

    Transaction boundary: Pure computation (no database access).

    Args:
        draft: Draft that passed ``validate_visit_draft``
        catalog: Lookup tables the draft was edited against

    Returns:
        VisitPayload

    Raises:
        ValueError: If the draft still has a gap the validator reports, or a
            product line points at a product that is unknown or inactive
    """
    services = []
    for service in draft.services:
        bowls = []
        for bowl in service.bowls:
            lines = []
            for line in bowl.material_lines:
                material = catalog.material(line.material_id)
                if material is None:
                    raise ValueError(f"Material {line.material_id!r} is not available")
                lines.append(
                    MaterialLinePayload(
                        material_id=material.id,
                        material_name=material.name,
                        ratio=resolve_ratio(material, line.ratio),
                        grams=parse_grams(line.grams) or 0,
                        shade_label=line.shade_label,
                    )
                )
            oxidant = catalog.oxidant(bowl.oxidant_id)
            bowls.append(
                BowlPayload(
                    oxidant_id=oxidant.id if oxidant else None,
                    oxidant_name=oxidant.name if oxidant else None,
                    oxidant_grams=calculate_oxidant_grams(bowl, catalog),
                    material_lines=tuple(lines),
                )
            )
        services.append(ServicePayload(name=service.name, bowls=tuple(bowls)))

    products = []
    for line in draft.products:
        if not line.product_id:
            continue
        product = catalog.product(line.product_id)
        if product is None:
            raise ValueError(f"Product {line.product_id!r} is not available")
        unit_price = parse_price(line.unit_price)
        products.append(
            ProductLinePayload(
                product_id=product.id,
                product_name=product.name,
                quantity=parse_quantity(line.quantity) or 1,
                unit_price=unit_price if unit_price is not None else product.price,
            )
        )

    return VisitPayload(
        client_id=draft.client_id,
        visit_date=draft.visit_date,
        services=tuple(services),
        products=tuple(products),
        note=(draft.note or "").strip() or None,
        payment_method=draft.payment_method,
        service_amount=parse_price(draft.service_amount),
    )


# ============================================================================
# Internal helpers
# ============================================================================


def _get_visit_row(sess: Session, owner_id: str, visit_id: str, *options) -> Visit:
    visit = (
        sess.query(Visit)
        .options(*options)
        .filter(Visit.owner_id == owner_id, Visit.uuid == str(visit_id))
        .first()
    )
    if visit is None:
        raise VisitNotFound(visit_id)
    return visit


def _get_client_row(sess: Session, owner_id: str, client_id: str) -> Client:
    client = (
        sess.query(Client)
        .filter(Client.owner_id == owner_id, Client.uuid == str(client_id))
        .first()
    )
    if client is None:
        raise ClientNotFound(client_id)
    return client


def _resolve_ids(
    sess: Session, model, owner_id: str, uuids: Iterable[str], not_found
) -> Dict[str, int]:
    """Map stored ids of catalog rows to their primary keys."""
    wanted = {str(u) for u in uuids if u}
    if not wanted:
        return {}
    rows = (
        sess.query(model.uuid, model.id)
        .filter(model.owner_id == owner_id, model.uuid.in_(wanted))
        .all()
    )
    found = {row.uuid: row.id for row in rows}
    missing = wanted - set(found)
    if missing:
        raise not_found(sorted(missing)[0])
    return found


def _apply_visit_scalars(visit: Visit, client: Client, payload: VisitPayload) -> None:
    visit.client_id = client.id
    visit.client_first_name = client.first_name
    visit.client_last_name = client.last_name
    visit.visit_date = payload.visit_date
    visit.note = payload.note
    visit.payment_method = payload.payment_method.value if payload.payment_method else None
    visit.service_amount = (
        round_money(payload.service_amount) if payload.service_amount is not None else None
    )
    visit.product_amount = round_money(payload.product_amount)
    visit.total_amount = round_money(payload.total_amount)
    visit.service_count = len(payload.services)


def _write_tree(sess: Session, owner_id: str, visit: Visit, payload: VisitPayload) -> None:
    """Write services, bowls, lines and products under an existing visit row."""
    bowls = [bowl for service in payload.services for bowl in service.bowls]
    material_ids = _resolve_ids(
        sess,
        Material,
        owner_id,
        (line.material_id for bowl in bowls for line in bowl.material_lines),
        MaterialNotFound,
    )
    oxidant_ids = _resolve_ids(
        sess, Oxidant, owner_id, (bowl.oxidant_id for bowl in bowls), OxidantNotFound
    )
    product_ids = _resolve_ids(
        sess, Product, owner_id, (line.product_id for line in payload.products), ProductNotFound
    )

    for service_position, service in enumerate(payload.services, start=1):
        service_row = VisitService(visit_id=visit.id, name=service.name, position=service_position)
        sess.add(service_row)
        sess.flush()

        for bowl_position, bowl in enumerate(service.bowls, start=1):
            bowl_row = Bowl(
                service_id=service_row.id,
                position=bowl_position,
                oxidant_id=oxidant_ids.get(bowl.oxidant_id),
                oxidant_name=bowl.oxidant_name,
                oxidant_grams=bowl.oxidant_grams,
            )
            sess.add(bowl_row)
            sess.flush()

            for line_position, line in enumerate(bowl.material_lines, start=1):
                sess.add(
                    MaterialLine(
                        bowl_id=bowl_row.id,
                        position=line_position,
                        material_id=material_ids[line.material_id],
                        material_name=line.material_name,
                        shade_label=line.shade_label,
                        grams=line.grams,
                        ratio_material=line.ratio.material_parts,
                        ratio_oxidant=line.ratio.oxidant_parts,
                    )
                )
            sess.flush()

    for product_position, line in enumerate(payload.products, start=1):
        sess.add(
            VisitProduct(
                visit_id=visit.id,
                position=product_position,
                product_id=product_ids[line.product_id],
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=round_money(line.unit_price),
            )
        )
    sess.flush()


def _delete_children(sess: Session, visit: Visit) -> Dict[str, int]:
    """Delete the rows under a visit, deepest level first."""
    service_ids = select(VisitService.id).where(VisitService.visit_id == visit.id)
    bowl_ids = select(Bowl.id).where(Bowl.service_id.in_(service_ids))

    counts = {}
    counts["material_lines"] = (
        sess.query(MaterialLine)
        .filter(MaterialLine.bowl_id.in_(bowl_ids))
        .delete(synchronize_session=False)
    )
    counts["bowls"] = (
        sess.query(Bowl).filter(Bowl.service_id.in_(service_ids)).delete(synchronize_session=False)
    )
    counts["services"] = (
        sess.query(VisitService)
        .filter(VisitService.visit_id == visit.id)
        .delete(synchronize_session=False)
    )
    counts["products"] = (
        sess.query(VisitProduct)
        .filter(VisitProduct.visit_id == visit.id)
        .delete(synchronize_session=False)
    )
    sess.expire(visit, ["services", "products"])
    return counts


def _run(operation: str, impl, session: Optional[Session], **context):
    """Run ``impl`` in the given session or a new transaction, mapping DB errors."""
    try:
        if session is not None:
            return impl(session)
        with session_scope() as sess:
            return impl(sess)
    except SQLAlchemyError as e:
        log_operation(
            logger,
            operation=operation,
            outcome="database_error",
            level=logging.ERROR,
            error=str(e),
            **context,
        )
        raise DatabaseError(f"Failed to {operation.replace('_', ' ')}: {str(e)}", original_error=e)


# ============================================================================
# Record conversion
# ============================================================================


def _uuid_or_none(row) -> Optional[StoredId]:
    return StoredId(row.uuid) if row is not None else None


def _line_record(line: MaterialLine) -> MaterialLineRecord:
    return MaterialLineRecord(
        id=StoredId(line.uuid),
        position=line.position,
        material_id=_uuid_or_none(line.material),
        material_name=line.material_name,
        shade_label=line.shade_label or "",
        grams=line.grams,
        ratio=MixingRatio(line.ratio_material, line.ratio_oxidant),
    )


def _bowl_record(bowl: Bowl) -> BowlRecord:
    return BowlRecord(
        id=StoredId(bowl.uuid),
        position=bowl.position,
        oxidant_id=_uuid_or_none(bowl.oxidant),
        oxidant_name=bowl.oxidant_name,
        oxidant_grams=bowl.oxidant_grams,
        material_lines=tuple(_line_record(line) for line in bowl.material_lines),
    )


def _service_record(service: VisitService) -> ServiceRecord:
    return ServiceRecord(
        id=StoredId(service.uuid),
        position=service.position,
        name=service.name,
        bowls=tuple(_bowl_record(bowl) for bowl in service.bowls),
    )


def _product_record(line: VisitProduct) -> ProductLineRecord:
    return ProductLineRecord(
        id=StoredId(line.uuid),
        position=line.position,
        product_id=_uuid_or_none(line.product),
        product_name=line.product_name,
        quantity=line.quantity,
        unit_price=Decimal(str(line.unit_price)),
    )


def _client_name(visit: Visit) -> str:
    return f"{visit.client_first_name or ''} {visit.client_last_name or ''}".strip()


def _payment_method(visit: Visit) -> Optional[PaymentMethod]:
    return PaymentMethod(visit.payment_method) if visit.payment_method else None


def _visit_record(visit: Visit) -> VisitRecord:
    return VisitRecord(
        id=StoredId(visit.uuid),
        client_id=StoredId(visit.client.uuid),
        client_name=_client_name(visit),
        visit_date=visit.visit_date,
        note=visit.note,
        payment_method=_payment_method(visit),
        service_amount=visit.service_amount,
        product_amount=visit.product_amount,
        total_amount=visit.total_amount,
        service_count=visit.service_count,
        created_at=visit.created_at,
        services=tuple(_service_record(service) for service in visit.services),
        products=tuple(_product_record(line) for line in visit.products),
    )


def _visit_summary(visit: Visit) -> VisitSummary:
    return VisitSummary(
        id=StoredId(visit.uuid),
        client_id=StoredId(visit.client.uuid),
        client_name=_client_name(visit),
        visit_date=visit.visit_date,
        note=visit.note,
        payment_method=_payment_method(visit),
        total_amount=visit.total_amount,
        service_count=visit.service_count,
        service_names=tuple(service.name for service in visit.services),
    )


_TREE_OPTIONS = (
    selectinload(Visit.client),
    selectinload(Visit.services)
    .selectinload(VisitService.bowls)
    .selectinload(Bowl.material_lines)
    .selectinload(MaterialLine.material),
    selectinload(Visit.services).selectinload(VisitService.bowls).selectinload(Bowl.oxidant),
    selectinload(Visit.products).selectinload(VisitProduct.product),
)


# ============================================================================
# Create
# ============================================================================


def create_visit(
    owner_id: str, payload: VisitPayload, session: Optional[Session] = None
) -> StoredId:
    """
    Write a visit and its whole tree.

    The visit row is written first (with the client name snapshot, amounts and
    service count), then each service, its bowls and their material lines in
    order, then the product lines. Each child gets its 1-based position.

    Args:
        owner_id: Account that owns the visit
        payload: Visit tree to write
        session: Optional database session

    Returns:
        Stored id of the new visit

    Raises:
        ClientNotFound: If the client does not belong to the owner
        MaterialNotFound / OxidantNotFound / ProductNotFound: If a referenced
            catalog row does not belong to the owner
        DatabaseError: If a write fails; nothing of the visit is kept
    """

    def _impl(sess: Session) -> StoredId:
        client = _get_client_row(sess, owner_id, payload.client_id)
        visit = Visit(owner_id=owner_id)
        _apply_visit_scalars(visit, client, payload)
        sess.add(visit)
        sess.flush()

        _write_tree(sess, owner_id, visit, payload)

        log_operation(
            logger,
            operation="create_visit",
            outcome="success",
            visit_id=visit.uuid,
            services=len(payload.services),
            rows=payload.document_count,
        )
        return StoredId(visit.uuid)

    return _run("create_visit", _impl, session, owner_id=owner_id)


def save_visit_draft(
    owner_id: str,
    draft: VisitDraft,
    catalog: CatalogLookup,
    visit_id: Optional[str] = None,
    session: Optional[Session] = None,
) -> StoredId:
    """
    Validate a draft and store it.

    Args:
        owner_id: Account that owns the visit
        draft: Visit draft being saved
        catalog: Lookup tables the draft was edited against
        visit_id: Stored visit to overwrite; None creates a new visit
        session: Optional database session

    Returns:
        Stored id of the visit

    Raises:
        ValidationError: With the first problem found, before anything is written
    """
    message = validate_visit_draft(draft, catalog)
    if message is not None:
        log_operation(
            logger,
            operation="save_visit_draft",
            outcome="validation_failed",
            level=logging.WARNING,
            error=message,
        )
        raise ValidationError([message])

    try:
        payload = build_visit_payload(draft, catalog)
    except ValueError as e:
        raise ValidationError([str(e)])

    if visit_id is None:
        return create_visit(owner_id, payload, session=session)
    return replace_visit_tree(owner_id, visit_id, payload, session=session)


# ============================================================================
# Read
# ============================================================================


def get_visit(owner_id: str, visit_id: str, session: Optional[Session] = None) -> VisitRecord:
    """
    Read a visit with its whole tree.

    Raises:
        VisitNotFound: If the owner has no such visit
    """

    def _impl(sess: Session) -> VisitRecord:
        return _visit_record(_get_visit_row(sess, owner_id, visit_id, *_TREE_OPTIONS))

    return _run("get_visit", _impl, session, visit_id=str(visit_id))


def list_visits(
    owner_id: str,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    pagination: Optional[PaginationParams] = None,
    session: Optional[Session] = None,
) -> PaginatedResult[VisitSummary]:
    """
    List visits newest first.

    Args:
        owner_id: Account that owns the visits
        client_id: Only visits of this client
        search: Case-insensitive match on client name or note
        date_from: Earliest visit date (inclusive)
        date_to: Latest visit date (inclusive)
        pagination: Page to return; None returns every visit in one page
        session: Optional database session

    Returns:
        PaginatedResult of VisitSummary
    """

    def _impl(sess: Session) -> PaginatedResult[VisitSummary]:
        query = sess.query(Visit).filter(Visit.owner_id == owner_id)
        if client_id:
            query = query.join(Client, Visit.client_id == Client.id).filter(
                Client.uuid == str(client_id)
            )
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Visit.client_first_name.ilike(pattern),
                    Visit.client_last_name.ilike(pattern),
                    Visit.note.ilike(pattern),
                )
            )
        if date_from:
            query = query.filter(Visit.visit_date >= date_from)
        if date_to:
            query = query.filter(Visit.visit_date <= date_to)

        total = query.count()
        query = query.options(selectinload(Visit.client), selectinload(Visit.services)).order_by(
            Visit.visit_date.desc(), Visit.created_at.desc(), Visit.id.desc()
        )
        if pagination is not None:
            query = query.offset(pagination.offset()).limit(pagination.per_page)
            page, per_page = pagination.page, pagination.per_page
        else:
            page, per_page = 1, max(total, 1)

        return PaginatedResult(
            items=[_visit_summary(visit) for visit in query.all()],
            total=total,
            page=page,
            per_page=per_page,
        )

    return _run("list_visits", _impl, session, owner_id=owner_id)


def count_visit_documents(
    owner_id: str, visit_id: str, session: Optional[Session] = None
) -> Dict[str, int]:
    """
    Count the stored rows of a visit per tree level.

    Returns:
        Dict with keys material_lines, bowls, services, products, visits

    Raises:
        VisitNotFound: If the owner has no such visit
    """

    def _impl(sess: Session) -> Dict[str, int]:
        visit = _get_visit_row(sess, owner_id, visit_id)
        service_ids = select(VisitService.id).where(VisitService.visit_id == visit.id)
        bowl_ids = select(Bowl.id).where(Bowl.service_id.in_(service_ids))
        return {
            "material_lines": sess.query(MaterialLine)
            .filter(MaterialLine.bowl_id.in_(bowl_ids))
            .count(),
            "bowls": sess.query(Bowl).filter(Bowl.service_id.in_(service_ids)).count(),
            "services": sess.query(VisitService)
            .filter(VisitService.visit_id == visit.id)
            .count(),
            "products": sess.query(VisitProduct)
            .filter(VisitProduct.visit_id == visit.id)
            .count(),
            "visits": 1,
        }

    return _run("count_visit_documents", _impl, session, visit_id=str(visit_id))


# ============================================================================
# Update
# ============================================================================


def update_visit(
    owner_id: str, visit_id: str, fields: dict, session: Optional[Session] = None
) -> VisitRecord:
    """
    Patch the top-level fields of a stored visit.

    Only note, service_amount, payment_method and visit_date can be changed;
    the total is recomputed from the new service amount. Services, bowls and
    products are changed with ``replace_visit_tree``.

    Raises:
        ValidationError: For a nested or unknown key, or an invalid value
        VisitNotFound: If the owner has no such visit
    """
    unknown = set(fields) - set(UPDATABLE_VISIT_FIELDS)
    if unknown:
        raise ValidationError(
            [
                f"Cannot update visit field(s): {', '.join(sorted(unknown))}; "
                "use replace_visit_tree for services and products"
            ]
        )

    errors = []
    changes = {}
    if "note" in fields:
        changes["note"] = (fields["note"] or "").strip() or None
    if "payment_method" in fields:
        is_valid, error = validate_payment_method(fields["payment_method"])
        if not is_valid:
            errors.append(error)
        elif fields["payment_method"]:
            changes["payment_method"] = PaymentMethod(fields["payment_method"]).value
        else:
            changes["payment_method"] = None
    if "service_amount" in fields:
        raw = fields["service_amount"]
        amount = parse_price(raw)
        if amount is None and raw not in (None, ""):
            errors.append("Service amount: Value must be zero or greater")
        changes["service_amount"] = round_money(amount) if amount is not None else None
    if "visit_date" in fields:
        try:
            visit_date = parse_visit_date(fields["visit_date"])
        except ValueError:
            visit_date = None
        if visit_date is None:
            errors.append("Visit date: Enter a valid date")
        changes["visit_date"] = visit_date
    if errors:
        raise ValidationError(errors)

    def _impl(sess: Session) -> VisitRecord:
        visit = _get_visit_row(sess, owner_id, visit_id, *_TREE_OPTIONS)
        visit.update_from_dict(changes)
        visit.total_amount = round_money(
            (visit.service_amount or Decimal("0")) + (visit.product_amount or Decimal("0"))
        )
        sess.flush()
        log_operation(
            logger,
            operation="update_visit",
            outcome="success",
            visit_id=visit.uuid,
            fields=sorted(changes),
        )
        return _visit_record(visit)

    return _run("update_visit", _impl, session, visit_id=str(visit_id))


def replace_visit_tree(
    owner_id: str, visit_id: str, payload: VisitPayload, session: Optional[Session] = None
) -> StoredId:
    """
    Replace a stored visit with ``payload``, keeping its stored id.

    The old services, bowls, lines and products are deleted and the new tree
    is written in the same transaction.

    Raises:
        VisitNotFound: If the owner has no such visit
        DatabaseError: If a write fails; the stored visit is left unchanged
    """

    def _impl(sess: Session) -> StoredId:
        visit = _get_visit_row(sess, owner_id, visit_id)
        client = _get_client_row(sess, owner_id, payload.client_id)
        removed = _delete_children(sess, visit)
        _apply_visit_scalars(visit, client, payload)
        sess.flush()
        _write_tree(sess, owner_id, visit, payload)
        log_operation(
            logger,
            operation="replace_visit_tree",
            outcome="success",
            visit_id=visit.uuid,
            removed_rows=sum(removed.values()),
            rows=payload.document_count - 1,
        )
        return StoredId(visit.uuid)

    return _run("replace_visit_tree", _impl, session, visit_id=str(visit_id))


# ============================================================================
# Delete
# ============================================================================


def delete_visit(
    owner_id: str, visit_id: str, session: Optional[Session] = None
) -> Dict[str, int]:
    """
    Delete a visit and every row under it.

    Rows are removed deepest level first: material lines, bowls, services,
    products, then the visit itself.

    Returns:
        Rows deleted per level (material_lines, bowls, services, products, visits)

    Raises:
        VisitNotFound: If the owner has no such visit
        DatabaseError: If a delete fails; nothing is removed
    """

    def _impl(sess: Session) -> Dict[str, int]:
        visit = _get_visit_row(sess, owner_id, visit_id)
        counts = _delete_children(sess, visit)
        counts["visits"] = (
            sess.query(Visit).filter(Visit.id == visit.id).delete(synchronize_session=False)
        )
        sess.expunge(visit)
        log_operation(
            logger,
            operation="delete_visit",
            outcome="success",
            visit_id=str(visit_id),
            **counts,
        )
        return counts

    return _run("delete_visit", _impl, session, visit_id=str(visit_id))


def list_client_visits(
    owner_id: str, client_id: str, session: Optional[Session] = None
) -> List[VisitSummary]:
    """All visits of one client, newest first."""
    return list_visits(owner_id, client_id=client_id, session=session).items
