"""
Product Sale Service - retail products sold outside a visit.

A client can buy a shampoo without booking a treatment. Such a sale is
stored on its own (``product_sales`` and ``product_sale_lines``) and is
counted by the cash register and the monthly revenue next to the visits.

Lines copy the product name and unit price when the sale is written, and
the sale copies the client name, so editing the catalog or renaming the
client leaves earlier sales unchanged.

Session Management Pattern:
- All functions accept optional `session` parameter
- If session is provided, use it directly (allows callers to manage transactions)
- If session is None, create a new session_scope for the operation
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from salon_tracker.models import ProductSale, ProductSaleLine
from salon_tracker.services import catalog_service, client_service
from salon_tracker.services.database import session_scope
from salon_tracker.services.exceptions import ProductSaleNotFound, ValidationError
from salon_tracker.services.logging_utils import get_service_logger, log_operation
from salon_tracker.utils.rounding import round_money
from salon_tracker.utils.validators import sanitize_string, validate_product_sale_data

logger = get_service_logger(__name__)

SALE_FIELDS = ("client_id", "sale_date", "note", "payment_method", "lines")


def _check(data: Dict, require_lines: bool = True) -> None:
    is_valid, errors = validate_product_sale_data(data, require_lines=require_lines)
    if not is_valid:
        log_operation(
            logger,
            operation="product_sale",
            outcome="validation_failed",
            level=logging.WARNING,
            errors=errors,
        )
        raise ValidationError(errors)


def _payment_value(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(getattr(value, "value", value))


def _get_sale(sess: Session, owner_id: str, sale_id: str) -> ProductSale:
    sale = (
        sess.query(ProductSale)
        .filter(ProductSale.owner_id == owner_id, ProductSale.uuid == str(sale_id))
        .first()
    )
    if sale is None:
        raise ProductSaleNotFound(sale_id)
    return sale


def _assign_client(sess: Session, owner_id: str, sale: ProductSale, client_id) -> None:
    if not client_id:
        sale.client_id = None
        sale.client_name = None
        return
    client = client_service.get_client(owner_id, client_id, session=sess)
    sale.client_id = client.id
    sale.client_name = client.full_name


def _build_lines(sess: Session, owner_id: str, lines: List[Dict]) -> List[ProductSaleLine]:
    """Sale lines priced from the catalog unless a unit price is given."""
    built = []
    for position, line in enumerate(lines, start=1):
        product = catalog_service.get_product(owner_id, line["product_id"], session=sess)
        if not product.is_active:
            raise ValidationError([f"Product {line['product_id']!r} is not available"])
        unit_price = line.get("unit_price")
        built.append(
            ProductSaleLine(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=line.get("quantity", 1),
                unit_price=round_money(product.price if unit_price is None else unit_price),
            )
        )
    return built


def _sale_total(lines: List[ProductSaleLine]) -> Decimal:
    return round_money(sum((line.line_total for line in lines), round_money(0)))


# ============================================================================
# Product Sale CRUD Operations
# ============================================================================


def create_product_sale(
    owner_id: str, data: Dict, session: Optional[Session] = None
) -> ProductSale:
    """
    Record a product sale made without a visit.

    Args:
        owner_id: Account that owns the record
        data: Dictionary with sale_date and lines (each with product_id,
            quantity and an optional unit_price) and the optional
            client_id, note and payment_method
        session: Optional database session

    Returns:
        Created ProductSale with its lines

    Raises:
        ValidationError: If the data is invalid or a product is inactive
        ClientNotFound: If client_id names no client of the owner
        ProductNotFound: If a line names no product of the owner
    """
    _check(data)

    def _impl(sess: Session) -> ProductSale:
        sale = ProductSale(
            owner_id=owner_id,
            sale_date=data["sale_date"],
            note=sanitize_string(data.get("note")),
            payment_method=_payment_value(data.get("payment_method")),
        )
        _assign_client(sess, owner_id, sale, data.get("client_id"))
        sale.lines = _build_lines(sess, owner_id, data["lines"])
        sale.total_amount = _sale_total(sale.lines)
        sess.add(sale)
        sess.flush()
        log_operation(
            logger,
            operation="create_product_sale",
            outcome="success",
            sale_id=sale.uuid,
            lines=len(sale.lines),
            total_amount=str(sale.total_amount),
        )
        return sale

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_product_sale(
    owner_id: str, sale_id: str, session: Optional[Session] = None
) -> ProductSale:
    """
    Get a product sale by stored id.

    Raises:
        ProductSaleNotFound: If the owner has no such sale
    """

    def _impl(sess: Session) -> ProductSale:
        return _get_sale(sess, owner_id, sale_id)

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def list_product_sales(
    owner_id: str,
    client_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Optional[Session] = None,
) -> List[ProductSale]:
    """
    Get the owner's product sales, newest first.

    Args:
        owner_id: Account that owns the records
        client_id: Only sales of this client
        start_date: Only sales on or after this date
        end_date: Only sales on or before this date
        session: Optional database session

    Raises:
        ClientNotFound: If client_id names no client of the owner
    """

    def _impl(sess: Session) -> List[ProductSale]:
        query = sess.query(ProductSale).filter(ProductSale.owner_id == owner_id)

        if client_id:
            client = client_service.get_client(owner_id, client_id, session=sess)
            query = query.filter(ProductSale.client_id == client.id)
        if start_date is not None:
            query = query.filter(ProductSale.sale_date >= start_date)
        if end_date is not None:
            query = query.filter(ProductSale.sale_date <= end_date)

        return query.order_by(ProductSale.sale_date.desc(), ProductSale.id.desc()).all()

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def update_product_sale(
    owner_id: str, sale_id: str, data: Dict, session: Optional[Session] = None
) -> ProductSale:
    """
    Update a product sale.

    Args:
        data: Any of client_id, sale_date, note, payment_method, lines.
            ``lines`` replaces every line and reprices from the catalog where
            no unit price is given.

    Raises:
        ProductSaleNotFound: If the owner has no such sale
        ValidationError: If the data is invalid
    """
    unknown = set(data) - set(SALE_FIELDS)
    if unknown:
        raise ValidationError([f"Cannot update sale field(s): {', '.join(sorted(unknown))}"])

    def _impl(sess: Session) -> ProductSale:
        sale = _get_sale(sess, owner_id, sale_id)

        merged = {
            "sale_date": sale.sale_date,
            "note": sale.note,
            "payment_method": sale.payment_method,
        }
        merged.update(data)
        _check(merged, require_lines=False)

        changes = {}
        if "sale_date" in data:
            changes["sale_date"] = data["sale_date"]
        if "note" in data:
            changes["note"] = sanitize_string(data["note"])
        if "payment_method" in data:
            changes["payment_method"] = _payment_value(data["payment_method"])
        sale.update_from_dict(changes)

        if "client_id" in data:
            _assign_client(sess, owner_id, sale, data["client_id"])
        if "lines" in data:
            sale.lines = _build_lines(sess, owner_id, data["lines"])
            sale.total_amount = _sale_total(sale.lines)

        sess.flush()
        log_operation(
            logger,
            operation="update_product_sale",
            outcome="success",
            sale_id=sale.uuid,
            fields=sorted(data),
        )
        return sale

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def delete_product_sale(owner_id: str, sale_id: str, session: Optional[Session] = None) -> None:
    """
    Delete a product sale and its lines.

    Raises:
        ProductSaleNotFound: If the owner has no such sale
    """

    def _impl(sess: Session) -> None:
        sale = _get_sale(sess, owner_id, sale_id)
        sess.delete(sale)
        sess.flush()
        log_operation(
            logger, operation="delete_product_sale", outcome="success", sale_id=sale_id
        )

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
