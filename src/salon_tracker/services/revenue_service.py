"""
Revenue Service - daily cash register and monthly revenue.

Both reports read the amounts stored on the visit and product sale rows;
they never recompute anything from the recipe tree.

The cash register counts only what was actually paid (cash or QR). Visits
and sales without a payment method are reported on their own line and stay
out of the day's total. The monthly revenue counts every visit and sale.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from salon_tracker.models import ProductSale, Visit
from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services.database import session_scope
from salon_tracker.services.logging_utils import get_service_logger
from salon_tracker.utils.rounding import round_money

logger = get_service_logger(__name__)

ZERO = Decimal("0.00")

PAID_METHODS = (PaymentMethod.CASH, PaymentMethod.QR)


@dataclass(frozen=True)
class PaymentTotal:
    """Visits and sales of one day paid one way. ``payment_method`` None means not yet recorded."""

    payment_method: Optional[PaymentMethod]
    visit_count: int = 0
    total_amount: Decimal = ZERO
    sale_count: int = 0


@dataclass(frozen=True)
class CashRegisterSummary:
    """
    One day at the register.

    ``visit_count``, ``sale_count`` and ``total_amount`` cover cash and QR
    only; ``unpaid`` holds what has no payment method yet.
    """

    day: date
    by_method: Dict[Optional[PaymentMethod], PaymentTotal] = field(default_factory=dict)

    def _paid(self) -> List[PaymentTotal]:
        return [self.by_method[method] for method in PAID_METHODS if method in self.by_method]

    @property
    def visit_count(self) -> int:
        return sum(line.visit_count for line in self._paid())

    @property
    def sale_count(self) -> int:
        return sum(line.sale_count for line in self._paid())

    @property
    def total_amount(self) -> Decimal:
        return round_money(sum((line.total_amount for line in self._paid()), ZERO))

    @property
    def unpaid(self) -> PaymentTotal:
        return self.by_method.get(None, PaymentTotal(None))


@dataclass(frozen=True)
class MonthlyRevenue:
    month: int
    visit_count: int = 0
    service_amount: Decimal = ZERO
    product_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    sale_count: int = 0


def _money(value) -> Decimal:
    return round_money(value) if value is not None else ZERO


def _method(value) -> Optional[PaymentMethod]:
    return PaymentMethod(value) if value else None


def get_cash_register_summary(
    owner_id: str, day: date, session: Optional[Session] = None
) -> CashRegisterSummary:
    """
    Totals of one day's visits and product sales per payment method.

    Args:
        owner_id: Account that owns the records
        day: Date to summarize
        session: Optional database session

    Returns:
        CashRegisterSummary with an entry for cash, qr and unassigned (None),
        each present even when it has nothing in it
    """

    def _impl(sess: Session) -> CashRegisterSummary:
        visit_rows = (
            sess.query(
                Visit.payment_method,
                func.count(Visit.id),
                func.sum(Visit.total_amount),
            )
            .filter(Visit.owner_id == owner_id, Visit.visit_date == day)
            .group_by(Visit.payment_method)
            .all()
        )
        sale_rows = (
            sess.query(
                ProductSale.payment_method,
                func.count(ProductSale.id),
                func.sum(ProductSale.total_amount),
            )
            .filter(ProductSale.owner_id == owner_id, ProductSale.sale_date == day)
            .group_by(ProductSale.payment_method)
            .all()
        )

        visits = {_method(m): (count, _money(total)) for m, count, total in visit_rows}
        sales = {_method(m): (count, _money(total)) for m, count, total in sale_rows}

        by_method = {}
        for method in (*PaymentMethod, None):
            visit_count, visit_total = visits.get(method, (0, ZERO))
            sale_count, sale_total = sales.get(method, (0, ZERO))
            by_method[method] = PaymentTotal(
                method, visit_count, round_money(visit_total + sale_total), sale_count
            )

        summary = CashRegisterSummary(day=day, by_method=by_method)
        logger.debug(
            "Cash register summary",
            extra={
                "day": day.isoformat(),
                "visits": summary.visit_count,
                "sales": summary.sale_count,
                "unpaid": summary.unpaid.visit_count + summary.unpaid.sale_count,
            },
        )
        return summary

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)


def get_monthly_revenue(
    owner_id: str, year: int, session: Optional[Session] = None
) -> List[MonthlyRevenue]:
    """
    Revenue of every month of ``year``.

    Product sales made outside visits count as product revenue of their month.

    Returns:
        Twelve MonthlyRevenue rows (January first); months without visits
        or sales are zero
    """

    def _impl(sess: Session) -> List[MonthlyRevenue]:
        first_day, last_day = date(year, 1, 1), date(year, 12, 31)

        visit_month = extract("month", Visit.visit_date)
        visit_rows = (
            sess.query(
                visit_month,
                func.count(Visit.id),
                func.sum(Visit.service_amount),
                func.sum(Visit.product_amount),
                func.sum(Visit.total_amount),
            )
            .filter(
                Visit.owner_id == owner_id,
                Visit.visit_date >= first_day,
                Visit.visit_date <= last_day,
            )
            .group_by(visit_month)
            .all()
        )

        sale_month = extract("month", ProductSale.sale_date)
        sale_rows = (
            sess.query(
                sale_month,
                func.count(ProductSale.id),
                func.sum(ProductSale.total_amount),
            )
            .filter(
                ProductSale.owner_id == owner_id,
                ProductSale.sale_date >= first_day,
                ProductSale.sale_date <= last_day,
            )
            .group_by(sale_month)
            .all()
        )
        sales = {int(number): (count, _money(total)) for number, count, total in sale_rows}

        visits = {
            int(number): (count, _money(services), _money(products), _money(total))
            for number, count, services, products, total in visit_rows
        }

        months = []
        for number in range(1, 13):
            visit_count, services, products, total = visits.get(number, (0, ZERO, ZERO, ZERO))
            sale_count, sale_total = sales.get(number, (0, ZERO))
            months.append(
                MonthlyRevenue(
                    month=number,
                    visit_count=visit_count,
                    service_amount=services,
                    product_amount=round_money(products + sale_total),
                    total_amount=round_money(total + sale_total),
                    sale_count=sale_count,
                )
            )
        return months

    if session is not None:
        return _impl(session)

    with session_scope() as sess:
        return _impl(sess)
