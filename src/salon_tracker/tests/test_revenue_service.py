"""Tests for the cash register and monthly revenue reports."""

from datetime import date
from decimal import Decimal

import pytest

from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services import (
    product_sale_service,
    revenue_service,
    visit_draft as vd,
    visit_service,
)
from salon_tracker.services.revenue_service import PaymentTotal

OWNER = "owner-1"
OTHER_OWNER = "owner-2"

DAY = date(2024, 5, 2)


def record_visit(client, catalog, visit_date, amount, payment=None, shampoo=None):
    draft = vd.new_visit_draft(client_id=client.uuid, visit_date=visit_date, payment_method=payment)
    draft = vd.add_service(draft, name="Cut", bowl_count=0)
    draft = vd.update_visit_fields(draft, service_amount=amount)
    if shampoo is not None:
        draft = vd.add_product_line(draft, shampoo.uuid, catalog)
    return visit_service.save_visit_draft(OWNER, draft, catalog)


def record_sale(product, sale_date, quantity=1, payment=None):
    return product_sale_service.create_product_sale(
        OWNER,
        {
            "sale_date": sale_date,
            "payment_method": payment,
            "lines": [{"product_id": product.uuid, "quantity": quantity}],
        },
    )


@pytest.fixture
def day_of_visits(sample_client, sample_catalog, db_catalog):
    record_visit(sample_client, db_catalog, DAY, "500", PaymentMethod.CASH)
    record_visit(sample_client, db_catalog, DAY, "700", PaymentMethod.CASH)
    record_visit(sample_client, db_catalog, DAY, "300", PaymentMethod.QR, sample_catalog.shampoo)
    record_visit(sample_client, db_catalog, DAY, "450")
    record_visit(sample_client, db_catalog, date(2024, 5, 3), "999", PaymentMethod.CASH)


class TestCashRegisterSummary:
    def test_totals_per_payment_method(self, day_of_visits):
        summary = revenue_service.get_cash_register_summary(OWNER, DAY)

        assert summary.day == DAY
        assert summary.by_method[PaymentMethod.CASH] == PaymentTotal(
            PaymentMethod.CASH, 2, Decimal("1200.00")
        )
        assert summary.by_method[PaymentMethod.QR].total_amount == Decimal("550.00")
        assert summary.by_method[None] == PaymentTotal(None, 1, Decimal("450.00"))
        assert summary.visit_count == 3
        assert summary.total_amount == Decimal("1750.00")

    def test_unpaid_visits_stay_out_of_the_total(self, sample_client, db_catalog):
        record_visit(sample_client, db_catalog, DAY, "500", PaymentMethod.CASH)
        record_visit(sample_client, db_catalog, DAY, "450")

        summary = revenue_service.get_cash_register_summary(OWNER, DAY)

        assert summary.total_amount == Decimal("500.00")
        assert summary.visit_count == 1
        assert summary.unpaid.visit_count == 1
        assert summary.unpaid.total_amount == Decimal("450.00")

    def test_empty_day_has_zero_entries(self, test_db):
        summary = revenue_service.get_cash_register_summary(OWNER, DAY)

        assert set(summary.by_method) == {PaymentMethod.CASH, PaymentMethod.QR, None}
        assert summary.visit_count == 0
        assert summary.total_amount == Decimal("0.00")

    def test_other_owner_is_excluded(self, day_of_visits):
        assert revenue_service.get_cash_register_summary(OTHER_OWNER, DAY).visit_count == 0

    def test_payment_recorded_later_moves_the_visit(self, sample_client, db_catalog):
        visit_id = record_visit(sample_client, db_catalog, DAY, "400")
        visit_service.update_visit(OWNER, visit_id, {"payment_method": "qr"})

        summary = revenue_service.get_cash_register_summary(OWNER, DAY)
        assert summary.by_method[None].visit_count == 0
        assert summary.by_method[PaymentMethod.QR].total_amount == Decimal("400.00")

    def test_product_sales_are_counted_by_payment_method(self, day_of_visits, sample_catalog):
        record_sale(sample_catalog.shampoo, DAY, 2, PaymentMethod.QR)
        record_sale(sample_catalog.shampoo, DAY)
        record_sale(sample_catalog.shampoo, date(2024, 5, 3), 1, PaymentMethod.CASH)

        summary = revenue_service.get_cash_register_summary(OWNER, DAY)

        assert summary.by_method[PaymentMethod.QR] == PaymentTotal(
            PaymentMethod.QR, 1, Decimal("1050.00"), 1
        )
        assert summary.unpaid == PaymentTotal(None, 1, Decimal("700.00"), 1)
        assert summary.visit_count == 3
        assert summary.sale_count == 1
        assert summary.total_amount == Decimal("2250.00")


class TestMonthlyRevenue:
    def test_twelve_months_with_zeros(self, day_of_visits, sample_client, db_catalog):
        record_visit(sample_client, db_catalog, date(2024, 1, 20), "800", PaymentMethod.CASH)
        record_visit(sample_client, db_catalog, date(2023, 5, 20), "100", PaymentMethod.CASH)

        months = revenue_service.get_monthly_revenue(OWNER, 2024)

        assert [m.month for m in months] == list(range(1, 13))
        assert months[0].visit_count == 1
        assert months[0].total_amount == Decimal("800.00")
        may = months[4]
        assert may.visit_count == 5
        assert may.service_amount == Decimal("2949.00")
        assert may.product_amount == Decimal("250.00")
        assert may.total_amount == Decimal("3199.00")
        assert months[1].visit_count == 0
        assert months[11].total_amount == Decimal("0.00")

    def test_product_sales_add_to_product_revenue(self, day_of_visits, sample_catalog):
        record_sale(sample_catalog.shampoo, date(2024, 5, 20), 2, PaymentMethod.CASH)
        record_sale(sample_catalog.shampoo, date(2024, 6, 1))

        months = revenue_service.get_monthly_revenue(OWNER, 2024)

        may, june = months[4], months[5]
        assert may.visit_count == 5
        assert may.sale_count == 1
        assert may.service_amount == Decimal("2949.00")
        assert may.product_amount == Decimal("750.00")
        assert may.total_amount == Decimal("3699.00")
        assert (june.visit_count, june.sale_count) == (0, 1)
        assert june.total_amount == Decimal("250.00")
