"""Unit tests for product_sale_service.

Tests cover:
- Recording sales with catalog or explicit prices
- Name and price snapshots
- Validation (lines, quantities, payment method, inactive products)
- Listing with client and date filters
- Updating and deleting sales
"""

from datetime import date
from decimal import Decimal

import pytest

from salon_tracker.models import ProductSale, ProductSaleLine
from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services import catalog_service, client_service, product_sale_service
from salon_tracker.services.exceptions import (
    ClientNotFound,
    ProductNotFound,
    ProductSaleNotFound,
    ValidationError,
)

OWNER = "owner-1"
OTHER_OWNER = "owner-2"

DAY = date(2024, 5, 2)


@pytest.fixture
def mask(test_db):
    return catalog_service.create_product(OWNER, "Mask", "420.50")


def sale_data(*lines, **fields):
    data = {"sale_date": DAY, "lines": list(lines)}
    data.update(fields)
    return data


class TestCreateProductSale:
    def test_lines_priced_from_catalog(self, sample_client, sample_catalog, mask):
        sale = product_sale_service.create_product_sale(
            OWNER,
            sale_data(
                {"product_id": sample_catalog.shampoo.uuid, "quantity": 2},
                {"product_id": mask.uuid},
                client_id=sample_client.uuid,
                payment_method=PaymentMethod.CASH,
                note="  Birthday gift ",
            ),
        )

        assert sale.client_name == "Jana Novakova"
        assert sale.payment_method == "cash"
        assert sale.note == "Birthday gift"
        assert [(line.position, line.product_name, line.quantity) for line in sale.lines] == [
            (1, "Shampoo", 2),
            (2, "Mask", 1),
        ]
        assert sale.lines[1].unit_price == Decimal("420.50")
        assert sale.total_amount == Decimal("920.50")

    def test_explicit_unit_price_wins(self, sample_catalog):
        sale = product_sale_service.create_product_sale(
            OWNER,
            sale_data({"product_id": sample_catalog.shampoo.uuid, "unit_price": "199.999"}),
        )

        assert sale.lines[0].unit_price == Decimal("200.00")
        assert sale.total_amount == Decimal("200.00")

    def test_anonymous_sale(self, sample_catalog):
        sale = product_sale_service.create_product_sale(
            OWNER, sale_data({"product_id": sample_catalog.shampoo.uuid})
        )

        assert sale.client_id is None
        assert sale.client_name is None
        assert sale.payment_method is None

    @pytest.mark.parametrize(
        "line, fields, message",
        [
            (None, {}, "Add at least one product"),
            ({"quantity": 0}, {}, "quantity"),
            ({"quantity": 1.5}, {}, "quantity"),
            ({"unit_price": "-1"}, {}, "price"),
            ({}, {"payment_method": "card"}, "Payment method"),
            ({}, {"sale_date": None}, "Sale date"),
        ],
    )
    def test_invalid_sale_writes_nothing(self, test_db, sample_catalog, line, fields, message):
        lines = [] if line is None else [{"product_id": sample_catalog.shampoo.uuid, **line}]
        data = {"sale_date": DAY, "lines": lines, **fields}

        with pytest.raises(ValidationError) as exc:
            product_sale_service.create_product_sale(OWNER, data)

        assert message in str(exc.value)
        assert test_db().query(ProductSale).count() == 0

    def test_inactive_product_is_rejected(self, test_db, sample_catalog):
        catalog_service.deactivate_product(OWNER, sample_catalog.shampoo.uuid)

        with pytest.raises(ValidationError) as exc:
            product_sale_service.create_product_sale(
                OWNER, sale_data({"product_id": sample_catalog.shampoo.uuid})
            )
        assert "not available" in str(exc.value)
        assert test_db().query(ProductSaleLine).count() == 0

    def test_foreign_product_and_client_are_rejected(self, test_db, sample_client, sample_catalog):
        foreign = catalog_service.create_product(OTHER_OWNER, "Spray", "300")
        with pytest.raises(ProductNotFound):
            product_sale_service.create_product_sale(
                OWNER, sale_data({"product_id": foreign.uuid})
            )

        with pytest.raises(ClientNotFound):
            product_sale_service.create_product_sale(
                OTHER_OWNER,
                sale_data({"product_id": foreign.uuid}, client_id=sample_client.uuid),
            )
        assert test_db().query(ProductSale).count() == 0

    def test_catalog_changes_do_not_touch_stored_sale(self, sample_client, sample_catalog):
        sale = product_sale_service.create_product_sale(
            OWNER,
            sale_data({"product_id": sample_catalog.shampoo.uuid}, client_id=sample_client.uuid),
        )

        catalog_service.update_product(
            OWNER, sample_catalog.shampoo.uuid, {"name": "Shampoo XL", "price": "300"}
        )
        client_service.update_client(OWNER, sample_client.uuid, {"last_name": "Mala"})

        stored = product_sale_service.get_product_sale(OWNER, sale.uuid)
        assert stored.client_name == "Jana Novakova"
        assert (stored.lines[0].product_name, stored.lines[0].unit_price) == (
            "Shampoo",
            Decimal("250.00"),
        )


class TestListProductSales:
    @pytest.fixture
    def sales(self, sample_client, sample_catalog):
        shampoo = sample_catalog.shampoo.uuid
        ids = {}
        for key, day, client in [
            ("jan", date(2024, 1, 10), sample_client.uuid),
            ("mar", date(2024, 3, 10), None),
            ("feb", date(2024, 2, 10), sample_client.uuid),
        ]:
            sale = product_sale_service.create_product_sale(
                OWNER, {"sale_date": day, "client_id": client, "lines": [{"product_id": shampoo}]}
            )
            ids[key] = sale.uuid
        return ids

    def test_newest_first(self, sales):
        result = product_sale_service.list_product_sales(OWNER)
        assert [s.uuid for s in result] == [sales["mar"], sales["feb"], sales["jan"]]

    def test_filter_by_client(self, sales, sample_client):
        result = product_sale_service.list_product_sales(OWNER, client_id=sample_client.uuid)
        assert [s.uuid for s in result] == [sales["feb"], sales["jan"]]

    def test_date_range(self, sales):
        result = product_sale_service.list_product_sales(
            OWNER, start_date=date(2024, 2, 1), end_date=date(2024, 3, 10)
        )
        assert [s.uuid for s in result] == [sales["mar"], sales["feb"]]

    def test_other_owner_sees_nothing(self, sales):
        assert product_sale_service.list_product_sales(OTHER_OWNER) == []


class TestUpdateAndDeleteProductSale:
    @pytest.fixture
    def sale(self, sample_client, sample_catalog):
        return product_sale_service.create_product_sale(
            OWNER,
            sale_data(
                {"product_id": sample_catalog.shampoo.uuid, "quantity": 2},
                client_id=sample_client.uuid,
            ),
        )

    def test_record_payment_later(self, sale):
        updated = product_sale_service.update_product_sale(
            OWNER, sale.uuid, {"payment_method": "qr", "note": "Paid by phone"}
        )

        assert updated.payment_method == "qr"
        assert updated.note == "Paid by phone"
        assert updated.total_amount == Decimal("500.00")

    def test_replacing_lines_recomputes_total(self, test_db, sale, mask):
        updated = product_sale_service.update_product_sale(
            OWNER, sale.uuid, {"lines": [{"product_id": mask.uuid, "quantity": 3}]}
        )

        assert [line.product_name for line in updated.lines] == ["Mask"]
        assert updated.total_amount == Decimal("1261.50")
        assert test_db().query(ProductSaleLine).count() == 1

    def test_removing_the_client(self, sale):
        updated = product_sale_service.update_product_sale(OWNER, sale.uuid, {"client_id": None})
        assert (updated.client_id, updated.client_name) == (None, None)

    @pytest.mark.parametrize(
        "changes",
        [{"lines": []}, {"lines": None}, {"payment_method": "card"}, {"total_amount": "1"}],
    )
    def test_rejected_updates(self, sale, changes):
        with pytest.raises(ValidationError):
            product_sale_service.update_product_sale(OWNER, sale.uuid, changes)
        assert product_sale_service.get_product_sale(OWNER, sale.uuid).total_amount == Decimal(
            "500.00"
        )

    def test_update_missing_sale(self, test_db):
        with pytest.raises(ProductSaleNotFound):
            product_sale_service.update_product_sale(OWNER, "missing", {"note": "x"})

    def test_delete_removes_lines(self, test_db, sale):
        product_sale_service.delete_product_sale(OWNER, sale.uuid)

        assert test_db().query(ProductSale).count() == 0
        assert test_db().query(ProductSaleLine).count() == 0
        with pytest.raises(ProductSaleNotFound):
            product_sale_service.get_product_sale(OWNER, sale.uuid)

    def test_delete_other_owner_refused(self, sale):
        with pytest.raises(ProductSaleNotFound):
            product_sale_service.delete_product_sale(OTHER_OWNER, sale.uuid)

    def test_deleting_the_client_keeps_the_sale(self, sale, sample_client):
        client_service.delete_client(OWNER, sample_client.uuid)

        stored = product_sale_service.get_product_sale(OWNER, sale.uuid)
        assert stored.client_id is None
        assert stored.client_name == "Jana Novakova"
