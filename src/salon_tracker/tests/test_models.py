"""Tests for the shared model behaviour."""

from decimal import Decimal

from salon_tracker.models import Product, Visit
from salon_tracker.models.enums import PaymentMethod


def test_new_rows_get_string_uuid(test_db):
    session = test_db()
    product = Product(owner_id="owner-1", name="Shampoo", price=Decimal("250.00"))
    session.add(product)
    session.flush()
    assert isinstance(product.uuid, str)
    assert len(product.uuid) == 36


def test_to_dict_exposes_stored_id_only(test_db):
    session = test_db()
    product = Product(owner_id="owner-1", name="Shampoo", price=Decimal("250.00"))
    session.add(product)
    session.flush()

    data = product.to_dict()
    assert data["id"] == product.uuid
    assert "uuid" not in data
    assert data["price"] == "250.00"
    assert data["name"] == "Shampoo"
    assert isinstance(data["created_at"], str)


def test_to_dict_skips_integer_foreign_keys():
    visit = Visit(owner_id="owner-1", client_id=7, payment_method=PaymentMethod.QR.value)
    data = visit.to_dict()
    assert "client_id" not in data
    assert data["owner_id"] == "owner-1"
    assert data["payment_method"] == "qr"


def test_update_from_dict_protects_identity():
    product = Product(owner_id="owner-1", name="Shampoo", uuid="fixed-uuid")
    product.update_from_dict(
        {"name": "Mask", "uuid": "other", "owner_id": "owner-2", "id": 99, "colour": "red"}
    )
    assert product.name == "Mask"
    assert product.uuid == "fixed-uuid"
    assert product.owner_id == "owner-1"
    assert product.id is None
    assert product.updated_at is not None
