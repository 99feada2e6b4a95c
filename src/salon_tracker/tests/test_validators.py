"""
Tests for input validation functions.

Tests cover:
- String and numeric helpers
- Catalog and client data validation
- Visit draft validation, which reports the first problem only, in a fixed order
"""

from datetime import date

import pytest

from salon_tracker.services import visit_draft as vd
from salon_tracker.services.dto import StoredId
from salon_tracker.utils import validators
from salon_tracker.utils.constants import (
    ERROR_VISIT_MATERIAL_GRAMS,
    ERROR_VISIT_MATERIAL_MISSING,
    ERROR_VISIT_MISSING_CLIENT,
    ERROR_VISIT_MISSING_DATE,
    ERROR_VISIT_NO_SERVICES,
    ERROR_VISIT_OXIDANT_MISSING,
    ERROR_VISIT_SERVICE_NAME,
    MAX_NAME_LENGTH,
)


class TestStringValidation:
    def test_validate_required_string(self):
        assert validators.validate_required_string("Jana", "Name") == (True, "")
        is_valid, error = validators.validate_required_string("   ", "Name")
        assert not is_valid
        assert "required" in error.lower()

    def test_validate_string_length(self):
        assert validators.validate_string_length("A" * 10, 10, "Name")[0]
        is_valid, error = validators.validate_string_length("A" * 11, 10, "Name")
        assert not is_valid
        assert "10" in error

    def test_sanitize_string(self):
        assert validators.sanitize_string("  x ") == "x"
        assert validators.sanitize_string("   ") is None
        assert validators.sanitize_string(None) is None


class TestNumericValidation:
    @pytest.mark.parametrize("value", [1, "2.5", 0.1])
    def test_positive_valid(self, value):
        assert validators.validate_positive_number(value)[0]

    @pytest.mark.parametrize("value", [0, -1, "abc", None])
    def test_positive_invalid(self, value):
        assert not validators.validate_positive_number(value)[0]

    def test_non_negative(self):
        assert validators.validate_non_negative_number(0)[0]
        assert not validators.validate_non_negative_number(-0.01)[0]

    def test_number_range(self):
        assert validators.validate_number_range(5, 0, 10)[0]
        assert not validators.validate_number_range(11, 0, 10)[0]

    def test_payment_method(self):
        assert validators.validate_payment_method(None)[0]
        assert validators.validate_payment_method("cash")[0]
        assert not validators.validate_payment_method("card")[0]


class TestCatalogValidation:
    def test_material_valid(self):
        is_valid, errors = validators.validate_catalog_material_data(
            {
                "name": "Majirel",
                "ratio_material": 1,
                "ratio_oxidant": 1.5,
                "input_mode": "shade",
                "alternate_ratios": [(1, 2)],
            }
        )
        assert is_valid
        assert errors == []

    def test_material_collects_all_errors(self):
        is_valid, errors = validators.validate_catalog_material_data(
            {
                "name": "",
                "ratio_material": 0,
                "ratio_oxidant": 1,
                "input_mode": "colour",
                "alternate_ratios": [(1, -2)],
            }
        )
        assert not is_valid
        assert len(errors) == 4

    def test_name_too_long(self):
        is_valid, errors = validators.validate_oxidant_data({"name": "x" * (MAX_NAME_LENGTH + 1)})
        assert not is_valid

    def test_product_price(self):
        assert validators.validate_product_data({"name": "Shampoo", "price": 0})[0]
        assert not validators.validate_product_data({"name": "Shampoo", "price": -1})[0]

    def test_service_template_bowl_count(self):
        assert validators.validate_service_template_data({"name": "Cut", "bowl_count": 0})[0]
        assert not validators.validate_service_template_data({"name": "Cut", "bowl_count": -1})[0]
        assert not validators.validate_service_template_data({"name": "Cut", "bowl_count": 1.5})[0]

    def test_client(self):
        assert validators.validate_client_data({"first_name": "Jana", "last_name": "Novakova"})[0]
        is_valid, errors = validators.validate_client_data({"first_name": "Jana"})
        assert not is_valid
        assert errors[0].startswith("Last name")

    @pytest.mark.parametrize(
        "colour, expected",
        [(None, True), ("#3b82f6", True), ("#ABCDEF", True), ("red", False), ("#12345", False)],
    )
    def test_client_group_colour(self, colour, expected):
        data = {"name": "VIP", "colour": colour}
        assert validators.validate_client_group_data(data)[0] is expected


class TestProductSaleValidation:
    def test_valid_sale(self):
        data = {
            "sale_date": date(2024, 5, 2),
            "payment_method": "qr",
            "lines": [{"product_id": "p1", "quantity": 2, "unit_price": "99.90"}],
        }
        assert validators.validate_product_sale_data(data) == (True, [])

    def test_every_problem_is_reported(self):
        data = {"payment_method": "card", "lines": [{"quantity": 0}, {"product_id": "p1"}]}

        is_valid, errors = validators.validate_product_sale_data(data)

        assert not is_valid
        assert [error.split(":")[0] for error in errors] == [
            "Sale date",
            "Payment method",
            "Product line 1 product",
            "Product line 1 quantity",
        ]

    def test_lines_required_unless_partial(self):
        data = {"sale_date": date(2024, 5, 2)}
        assert not validators.validate_product_sale_data(data)[0]
        assert validators.validate_product_sale_data(data, require_lines=False)[0]
        empty = {**data, "lines": []}
        assert not validators.validate_product_sale_data(empty, require_lines=False)[0]


def complete_draft(lookup):
    """Draft that passes validation: one service, one bowl, one line."""
    draft = vd.new_visit_draft(client_id=StoredId("client-1"), visit_date=date(2024, 3, 1))
    draft = vd.add_service(draft, name="Colour")
    service = draft.services[0]
    bowl = service.bowls[0]
    line = bowl.material_lines[0]
    draft = vd.set_line_material(draft, service.id, bowl.id, line.id, StoredId("tint"), lookup)
    draft = vd.set_line_grams(draft, service.id, bowl.id, line.id, "40", lookup)
    return vd.select_oxidant(draft, service.id, bowl.id, StoredId("ox6"), lookup)


class TestValidateVisitDraft:
    def test_complete_draft_is_valid(self, lookup):
        assert validators.validate_visit_draft(complete_draft(lookup), lookup) is None

    def test_empty_draft_reports_client_first(self):
        assert validators.validate_visit_draft(vd.new_visit_draft()) == ERROR_VISIT_MISSING_CLIENT

    def test_missing_client_wins_over_missing_service_name(self, lookup):
        draft = vd.update_visit_fields(complete_draft(lookup), client_id=None)
        draft = vd.add_service(draft, name="")
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MISSING_CLIENT

    def test_missing_date(self, lookup):
        draft = vd.update_visit_fields(complete_draft(lookup), visit_date=None)
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MISSING_DATE

    def test_no_services(self):
        draft = vd.new_visit_draft(client_id=StoredId("c"), visit_date=date(2024, 3, 1))
        assert validators.validate_visit_draft(draft) == ERROR_VISIT_NO_SERVICES

    def test_service_name_reported_before_materials(self, lookup):
        draft = vd.add_service(complete_draft(lookup), name="  ")
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_SERVICE_NAME

    def test_material_reported_before_grams_and_oxidant(self, lookup):
        draft = vd.add_service(complete_draft(lookup), name="Toner")
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MATERIAL_MISSING

    def test_missing_grams(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        bowl = service.bowls[0]
        line = bowl.material_lines[0]
        draft = vd.set_line_grams(draft, service.id, bowl.id, line.id, "0", lookup)
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MATERIAL_GRAMS

    def test_grams_checked_across_services_before_oxidant(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        bowl = service.bowls[0]
        draft = vd.select_oxidant(draft, service.id, bowl.id, None, lookup)
        draft = vd.add_service(draft, name="Toner")
        toner = draft.services[1]
        toner_bowl = toner.bowls[0]
        toner_line = toner_bowl.material_lines[0]
        draft = vd.set_line_material(
            draft, toner.id, toner_bowl.id, toner_line.id, StoredId("gloss"), lookup
        )
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MATERIAL_GRAMS

    def test_missing_oxidant(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        draft = vd.select_oxidant(draft, service.id, service.bowls[0].id, None, lookup)
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_OXIDANT_MISSING

    def test_bowl_without_lines_needs_no_oxidant(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        draft = vd.add_bowl(draft, service.id)
        empty = draft.services[0].bowls[1]
        draft = vd.remove_material_line(
            draft, service.id, empty.id, empty.material_lines[0].id, lookup
        )
        assert validators.validate_visit_draft(draft, lookup) is None

    def test_service_without_bowls_is_valid(self, lookup):
        draft = vd.add_service(complete_draft(lookup), name="Cut", bowl_count=0)
        assert validators.validate_visit_draft(draft, lookup) is None

    def test_inactive_material_counts_as_missing(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        bowl = service.bowls[0]
        line = bowl.material_lines[0]
        draft = vd.set_line_material(
            draft, service.id, bowl.id, line.id, StoredId("retired"), lookup
        )
        assert validators.validate_visit_draft(draft) is None
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_MATERIAL_MISSING

    def test_inactive_oxidant_counts_as_missing(self, lookup):
        draft = complete_draft(lookup)
        service = draft.services[0]
        draft = vd.select_oxidant(
            draft, service.id, service.bowls[0].id, StoredId("ox_old"), lookup
        )
        assert validators.validate_visit_draft(draft) is None
        assert validators.validate_visit_draft(draft, lookup) == ERROR_VISIT_OXIDANT_MISSING
