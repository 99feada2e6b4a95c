"""Tests for the visit payload records and pagination."""

from datetime import date
from decimal import Decimal

import pytest

from salon_tracker.services.dto import (
    BowlPayload,
    MaterialLinePayload,
    PaginatedResult,
    PaginationParams,
    ProductLinePayload,
    ServicePayload,
    VisitPayload,
)
from salon_tracker.services.mixing_ratio import MixingRatio
from salon_tracker.utils.constants import MAX_GRAMS, MAX_SHADE_LABEL_LENGTH


def line(**overrides):
    values = dict(material_id="m1", material_name="Majirel", ratio=MixingRatio(1, 1), grams=40)
    values.update(overrides)
    return MaterialLinePayload(**values)


class TestMaterialLinePayload:
    def test_normalizes_values(self):
        payload = line(grams="12.5", shade_label="  7/1 ")
        assert payload.grams == 12.5
        assert payload.shade_label == "7/1"

    @pytest.mark.parametrize("grams", [0, -1, float("nan"), MAX_GRAMS + 0.1])
    def test_rejects_weight_out_of_range(self, grams):
        with pytest.raises(ValueError):
            line(grams=grams)

    def test_accepts_maximum_weight(self):
        assert line(grams=MAX_GRAMS).grams == MAX_GRAMS

    def test_rejects_long_shade_label(self):
        with pytest.raises(ValueError, match="Shade label"):
            line(shade_label="7" * (MAX_SHADE_LABEL_LENGTH + 1))

    def test_needs_resolved_ratio(self):
        with pytest.raises(ValueError):
            line(ratio=(1, 2))


class TestTreePayloads:
    def test_bowl_with_lines_needs_oxidant(self):
        with pytest.raises(ValueError):
            BowlPayload(
                oxidant_id=None, oxidant_name=None, oxidant_grams=40.0, material_lines=[line()]
            )

    def test_service_name_is_stripped_and_required(self):
        assert ServicePayload(name="  Colour ").name == "Colour"
        with pytest.raises(ValueError):
            ServicePayload(name="  ")

    def test_product_line_rules(self):
        product = ProductLinePayload("p1", "Shampoo", "2", "125.50")
        assert product.line_total == Decimal("251.00")
        with pytest.raises(ValueError):
            ProductLinePayload("p1", "Shampoo", 0, "1")
        with pytest.raises(ValueError):
            ProductLinePayload("p1", "Shampoo", 1, "-1")

    def test_visit_amounts_and_count(self):
        bowl = BowlPayload("ox", "6%", 40.0, [line(), line(material_id="m2")])
        visit = VisitPayload(
            client_id="c1",
            visit_date=date(2024, 5, 2),
            services=[ServicePayload("Colour", [bowl])],
            products=[ProductLinePayload("p1", "Shampoo", 2, "250")],
            service_amount="900",
        )
        assert visit.product_amount == Decimal("500")
        assert visit.total_amount == Decimal("1400")
        assert visit.document_count == 6

    def test_visit_needs_a_service(self):
        with pytest.raises(ValueError):
            VisitPayload(client_id="c1", visit_date=date(2024, 5, 2), services=[])


class TestPagination:
    def test_offset(self):
        assert PaginationParams(page=3, per_page=25).offset() == 50

    @pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (1, 1001)])
    def test_invalid_params(self, page, per_page):
        with pytest.raises(ValueError):
            PaginationParams(page=page, per_page=per_page)

    def test_pages(self):
        assert PaginatedResult(items=[], total=0, page=1, per_page=10).pages == 1
        result = PaginatedResult(items=[], total=21, page=2, per_page=10)
        assert result.pages == 3
        assert result.has_next and result.has_prev
