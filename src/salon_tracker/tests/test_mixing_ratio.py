"""Tests for mixing ratios and their resolution."""

import math

import pytest

from salon_tracker.services.catalog_lookup import CatalogMaterial
from salon_tracker.services.dto import StoredId
from salon_tracker.services.mixing_ratio import MixingRatio, parse_ratio, resolve_ratio


@pytest.fixture
def material():
    return CatalogMaterial(
        id=StoredId("tint"),
        name="Majirel",
        default_ratio=MixingRatio(1, 1.5),
        alternate_ratios=(MixingRatio(1, 2),),
    )


class TestMixingRatio:
    def test_parts_are_stored_as_floats(self):
        ratio = MixingRatio(1, 2)
        assert ratio.material_parts == 1.0
        assert ratio.oxidant_parts == 2.0
        assert ratio == MixingRatio(1.0, 2.0)

    @pytest.mark.parametrize(
        "material_parts,oxidant_parts",
        [(0, 1), (1, 0), (-1, 2), (1, math.nan), (math.inf, 1), ("x", 1), (True, 1), (None, 1)],
    )
    def test_invalid_parts_rejected(self, material_parts, oxidant_parts):
        with pytest.raises(ValueError):
            MixingRatio(material_parts, oxidant_parts)

    def test_oxidant_for(self):
        assert MixingRatio(1, 1.5).oxidant_for(40) == pytest.approx(60.0)
        assert MixingRatio(2, 1).oxidant_for(30) == pytest.approx(15.0)

    def test_str(self):
        assert str(MixingRatio(1, 1.5)) == "1:1.5"
        assert str(MixingRatio(1, 2)) == "1:2"


class TestParseRatio:
    def test_parse_plain(self):
        assert parse_ratio("1:2") == MixingRatio(1, 2)

    def test_parse_decimal_comma_and_spaces(self):
        assert parse_ratio(" 1 : 1,5 ") == MixingRatio(1, 1.5)

    @pytest.mark.parametrize("text", ["1", "1:2:3", "a:b", "0:1", ""])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            parse_ratio(text)


class TestResolveRatio:
    def test_no_request_gives_default(self, material):
        assert resolve_ratio(material) == MixingRatio(1, 1.5)

    def test_alternate_ratio_is_kept(self, material):
        assert resolve_ratio(material, MixingRatio(1, 2)) == MixingRatio(1, 2)

    def test_default_ratio_is_kept(self, material):
        assert resolve_ratio(material, MixingRatio(1, 1.5)) == MixingRatio(1, 1.5)

    def test_ratio_not_offered_falls_back_to_default(self, material):
        assert resolve_ratio(material, MixingRatio(1, 3)) == MixingRatio(1, 1.5)

    def test_material_ratios_lists_default_first(self, material):
        assert material.ratios == (MixingRatio(1, 1.5), MixingRatio(1, 2))
