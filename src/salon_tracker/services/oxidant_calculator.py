"""
Oxidant calculation for mixing bowls.

A bowl's oxidant grams is the sum over its material lines of
``grams * oxidant_parts / material_parts``, rounded to one decimal. Lines
without a resolvable material or without a positive weight are skipped, so a
half-filled bowl still shows a usable figure while it is being edited.
"""

import math
from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, Iterator, Optional, Tuple, Union

from salon_tracker.services.catalog_lookup import CatalogLookup
from salon_tracker.services.mixing_ratio import resolve_ratio
from salon_tracker.utils.rounding import round_grams

if TYPE_CHECKING:
    from salon_tracker.services.visit_draft import BowlDraft

GramsInput = Union[int, float, Decimal, str, None]


def parse_grams(value: GramsInput) -> Optional[float]:
    """
    Parse a gram quantity typed by the user.

    Args:
        value: Number or text; a decimal comma is accepted ("12,5")

    Returns:
        The weight as a positive float, or None when the value is empty,
        unparseable, zero, negative or not finite.

    Examples:
        >>> parse_grams("12,5")
        12.5
        >>> parse_grams("") is None
        True
        >>> parse_grams(0) is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            grams = float(text)
        except ValueError:
            return None
    else:
        try:
            grams = float(value)
        except (TypeError, ValueError):
            return None

    if not math.isfinite(grams) or grams <= 0:
        return None
    return grams


def _as_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _valid_lines(bowl: "BowlDraft", catalog: CatalogLookup) -> Iterator[Tuple[Decimal, Decimal]]:
    """
    Yield (material grams, oxidant grams) for every line that counts.

    Terms are exact decimals of the typed weight and ratio parts, so their sum
    carries no binary float error into the rounding.
    """
    for line in bowl.material_lines:
        material = catalog.material(line.material_id)
        if material is None:
            continue
        grams = parse_grams(line.grams)
        if grams is None:
            continue
        ratio = resolve_ratio(material, line.ratio)
        material_grams = _as_decimal(grams)
        yield material_grams, (
            material_grams
            * _as_decimal(ratio.oxidant_parts)
            / _as_decimal(ratio.material_parts)
        )


def calculate_oxidant_grams(bowl: "BowlDraft", catalog: CatalogLookup) -> float:
    """
    Oxidant grams required by a bowl.

    Transaction boundary: Pure computation (no database access).

    Args:
        bowl: Bowl draft with its material lines
        catalog: Lookup tables for the editing session

    Returns:
        Oxidant grams rounded to one decimal (half away from zero);
        exactly 0.0 when no line has a resolvable material and positive weight.

    Examples:
        60 g at 1:1 and 30 g at 1:2 -> 60 + 60 = 120.0
    """
    total_material = Decimal(0)
    total_oxidant = Decimal(0)
    for material_grams, oxidant_grams in _valid_lines(bowl, catalog):
        total_material += material_grams
        total_oxidant += oxidant_grams

    if total_material <= 0:
        return 0.0
    return round_grams(total_oxidant)


def recompute_bowl(bowl: "BowlDraft", catalog: CatalogLookup) -> "BowlDraft":
    """
    Return ``bowl`` with its oxidant grams brought in line with its lines.

    Called after every change to a bowl's lines, their material, ratio or
    weight, or the bowl's oxidant selection.
    """
    oxidant_grams = calculate_oxidant_grams(bowl, catalog)
    if oxidant_grams == bowl.oxidant_grams:
        return bowl
    return replace(bowl, oxidant_grams=oxidant_grams)


def total_material_grams(bowl: "BowlDraft", catalog: CatalogLookup) -> float:
    """Material grams of the lines that count towards the oxidant, one decimal."""
    return round_grams(sum((grams for grams, _ in _valid_lines(bowl, catalog)), Decimal(0)))


def bowl_total_grams(bowl: "BowlDraft", catalog: CatalogLookup) -> float:
    """Material plus oxidant grams - the weight of the finished mix."""
    return round_grams(
        _as_decimal(total_material_grams(bowl, catalog)) + _as_decimal(bowl.oxidant_grams)
    )
