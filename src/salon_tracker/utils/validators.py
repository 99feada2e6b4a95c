"""
Input validation functions for the Salon Tracker application.

This module provides validation functions for user inputs including:
- Numeric validation (positive, non-negative, ranges)
- String validation (length, required fields)
- Catalog record validation (materials, oxidants, products, service templates)
- Client group and product sale validation
- Visit draft validation before it is saved
"""

import re
from typing import TYPE_CHECKING, Optional, Tuple

from .constants import (
    ERROR_INVALID_COLOUR,
    ERROR_INVALID_INPUT_MODE,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_PAYMENT_METHOD,
    ERROR_INVALID_POSITIVE,
    ERROR_REQUIRED_FIELD,
    ERROR_SALE_NO_LINES,
    ERROR_VISIT_MATERIAL_GRAMS,
    ERROR_VISIT_MATERIAL_MISSING,
    ERROR_VISIT_MISSING_CLIENT,
    ERROR_VISIT_MISSING_DATE,
    ERROR_VISIT_NO_SERVICES,
    ERROR_VISIT_OXIDANT_MISSING,
    ERROR_VISIT_SERVICE_NAME,
    INPUT_MODES,
    MAX_BOWLS_PER_SERVICE,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_PRICE,
    MAX_SALE_QUANTITY,
    PAYMENT_METHODS,
)

if TYPE_CHECKING:
    from salon_tracker.services.catalog_lookup import CatalogLookup
    from salon_tracker.services.visit_draft import VisitDraft

HEX_COLOUR = re.compile(r"^#[0-9a-fA-F]{6}$")


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Args:
        value: The string value to validate
        max_length: Maximum allowed length
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value <= 0:
            return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_non_negative_number(value: any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < 0:
            return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_number_range(
    value: any, min_value: float, max_value: float, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a number is within a specified range.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        num_value = float(value)
        if num_value < min_value or num_value > max_value:
            return False, f"{field_name}: Must be between {min_value} and {max_value}"
        return True, ""
    except (ValueError, TypeError):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"


def validate_payment_method(value: Optional[str]) -> Tuple[bool, str]:
    """Payment method is optional; when given it must be cash or qr."""
    if value is None or value == "":
        return True, ""
    if str(getattr(value, "value", value)) not in PAYMENT_METHODS:
        return False, f"Payment method: {ERROR_INVALID_PAYMENT_METHOD}"
    return True, ""


def _check_name(data: dict, errors: list, label: str = "Name") -> None:
    is_valid, error = validate_required_string(data.get("name"), label)
    if not is_valid:
        errors.append(error)
        return
    is_valid, error = validate_string_length(data.get("name"), MAX_NAME_LENGTH, label)
    if not is_valid:
        errors.append(error)


def validate_catalog_material_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the fields of a catalog material.

    Args:
        data: Dictionary with name, ratio_material, ratio_oxidant and the
            optional input_mode and alternate_ratios (list of (m, o) pairs)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    _check_name(data, errors)

    for key, label in (("ratio_material", "Material parts"), ("ratio_oxidant", "Oxidant parts")):
        is_valid, error = validate_positive_number(data.get(key), label)
        if not is_valid:
            errors.append(error)

    input_mode = data.get("input_mode")
    if input_mode is not None and str(getattr(input_mode, "value", input_mode)) not in INPUT_MODES:
        errors.append(f"Input mode: {ERROR_INVALID_INPUT_MODE}")

    for index, pair in enumerate(data.get("alternate_ratios") or (), start=1):
        for value, label in zip(pair, ("material parts", "oxidant parts")):
            is_valid, error = validate_positive_number(value, f"Alternate ratio {index} {label}")
            if not is_valid:
                errors.append(error)

    return len(errors) == 0, errors


def validate_oxidant_data(data: dict) -> Tuple[bool, list]:
    """Validate the fields of a catalog oxidant."""
    errors = []
    _check_name(data, errors)
    if data.get("description"):
        is_valid, error = validate_string_length(
            data.get("description"), MAX_DESCRIPTION_LENGTH, "Description"
        )
        if not is_valid:
            errors.append(error)
    return len(errors) == 0, errors


def validate_product_data(data: dict) -> Tuple[bool, list]:
    """Validate the fields of a retail product."""
    errors = []
    _check_name(data, errors)
    is_valid, error = validate_number_range(data.get("price"), 0, MAX_PRICE, "Price")
    if not is_valid:
        errors.append(error)
    return len(errors) == 0, errors


def validate_service_template_data(data: dict) -> Tuple[bool, list]:
    """Validate the fields of a service template (bowl_count 0 means no material)."""
    errors = []
    _check_name(data, errors)
    bowl_count = data.get("bowl_count", 1)
    if isinstance(bowl_count, bool) or not isinstance(bowl_count, int):
        errors.append(f"Bowl count: {ERROR_INVALID_NUMBER}")
    else:
        is_valid, error = validate_number_range(
            bowl_count, 0, MAX_BOWLS_PER_SERVICE, "Bowl count"
        )
        if not is_valid:
            errors.append(error)
    return len(errors) == 0, errors


def validate_client_data(data: dict) -> Tuple[bool, list]:
    """
    Validate the fields of a client.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        is_valid, error = validate_required_string(data.get(key), label)
        if not is_valid:
            errors.append(error)
        else:
            is_valid, error = validate_string_length(data.get(key), MAX_NAME_LENGTH, label)
            if not is_valid:
                errors.append(error)

    if data.get("phone"):
        is_valid, error = validate_string_length(data.get("phone"), MAX_PHONE_LENGTH, "Phone")
        if not is_valid:
            errors.append(error)

    notes = (("note", "Note"), ("allergies", "Allergies"), ("preferences", "Preferences"))
    for key, label in notes:
        if data.get(key):
            is_valid, error = validate_string_length(data.get(key), MAX_NOTES_LENGTH, label)
            if not is_valid:
                errors.append(error)

    return len(errors) == 0, errors


def validate_client_group_data(data: dict) -> Tuple[bool, list]:
    """Validate a client group: a name and an optional ``#rrggbb`` colour."""
    errors = []
    _check_name(data, errors)
    colour = data.get("colour")
    if colour is not None and not HEX_COLOUR.match(str(colour).strip()):
        errors.append(f"Colour: {ERROR_INVALID_COLOUR}")
    return len(errors) == 0, errors


def validate_product_sale_data(data: dict, require_lines: bool = True) -> Tuple[bool, list]:
    """
    Validate a product sale made outside a visit.

    Args:
        data: Dictionary with sale_date, lines and the optional
            payment_method and note. Each line has product_id, quantity and
            an optional unit_price (the product's price is used when missing).
        require_lines: False when only some fields change and lines may be absent

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if data.get("sale_date") is None:
        errors.append(f"Sale date: {ERROR_REQUIRED_FIELD}")

    is_valid, error = validate_payment_method(data.get("payment_method"))
    if not is_valid:
        errors.append(error)

    if data.get("note"):
        is_valid, error = validate_string_length(data.get("note"), MAX_NOTES_LENGTH, "Note")
        if not is_valid:
            errors.append(error)

    if "lines" not in data and not require_lines:
        return len(errors) == 0, errors
    lines = data.get("lines")
    if not lines:
        errors.append(ERROR_SALE_NO_LINES)
        lines = []

    for index, line in enumerate(lines, start=1):
        label = f"Product line {index}"
        if not line.get("product_id"):
            errors.append(f"{label} product: {ERROR_REQUIRED_FIELD}")

        quantity = line.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            errors.append(f"{label} quantity: {ERROR_INVALID_NUMBER}")
        else:
            is_valid, error = validate_number_range(
                quantity, 1, MAX_SALE_QUANTITY, f"{label} quantity"
            )
            if not is_valid:
                errors.append(error)

        if line.get("unit_price") is not None:
            is_valid, error = validate_number_range(
                line["unit_price"], 0, MAX_PRICE, f"{label} price"
            )
            if not is_valid:
                errors.append(error)

    return len(errors) == 0, errors


def validate_visit_draft(
    draft: "VisitDraft", catalog: Optional["CatalogLookup"] = None
) -> Optional[str]:
    """
    Check a visit draft right before it is saved.

    Only the first problem is reported, in this order: client, date, at least
    one service, service names, line materials, line weights, bowl oxidants.
    Each check runs across the whole tree before the next one starts.

    Transaction boundary: Pure computation (no database access).

    Args:
        draft: Visit draft to check
        catalog: When given, a material or oxidant that is unknown or inactive
            counts as not selected

    Returns:
        The message for the first violation, or None when the draft can be saved
    """
    # Deferred: salon_tracker.services imports this module
    from salon_tracker.services.oxidant_calculator import parse_grams

    if not draft.client_id:
        return ERROR_VISIT_MISSING_CLIENT
    if draft.visit_date is None:
        return ERROR_VISIT_MISSING_DATE
    if not draft.services:
        return ERROR_VISIT_NO_SERVICES

    if any(not (service.name or "").strip() for service in draft.services):
        return ERROR_VISIT_SERVICE_NAME

    bowls = [bowl for service in draft.services for bowl in service.bowls]
    lines = [line for bowl in bowls for line in bowl.material_lines]

    for line in lines:
        if not line.material_id:
            return ERROR_VISIT_MATERIAL_MISSING
        if catalog is not None and catalog.material(line.material_id) is None:
            return ERROR_VISIT_MATERIAL_MISSING

    if any(parse_grams(line.grams) is None for line in lines):
        return ERROR_VISIT_MATERIAL_GRAMS

    for bowl in bowls:
        if not bowl.material_lines:
            continue
        if not bowl.oxidant_id:
            return ERROR_VISIT_OXIDANT_MISSING
        if catalog is not None and catalog.oxidant(bowl.oxidant_id) is None:
            return ERROR_VISIT_OXIDANT_MISSING

    return None


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string value by stripping whitespace and converting empty strings to None.

    Args:
        value: The string value to sanitize

    Returns:
        Sanitized string or None
    """
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None
