"""
Constants for the Salon Tracker application.

This module defines all system-wide constants including:
- Application metadata
- Payment methods and material input modes
- Rounding precision for recipe and money amounts
- Validation limits and user-facing messages
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Salon Tracker"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"

# ============================================================================
# Payment Methods
# ============================================================================

PAYMENT_CASH = "cash"
PAYMENT_QR = "qr"

PAYMENT_METHODS: List[str] = [PAYMENT_CASH, PAYMENT_QR]

# ============================================================================
# Material Input Modes
# ============================================================================

# Shade is entered as free text ("7/1 ash blonde") or as a numeric code ("7.1")
INPUT_MODE_SHADE = "shade"
INPUT_MODE_NUMBER = "number"

INPUT_MODES: List[str] = [INPUT_MODE_SHADE, INPUT_MODE_NUMBER]

# ============================================================================
# Validation Constants
# ============================================================================

# String length limits
MAX_NAME_LENGTH = 200
MAX_SHADE_LABEL_LENGTH = 100
MAX_PHONE_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 2000

# Numeric limits
MAX_GRAMS = 9999.9
MAX_BOWLS_PER_SERVICE = 20
MAX_PRICE = 999999.99
MAX_SALE_QUANTITY = 999

# Decimal precision
OXIDANT_DECIMAL_PLACES = 1
CURRENCY_DECIMAL_PLACES = 2

# ============================================================================
# Database Constants
# ============================================================================

DATABASE_FILENAME = "salon_tracker.db"

# ============================================================================
# Client Groups
# ============================================================================

# Groups are shown as coloured tags; new groups get this colour unless one is chosen
DEFAULT_GROUP_COLOUR = "#3b82f6"

# ============================================================================
# Date/Time Formats
# ============================================================================

DATE_FORMAT = "%Y-%m-%d"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"
ERROR_INVALID_INPUT_MODE = "Input mode must be 'shade' or 'number'"
ERROR_INVALID_PAYMENT_METHOD = "Payment method must be 'cash' or 'qr'"
ERROR_INVALID_COLOUR = "Colour must be a hex value such as #3b82f6"
ERROR_SALE_NO_LINES = "Add at least one product"

# Visit validation, reported one at a time in this order
ERROR_VISIT_MISSING_CLIENT = "Select a client"
ERROR_VISIT_MISSING_DATE = "Enter the visit date"
ERROR_VISIT_NO_SERVICES = "Add at least one service"
ERROR_VISIT_SERVICE_NAME = "Fill in the name of every service"
ERROR_VISIT_MATERIAL_MISSING = "Select a material for every line"
ERROR_VISIT_MATERIAL_GRAMS = "Enter the material weight in grams"
ERROR_VISIT_OXIDANT_MISSING = "Select an oxidant for every bowl"
