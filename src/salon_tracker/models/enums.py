"""
Enumerations shared by models and services.

- InputMode: how a material's shade is entered on a material line
- PaymentMethod: how a visit was paid
"""

from enum import Enum


class InputMode(str, Enum):
    """
    How the shade of a material is entered.

    Values:
        SHADE: Free-text shade label (e.g., "7/1 ash blonde")
        NUMBER: Numeric shade code (e.g., "7.1")
    """

    SHADE = "shade"
    NUMBER = "number"


class PaymentMethod(str, Enum):
    """
    Payment method recorded on a visit.

    Values:
        CASH: Paid in cash at the register
        QR: Paid by QR-code bank transfer
    """

    CASH = "cash"
    QR = "qr"
