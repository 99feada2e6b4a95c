"""Data Transfer Objects for the service layer.

This module provides type-safe records that cross the persistence boundary:

- StoredId: identity of a persisted row (its uuid), distinct from draft ids
- Payload records: what ``visit_service.create_visit`` writes, one record type
  per tree level, each checking its own invariants on construction
- Read records: what visit reads return, detached from any session
- Pagination parameters and results for list operations
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Generic, List, NewType, Optional, Tuple, TypeVar

from salon_tracker.models.enums import PaymentMethod
from salon_tracker.services.mixing_ratio import MixingRatio
from salon_tracker.utils.constants import MAX_GRAMS, MAX_SHADE_LABEL_LENGTH

T = TypeVar("T")

StoredId = NewType("StoredId", str)


# ============================================================================
# Pagination
# ============================================================================


@dataclass
class PaginationParams:
    """Pagination parameters for list operations.

    Attributes:
        page: Page number (1-indexed, default 1)
        per_page: Items per page (default 50, max 1000)

    Raises:
        ValueError: If page < 1, per_page < 1, or per_page > 1000
    """

    page: int = 1
    per_page: int = 50

    def __post_init__(self) -> None:
        """Validate pagination parameters."""
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.per_page < 1:
            raise ValueError("per_page must be >= 1")
        if self.per_page > 1000:
            raise ValueError("per_page must be <= 1000")

    def offset(self) -> int:
        """SQL OFFSET value: (page - 1) * per_page.

        Examples:
            >>> PaginationParams(page=3, per_page=25).offset()
            50
        """
        return (self.page - 1) * self.per_page


@dataclass
class PaginatedResult(Generic[T]):
    """Generic paginated result container.

    Attributes:
        items: List of items for this page
        total: Total number of items across all pages
        page: Current page number (1-indexed)
        per_page: Items per page
    """

    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Total number of pages (minimum 1, even for empty results)."""
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        """True if current page is not the last page."""
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        """True if current page is not the first page."""
        return self.page > 1


# ============================================================================
# Create payloads
# ============================================================================


@dataclass(frozen=True)
class MaterialLinePayload:
    """Material line to be written under a bowl.

    ``material_name`` and ``ratio`` are snapshots taken from the catalog when
    the payload is built.
    """

    material_id: StoredId
    material_name: str
    ratio: MixingRatio
    grams: float
    shade_label: str = ""

    def __post_init__(self) -> None:
        if not self.material_id:
            raise ValueError("Material line needs a material")
        if not isinstance(self.ratio, MixingRatio):
            raise ValueError("Material line needs a resolved MixingRatio")
        grams = float(self.grams)
        if not math.isfinite(grams) or grams <= 0:
            raise ValueError(f"Material grams must be greater than zero, got {self.grams!r}")
        if grams > MAX_GRAMS:
            raise ValueError(f"Material grams must be at most {MAX_GRAMS}, got {self.grams!r}")
        shade_label = (self.shade_label or "").strip()
        if len(shade_label) > MAX_SHADE_LABEL_LENGTH:
            raise ValueError(
                f"Shade label must be {MAX_SHADE_LABEL_LENGTH} characters or less"
            )
        object.__setattr__(self, "grams", grams)
        object.__setattr__(self, "shade_label", shade_label)


@dataclass(frozen=True)
class BowlPayload:
    """Bowl to be written under a service. A non-empty bowl needs an oxidant."""

    oxidant_id: Optional[StoredId]
    oxidant_name: Optional[str]
    oxidant_grams: float
    material_lines: Tuple[MaterialLinePayload, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "material_lines", tuple(self.material_lines))
        if self.material_lines and not self.oxidant_id:
            raise ValueError("A bowl with materials needs an oxidant")
        if self.oxidant_grams < 0:
            raise ValueError("Oxidant grams cannot be negative")


@dataclass(frozen=True)
class ServicePayload:
    """Service to be written under a visit."""

    name: str
    bowls: Tuple[BowlPayload, ...] = ()

    def __post_init__(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise ValueError("Service name cannot be empty")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "bowls", tuple(self.bowls))


@dataclass(frozen=True)
class ProductLinePayload:
    """Product sold during the visit."""

    product_id: StoredId
    product_name: str
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValueError("Product line needs a product")
        if int(self.quantity) < 1:
            raise ValueError("Product quantity must be at least 1")
        price = Decimal(str(self.unit_price))
        if price < 0:
            raise ValueError("Unit price cannot be negative")
        object.__setattr__(self, "quantity", int(self.quantity))
        object.__setattr__(self, "unit_price", price)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class VisitPayload:
    """Complete visit tree for ``create_visit`` / ``replace_visit_tree``.

    Children are ordered; their 1-based positions are assigned on write.
    """

    client_id: StoredId
    visit_date: date
    services: Tuple[ServicePayload, ...]
    products: Tuple[ProductLinePayload, ...] = ()
    note: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    service_amount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ValueError("Visit needs a client")
        if not isinstance(self.visit_date, date):
            raise ValueError("Visit needs a date")
        object.__setattr__(self, "services", tuple(self.services))
        object.__setattr__(self, "products", tuple(self.products))
        if not self.services:
            raise ValueError("Visit needs at least one service")
        if self.payment_method is not None:
            object.__setattr__(self, "payment_method", PaymentMethod(self.payment_method))
        if self.service_amount is not None:
            amount = Decimal(str(self.service_amount))
            if amount < 0:
                raise ValueError("Service amount cannot be negative")
            object.__setattr__(self, "service_amount", amount)

    @property
    def product_amount(self) -> Decimal:
        """Sum of product line totals."""
        return sum((line.line_total for line in self.products), Decimal("0"))

    @property
    def total_amount(self) -> Decimal:
        """Service amount plus product amount."""
        return (self.service_amount or Decimal("0")) + self.product_amount

    @property
    def document_count(self) -> int:
        """Rows written for this payload: visit, services, bowls, lines and products."""
        count = 1 + len(self.services) + len(self.products)
        for service in self.services:
            count += len(service.bowls)
            for bowl in service.bowls:
                count += len(bowl.material_lines)
        return count


# ============================================================================
# Read records
# ============================================================================


@dataclass(frozen=True)
class MaterialLineRecord:
    id: StoredId
    position: int
    material_id: Optional[StoredId]
    material_name: str
    shade_label: str
    grams: float
    ratio: MixingRatio


@dataclass(frozen=True)
class BowlRecord:
    id: StoredId
    position: int
    oxidant_id: Optional[StoredId]
    oxidant_name: Optional[str]
    oxidant_grams: float
    material_lines: Tuple[MaterialLineRecord, ...] = ()

    @property
    def total_material_grams(self) -> float:
        return sum(line.grams for line in self.material_lines)


@dataclass(frozen=True)
class ServiceRecord:
    id: StoredId
    position: int
    name: str
    bowls: Tuple[BowlRecord, ...] = ()


@dataclass(frozen=True)
class ProductLineRecord:
    id: StoredId
    position: int
    product_id: Optional[StoredId]
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class VisitRecord:
    """A stored visit with its whole tree, ordered by position."""

    id: StoredId
    client_id: StoredId
    client_name: str
    visit_date: date
    note: Optional[str]
    payment_method: Optional[PaymentMethod]
    service_amount: Optional[Decimal]
    product_amount: Optional[Decimal]
    total_amount: Optional[Decimal]
    service_count: int
    created_at: Optional[datetime] = None
    services: Tuple[ServiceRecord, ...] = ()
    products: Tuple[ProductLineRecord, ...] = ()


@dataclass(frozen=True)
class VisitSummary:
    """Visit row for list views, without the nested tree."""

    id: StoredId
    client_id: StoredId
    client_name: str
    visit_date: date
    note: Optional[str]
    payment_method: Optional[PaymentMethod]
    total_amount: Optional[Decimal]
    service_count: int
    service_names: Tuple[str, ...] = field(default_factory=tuple)
