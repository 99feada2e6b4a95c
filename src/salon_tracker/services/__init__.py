"""Services package - Business logic layer for Salon Tracker.

This package contains the service modules that provide business logic and
database operations for the application.

Architecture:
- Services: Stateless functions organized by domain (clients, catalog, visits, revenue)
- Recipe engine: Pure functions over immutable drafts (no database access)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- client_service: Client CRUD operations and client groups
- catalog_service: Materials, oxidants, products and service templates
- visit_service: Visit tree persistence (create, read, update, replace, delete)
- product_sale_service: Product sales made outside visits
- revenue_service: Daily cash register and monthly revenue

Recipe engine:
- mixing_ratio: Mixing ratios and their resolution
- catalog_lookup: Read-only catalog tables for an editing session
- oxidant_calculator: Oxidant grams of a bowl
- visit_draft: Editable visit tree and its operations

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured logging for service operations
- dto: Identifiers, payloads and read records
"""

# Service modules
from . import (
    database,
    exceptions,
    mixing_ratio,
    catalog_lookup,
    oxidant_calculator,
    visit_draft,
    catalog_service,
    client_service,
    visit_service,
    product_sale_service,
    revenue_service,
)

from .exceptions import (
    ServiceError,
    ValidationError,
    DatabaseError,
    VisitNotFound,
    ClientNotFound,
    ClientGroupNotFound,
    MaterialNotFound,
    OxidantNotFound,
    ProductNotFound,
    ServiceTemplateNotFound,
    ProductSaleNotFound,
    ClientInUse,
    DraftNodeNotFound,
    LastBowlRemovalNotConfirmed,
)

from .database import session_scope, init_database, initialize_app_database

__all__ = [
    # Modules
    "database",
    "exceptions",
    "mixing_ratio",
    "catalog_lookup",
    "oxidant_calculator",
    "visit_draft",
    "catalog_service",
    "client_service",
    "visit_service",
    "product_sale_service",
    "revenue_service",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "DatabaseError",
    "VisitNotFound",
    "ClientNotFound",
    "ClientGroupNotFound",
    "MaterialNotFound",
    "OxidantNotFound",
    "ProductNotFound",
    "ServiceTemplateNotFound",
    "ProductSaleNotFound",
    "ClientInUse",
    "DraftNodeNotFound",
    "LastBowlRemovalNotConfirmed",
    # Database
    "session_scope",
    "init_database",
    "initialize_app_database",
]
