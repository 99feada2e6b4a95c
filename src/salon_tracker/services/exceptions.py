"""Service layer exception classes for Salon Tracker.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── DatabaseError
    ├── VisitNotFound
    ├── ClientNotFound
    ├── ClientGroupNotFound
    ├── MaterialNotFound
    ├── OxidantNotFound
    ├── ProductNotFound
    ├── ServiceTemplateNotFound
    ├── ProductSaleNotFound
    ├── ClientInUse
    ├── DraftNodeNotFound
    └── LastBowlRemovalNotConfirmed
"""


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Visit validation reports only its first violation, so ``errors`` holds a
    single message in that case.
    """

    def __init__(self, errors: list):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class VisitNotFound(ServiceError):
    """Raised when a visit cannot be found for the owner.

    Example:
        >>> raise VisitNotFound("0b6f...")
        VisitNotFound: Visit '0b6f...' not found
    """

    def __init__(self, visit_id: str):
        self.visit_id = visit_id
        super().__init__(f"Visit '{visit_id}' not found")


class ClientNotFound(ServiceError):
    """Raised when a client cannot be found for the owner."""

    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Client '{client_id}' not found")


class ClientGroupNotFound(ServiceError):
    """Raised when a client group cannot be found for the owner."""

    def __init__(self, group_id: str):
        self.group_id = group_id
        super().__init__(f"Client group '{group_id}' not found")


class MaterialNotFound(ServiceError):
    """Raised when a catalog material cannot be found."""

    def __init__(self, material_id: str):
        self.material_id = material_id
        super().__init__(f"Material '{material_id}' not found")


class OxidantNotFound(ServiceError):
    """Raised when a catalog oxidant cannot be found."""

    def __init__(self, oxidant_id: str):
        self.oxidant_id = oxidant_id
        super().__init__(f"Oxidant '{oxidant_id}' not found")


class ProductNotFound(ServiceError):
    """Raised when a catalog product cannot be found."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' not found")


class ServiceTemplateNotFound(ServiceError):
    """Raised when a service template cannot be found."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Service template '{template_id}' not found")


class ProductSaleNotFound(ServiceError):
    """Raised when a product sale cannot be found for the owner."""

    def __init__(self, sale_id: str):
        self.sale_id = sale_id
        super().__init__(f"Product sale '{sale_id}' not found")


class ClientInUse(ServiceError):
    """Raised when deleting a client that still has visits.

    Args:
        client_id: The client being deleted
        dependencies: Dictionary of dependency counts {entity_type: count}

    Example:
        >>> raise ClientInUse("c1", {"visits": 3})
        ClientInUse: Cannot delete client 'c1': used in 3 visits
    """

    def __init__(self, client_id: str, dependencies: dict):
        self.client_id = client_id
        self.dependencies = dependencies

        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Cannot delete client '{client_id}': used in {details}")


class DraftNodeNotFound(ServiceError):
    """Raised when an edit addresses a service, bowl or line missing from the draft."""

    def __init__(self, kind: str, draft_id):
        self.kind = kind
        self.draft_id = draft_id
        super().__init__(f"{kind} {draft_id} is not part of the visit draft")


class LastBowlRemovalNotConfirmed(ServiceError):
    """Raised when removing the last bowl of a service that needs material.

    Callers ask the user and repeat the call with ``confirmed=True``.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        label = service_name or "unnamed service"
        super().__init__(f"Removing the last bowl of '{label}' needs confirmation")
