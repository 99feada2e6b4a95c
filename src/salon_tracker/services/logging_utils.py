"""Service layer logging utilities.

Provides structured logging functions for service operations, so visit
cascades, catalog changes and validation failures share one log format.

Usage:
    from salon_tracker.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="create_visit",
        outcome="success",
        visit_id="0b6f...",
        material_lines=2,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'salon_tracker.services' prefix.

    Example:
        >>> logger = get_service_logger("salon_tracker.services.visit_service")
        >>> logger.name
        'salon_tracker.services.visit_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"salon_tracker.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context is passed via
    ``extra`` so handlers can pick individual fields.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "create_visit", "delete_visit")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO)
        **context: Additional context fields (ids, counts, error message)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
