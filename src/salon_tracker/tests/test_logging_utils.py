"""Tests for the service logging helpers."""

import logging

from salon_tracker.services.logging_utils import get_service_logger, log_operation


def test_logger_name_uses_last_module_part():
    logger = get_service_logger("salon_tracker.services.visit_service")
    assert logger.name == "salon_tracker.services.visit_service"


def test_plain_name_gets_prefix():
    assert get_service_logger("catalog").name == "salon_tracker.services.catalog"


def test_log_operation_message_and_context(caplog):
    logger = get_service_logger("visit_service")
    with caplog.at_level(logging.INFO, logger="salon_tracker.services"):
        log_operation(logger, operation="delete_visit", outcome="success", visit_id="v1", bowls=2)

    record = caplog.records[-1]
    assert record.getMessage() == "delete_visit: success"
    assert record.levelno == logging.INFO
    assert record.operation == "delete_visit"
    assert record.outcome == "success"
    assert record.visit_id == "v1"
    assert record.bowls == 2


def test_log_operation_level(caplog):
    logger = get_service_logger("visit_service")
    with caplog.at_level(logging.WARNING, logger="salon_tracker.services"):
        log_operation(logger, operation="save_visit_draft", outcome="success")
        log_operation(
            logger,
            operation="save_visit_draft",
            outcome="validation_failed",
            level=logging.WARNING,
            error="Select a client",
        )

    assert [r.outcome for r in caplog.records] == ["validation_failed"]
    assert caplog.records[0].error == "Select a client"
