"""Unit tests for structured logging helpers."""

import json
import logging

from export_isolation.logging_config import (
    ContextLogger,
    JsonFormatter,
    configure_logging,
    set_test_id,
)


class TestConfigureLogging:
    def test_standardizes_bare_names(self):
        logger = configure_logging("export_isolation.orchestrator", "INFO", "text")
        assert logger.name == "export-isolation:orchestrator"

    def test_reconfigure_does_not_duplicate_handlers(self):
        configure_logging("export-isolation:dup", "INFO", "text")
        configure_logging("export-isolation:dup", "INFO", "text")
        assert len(logging.getLogger("export-isolation:dup").handlers) == 1

    def test_kwargs_are_appended_to_message(self):
        records = []

        class Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        base = logging.getLogger("export-isolation:capture")
        base.addHandler(Capture())
        base.setLevel(logging.INFO)

        ContextLogger(base).info("Purged queue", queue="catalog.product.export.queue")

        assert records[0].getMessage() == "Purged queue - queue=catalog.product.export.queue"
        assert records[0].extra_kwargs == {"queue": "catalog.product.export.queue"}


class TestJsonFormatter:
    def test_includes_test_id_and_extras(self):
        record = logging.LogRecord("export-isolation:drain", logging.INFO, __file__, 1, "Drained", None, None)
        record.extra_kwargs = {"applied": 3}
        set_test_id("tests/test_reviews.py::test_review_export")
        try:
            payload = json.loads(JsonFormatter().format(record))
        finally:
            set_test_id(None)

        assert payload["message"] == "Drained"
        assert payload["applied"] == 3
        assert payload["test_id"] == "tests/test_reviews.py::test_review_export"
