"""
Tests for operation-scoped logging (timeledger.observability).
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from timeledger import observability
from timeledger.observability import (
    HumanFormatter,
    JSONFormatter,
    OperationContext,
    current_operation,
)


class FormattingHandler(logging.Handler):
    """Formats each record as it is emitted, while the operation is live."""

    def __init__(self, formatter: logging.Formatter):
        super().__init__(logging.DEBUG)
        self.setFormatter(formatter)
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))


@pytest.fixture
def json_lines():
    handler = FormattingHandler(JSONFormatter())
    target = logging.getLogger("timeledger")
    old_level = target.level
    target.addHandler(handler)
    target.setLevel(logging.DEBUG)
    yield handler.lines
    target.removeHandler(handler)
    target.setLevel(old_level)


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("timeledger.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestOperationContext:
    def test_no_operation_outside_context(self):
        assert current_operation() is None

    def test_binds_name_and_id(self):
        with OperationContext("cli.report", operation_id="op-fixed") as ctx:
            op = current_operation()
            assert op.name == "cli.report"
            assert op.id == "op-fixed"
            assert ctx.operation_id == "op-fixed"
        assert current_operation() is None

    def test_generated_id(self):
        with OperationContext("cli.export") as ctx:
            assert ctx.operation_id.startswith("op-")

    def test_nested_operation_keeps_outer_id(self):
        with OperationContext("POST /api/import", operation_id="req-1"):
            with OperationContext("import.merge"):
                assert current_operation().name == "import.merge"
                assert current_operation().id == "req-1"
            assert current_operation().name == "POST /api/import"

    def test_resets_after_error(self):
        with pytest.raises(RuntimeError):
            with OperationContext("cli.stop"):
                raise RuntimeError("boom")
        assert current_operation() is None


class TestFormatters:
    def test_json_includes_operation(self):
        with OperationContext("cli.start", operation_id="op-abc"):
            line = json.loads(JSONFormatter().format(_record("Started entry")))
        assert line["operation"] == "cli.start"
        assert line["operation_id"] == "op-abc"
        assert line["message"] == "Started entry"
        assert line["timestamp"].endswith("Z")

    def test_json_without_operation(self):
        line = json.loads(JSONFormatter().format(_record("idle")))
        assert "operation" not in line
        assert "operation_id" not in line

    def test_json_carries_extra_fields(self):
        line = json.loads(JSONFormatter().format(_record("imported", entries=4)))
        assert line["entries"] == 4

    def test_human_includes_operation(self):
        with OperationContext("cli.import", operation_id="op-0123456789abcdef"):
            line = HumanFormatter().format(_record("Imported snapshot"))
        assert "[cli.import op-012345678]" in line
        assert line.endswith("Imported snapshot")


class TestRequestScope:
    def test_request_logs_carry_route_and_request_id(self, ledger, json_lines):
        client = TestClient(create_app(ledger))
        resp = client.post("/api/entries/start", json={}, headers={"X-Request-ID": "req-log-1"})
        assert resp.status_code == 200

        started = [json.loads(line) for line in json_lines if "Started entry" in line]
        assert len(started) == 1
        assert started[0]["operation"] == "POST /api/entries/start"
        assert started[0]["operation_id"] == "req-log-1"


def test_public_surface():
    assert set(observability.__all__) == {
        "Operation",
        "OperationContext",
        "current_operation",
        "generate_operation_id",
        "JSONFormatter",
        "HumanFormatter",
        "configure_logging",
        "OperationIdMiddleware",
    }
