"""
Test infrastructure components: logging, metrics and the metrics server CLI.
"""

import pytest
import structlog

from cashflow_pro.kernel.logging import (
    LogOperation,
    configure_logging,
    get_correlation_id,
    get_logger,
    operation_scope,
    redact_context,
    set_correlation_id,
)
from cashflow_pro.kernel.metrics import (
    operation_duration_seconds,
    operations_total,
    projections_recomputed_total,
    track_operation_duration,
)
from cashflow_pro.metrics_server import build_parser
from cashflow_pro.planning.handlers import PlanningCommandHandlers
from cashflow_pro.planning.models import Project
from tests.helpers import add_category_command


class TestLoggingFramework:
    """Test structured logging framework."""

    def test_configure_logging_console(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        assert get_logger(__name__) is not None

    def test_configure_logging_json(self) -> None:
        configure_logging(json_output=True, log_level="DEBUG")
        assert get_logger(__name__) is not None

    def test_correlation_id(self) -> None:
        assert get_correlation_id()

        set_correlation_id("session-123")
        assert get_correlation_id() == "session-123"

    def test_operation_scope_sets_fresh_id_and_restores(self) -> None:
        set_correlation_id("outer")

        with operation_scope("add_category", project_id="proj_1") as cid:
            assert cid != "outer"
            assert get_correlation_id() == cid
            assert structlog.contextvars.get_contextvars() == {
                "operation": "add_category",
                "project_id": "proj_1",
            }

        assert get_correlation_id() == "outer"
        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_operation_scope_keeps_outer_id(self) -> None:
        with operation_scope("import_data") as outer:
            with operation_scope("save_project", email="pm@example.com") as inner:
                assert inner == outer
                assert structlog.contextvars.get_contextvars()["operation"] == "import_data"
                assert structlog.contextvars.get_contextvars()["email"] == "***REDACTED***"

    def test_redact_context(self) -> None:
        redacted = redact_context(
            {"email": "pm@example.com", "exported_by": "pm@example.com", "project_id": "proj_1"}
        )

        assert redacted == {
            "email": "***REDACTED***",
            "exported_by": "***REDACTED***",
            "project_id": "proj_1",
        }

    def test_log_operation_context_manager(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        logger = get_logger(__name__)

        with LogOperation(logger, "recalculate_all", project_id="proj_1"):
            pass

    def test_log_operation_with_exception(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        logger = get_logger(__name__)

        with pytest.raises(ValueError):
            with LogOperation(logger, "failing_operation"):
                raise ValueError("Test error")


class TestMetrics:
    """Test Prometheus metrics collection."""

    def test_track_operation_duration_success(self) -> None:
        @track_operation_duration("test_success")
        def work() -> int:
            return 7

        before = operations_total.labels(operation="test_success", status="success")._value.get()

        assert work() == 7

        after = operations_total.labels(operation="test_success", status="success")._value.get()
        assert after == before + 1
        assert operation_duration_seconds.labels(operation="test_success")._sum.get() >= 0

    def test_track_operation_duration_failure(self) -> None:
        @track_operation_duration("test_failure")
        def work() -> None:
            raise RuntimeError("boom")

        before = operations_total.labels(operation="test_failure", status="failure")._value.get()

        with pytest.raises(RuntimeError):
            work()

        after = operations_total.labels(operation="test_failure", status="failure")._value.get()
        assert after == before + 1

    def test_projections_recomputed_metric(
        self, handlers: PlanningCommandHandlers, project: Project
    ) -> None:
        before = projections_recomputed_total._value.get()

        handlers.handle_add_category(project, add_category_command())

        assert projections_recomputed_total._value.get() == before + 1


def test_metrics_server_arguments() -> None:
    args = build_parser().parse_args(["--port", "9191", "--log-level", "DEBUG", "--json-logs"])

    assert args.port == 9191
    assert args.log_level == "DEBUG"
    assert args.json_logs is True
