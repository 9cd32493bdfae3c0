"""
Health check HTTP server for liveness and readiness probes.

Provides endpoints for monitoring the document store and, when a session is
attached, the open project.
"""

from typing import Any

from flask import Flask, jsonify

from cashflow_pro import __version__
from cashflow_pro.kernel.errors import CashflowError
from cashflow_pro.kernel.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

# Global state - will be set by initialize_health_server()
_store: Any = None  # DocumentStore
_session: Any = None  # CashflowApp for project-level health


def initialize_health_server(store: Any, session: Any = None) -> None:
    """
    Initialize the health server with a document store and session.

    Args:
        store: Document store to probe
        session: Optional CashflowApp for detailed health checks
    """
    global _store, _session
    _store = store
    _session = session
    logger.info("Health server initialized", store=type(store).__name__)


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[dict[str, Any], int]:
    """
    Liveness probe - checks if the process is running.

    Returns:
        JSON response with status and 200 OK
    """
    return jsonify({"status": "alive", "service": "cashflow-pro"}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[dict[str, Any], int]:
    """
    Readiness probe - checks that the document store can be read.

    Returns:
        JSON response with status and 200 OK if ready, 503 if not ready
    """
    if _store is None:
        logger.error("Readiness check failed: store not initialized")
        return (
            jsonify({"status": "not_ready", "reason": "store_not_initialized"}),
            503,
        )

    try:
        document_count = len(_store.load_all())
    except CashflowError as e:
        logger.error("Readiness check failed: store error", error=str(e))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "store_error",
                    "error": str(e),
                }
            ),
            503,
        )

    logger.debug("Readiness check passed", document_count=document_count)
    return (
        jsonify(
            {
                "status": "ready",
                "store": "accessible",
                "document_count": document_count,
            }
        ),
        200,
    )


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[dict[str, Any], int]:
    """
    Detailed health check - includes the open project's summary if available.

    Returns:
        JSON response with detailed health information
    """
    health_data: dict[str, Any] = {
        "status": "healthy",
        "service": "cashflow-pro",
        "version": __version__,
    }

    if _store is not None:
        try:
            health_data["store"] = {
                "status": "healthy",
                "type": type(_store).__name__,
                "document_count": len(_store.load_all()),
            }
        except CashflowError as e:
            logger.error("Store health check failed", error=str(e))
            health_data["store"] = {"status": "unhealthy", "error": str(e)}
            health_data["status"] = "degraded"
    else:
        health_data["store"] = {"status": "not_initialized"}
        health_data["status"] = "degraded"

    if _session is not None and _session.project is not None:
        summary = _session.summary()
        if summary is not None:
            health_data["project"] = {
                "id": _session.current_project_id,
                "name": _session.project.info.name,
                "scenario": summary.scenario_id,
                "categories": len(_session.project.budget_categories),
                "over_budget": summary.is_over_budget(),
                "pending_save": _session.saver.pending,
            }

    status_code = 200 if health_data["status"] == "healthy" else 503

    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """
    Run the health check server.

    Args:
        port: Port to listen on (default: 8080)
        debug: Enable Flask debug mode (default: False)
    """
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    # For local testing: python -m cashflow_pro.health_server
    from cashflow_pro.persistence.store import SQLiteDocumentStore

    initialize_health_server(SQLiteDocumentStore("/tmp/cashflow-test.db"))
    run_health_server(port=8080, debug=True)
