"""
CashflowApp - session façade

The single entry point for a running planning session. It owns the
application state (loaded projects, the open project, the debounced saver)
and wires the stateless planning components to the document store.

Every public operation is an error boundary: a CashflowError or a pydantic
input error raised inside is logged, counted, and sent to the notifier, and
the operation returns its failure value instead of propagating.

Example:
    >>> from cashflow_pro import CashflowApp
    >>> from cashflow_pro.persistence.store import InMemoryDocumentStore
    >>> app = CashflowApp(InMemoryDocumentStore())
    >>> project_id = app.create_project("Harbor Point Tower")
    >>> cid = app.add_category("03-300", "Concrete", 12000, "Hard", "straight-line")
    >>> app.record_actual(cid, 0, 1000)
    1000.0
    >>> app.summary().total_remaining
    11000.0
"""

import threading
from collections.abc import Callable
from functools import wraps
from typing import Any, Protocol, TypeVar

from pydantic import ValidationError as PydanticValidationError

from cashflow_pro.identity import SYSTEM_IDENTITY, Identity, require_super_admin
from cashflow_pro.kernel.errors import (
    CashflowError,
    PersistenceError,
    ProjectNotFound,
    ValidationError,
)
from cashflow_pro.kernel.ids import IdFactory, TimestampIdFactory, prefixed_id
from cashflow_pro.kernel.logging import LogOperation, get_logger, operation_scope
from cashflow_pro.kernel.metrics import document_saves_total, track_operation_duration
from cashflow_pro.kernel.scheduler import DebouncedSaver
from cashflow_pro.kernel.settings import CashflowSettings
from cashflow_pro.kernel.time import RealTimeProvider, TimeProvider
from cashflow_pro.persistence.exchange import export_project, import_project
from cashflow_pro.persistence.store import DocumentStore, DocumentsUpdate
from cashflow_pro.planning.commands import (
    AddCategory,
    CreateScenario,
    DeleteCategory,
    RecordActual,
    UpdateCategory,
    UpdateProjectInfo,
)
from cashflow_pro.planning.handlers import PlanningCommandHandlers
from cashflow_pro.planning.invariants import validate_category_exists
from cashflow_pro.planning.models import BASELINE_SCENARIO_ID, Project, ProjectRecord
from cashflow_pro.planning.projections import ProjectionAggregator
from cashflow_pro.planning.scenarios import ScenarioStore
from cashflow_pro.planning.summary import (
    CostTypeSummary,
    MonthlyCashflow,
    ProjectSummary,
    monthly_cashflow,
    summarize,
    summarize_by_cost_type,
)

logger = get_logger(__name__)

T = TypeVar("T")


class Notifier(Protocol):
    """Receives user-facing notifications (info, success, warning, error)"""

    def notify(self, message: str, level: str = "info") -> None:
        ...


class LogNotifier:
    """Default notifier: notifications go to the structured log"""

    def notify(self, message: str, level: str = "info") -> None:
        log = logger.warning if level in ("warning", "error") else logger.info
        log("Notification", message=message, level=level)


def operation_boundary(
    description: str, default: Any = None
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Run a façade method under the session lock and catch CashflowError

    Args:
        description: Human phrase used in the failure notification
            ("add category" -> "Failed to add category: ...")
        default: Value returned when the operation fails
    """
    operation = description.replace(" ", "_")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        tracked = track_operation_duration(operation)(func)

        @wraps(func)
        def wrapper(self: "CashflowApp", *args: Any, **kwargs: Any) -> T:
            with self._lock, operation_scope(
                operation,
                project_id=self.current_project_id,
                user_id=self.identity.user_id,
            ):
                try:
                    return tracked(self, *args, **kwargs)
                except (CashflowError, PydanticValidationError) as exc:
                    logger.warning(
                        "Operation failed",
                        operation=operation,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    )
                    self.notifier.notify(f"Failed to {description}: {exc}", "error")
                    return default

        return wrapper

    return decorator


class CashflowApp:
    """
    Cashflow planning session

    Constructed once per session and torn down with shutdown(). Components
    below it are stateless; the open project is passed to them by reference
    on each call.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: Identity | None = None,
        settings: CashflowSettings | None = None,
        time_provider: TimeProvider | None = None,
        notifier: Notifier | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        """
        Args:
            store: Document persistence collaborator
            identity: Acting user (defaults to an unprivileged system user)
            settings: Session configuration (defaults if None)
            time_provider: Clock (real time if None)
            notifier: Notification sink (structured log if None)
            id_factory: Id source (timestamp ids from time_provider if None)
        """
        self.store = store
        self.identity = identity or SYSTEM_IDENTITY
        self.settings = settings or CashflowSettings()
        self.time_provider = time_provider or RealTimeProvider()
        self.notifier: Notifier = notifier or LogNotifier()
        self.id_factory = id_factory or TimestampIdFactory(self.time_provider)

        self.projections = ProjectionAggregator(self.settings)
        self.scenarios = ScenarioStore(self.id_factory, self.settings)
        self.handlers = PlanningCommandHandlers(
            self.projections, self.id_factory, self.settings
        )
        self.saver = DebouncedSaver(
            self.save_current_project, self.settings.save_debounce_seconds
        )

        self.projects: dict[str, ProjectRecord] = {}
        self.current_project_id: str | None = None
        self.project: Project | None = None

        self._lock = threading.RLock()
        self._unsubscribe: Callable[[], None] | None = None

    # Internal helpers

    def _require_project(self) -> Project:
        if self.project is None or self.current_project_id is None:
            raise ProjectNotFound("(no project open)")
        return self.project

    def _changed(self) -> None:
        self.saver.schedule()

    def _parse_records(self, documents: dict[str, dict[str, Any]]) -> dict[str, ProjectRecord]:
        records: dict[str, ProjectRecord] = {}
        for document_id, document in documents.items():
            try:
                records[document_id] = ProjectRecord.model_validate(
                    {"id": document_id, "name": document_id, **document}
                )
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping invalid project document",
                    document_id=document_id,
                    error_count=exc.error_count(),
                )
        return records

    # Project operations

    @operation_boundary("load projects", default=0)
    def load_projects(self, preferred_project_id: str | None = None) -> int:
        """
        Load all stored projects and open one

        Opens preferred_project_id if it exists, otherwise the most recently
        modified project. Subscribes to remote updates.

        Returns:
            Number of projects loaded
        """
        with LogOperation(logger, "load_projects"):
            self.projects = self._parse_records(self.store.load_all())

        if preferred_project_id in self.projects:
            self._open(preferred_project_id)
        elif self.projects:
            self._open(next(iter(self.projects)))

        self.subscribe_to_updates()
        return len(self.projects)

    def subscribe_to_updates(self) -> None:
        """(Re)subscribe to store updates"""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self.store.subscribe(self.apply_remote_update)

    def _open(self, project_id: str) -> Project:
        record = self.projects.get(project_id)
        if record is None:
            raise ProjectNotFound(project_id)
        self.current_project_id = project_id
        self.project = record.data
        return self.project

    @operation_boundary("open project", default=False)
    def open_project(self, project_id: str) -> bool:
        self._open(project_id)
        logger.info("Project opened", project_id=project_id)
        return True

    @operation_boundary("create project")
    def create_project(self, name: str) -> str | None:
        """
        Create, save and open a new project

        Returns:
            The project id
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Project name is required")

        project_id = prefixed_id("proj", self.id_factory)
        record = ProjectRecord(
            id=project_id,
            name=name.strip(),
            created_date=self.time_provider.now().isoformat(),
            created_by=self.identity.user_id,
            data=Project.new(name.strip(), manager=self.identity.email),
        )
        self.store.save(project_id, record.to_document(), modified_by=self.identity.user_id)

        self.projects[project_id] = record
        self._open(project_id)
        self.notifier.notify("Project created successfully", "success")
        return project_id

    @operation_boundary("delete project", default=False)
    def delete_project(self, project_id: str) -> bool:
        """Delete a stored project (super admin only)"""
        require_super_admin(self.identity, "delete projects")
        if project_id not in self.projects:
            raise ProjectNotFound(project_id)

        self.store.delete(project_id)
        self.projects.pop(project_id, None)

        if self.current_project_id == project_id:
            self.saver.cancel()
            self.current_project_id = None
            self.project = None
            if self.projects:
                self._open(next(iter(self.projects)))

        self.notifier.notify("Project deleted successfully", "success")
        return True

    @operation_boundary("save project", default=False)
    def save_current_project(self) -> bool:
        """
        Write the open project to the store

        A failed save keeps the in-memory project; the next scheduled save
        tries again.
        """
        if self.project is None or self.current_project_id is None:
            logger.warning("No current project to save")
            return False

        record = self.projects[self.current_project_id]
        record.data = self.project
        try:
            self.store.save(
                self.current_project_id,
                record.to_document(),
                modified_by=self.identity.user_id,
            )
        except PersistenceError:
            document_saves_total.labels(status="failure").inc()
            raise
        document_saves_total.labels(status="success").inc()
        logger.info("Project saved", project_id=self.current_project_id)
        return True

    @operation_boundary("update project info", default=False)
    def update_project_info(self, **fields: Any) -> bool:
        project = self._require_project()
        command = UpdateProjectInfo.model_validate(fields)
        self.handlers.handle_update_project_info(project, command)
        self._changed()
        return True

    # Category operations

    @operation_boundary("add category")
    def add_category(
        self,
        code: str,
        name: str,
        amount: Any,
        cost_type: str,
        distribution_method: str = "s-curve",
        distribution_params: dict[str, Any] | None = None,
    ) -> int | None:
        """
        Returns:
            The new category id
        """
        project = self._require_project()
        command = AddCategory(
            code=code,
            name=name,
            amount=amount,
            cost_type=cost_type,
            distribution_method=distribution_method,
            distribution_params=distribution_params or {},
        )
        category = self.handlers.handle_add_category(project, command)
        self._changed()
        self.notifier.notify(f'Category "{category.name}" added successfully', "success")
        return category.id

    @operation_boundary("update category", default=False)
    def update_category(self, category_id: int, **updates: Any) -> bool:
        project = self._require_project()
        if not updates:
            raise ValidationError("No updates given")
        self.handlers.handle_update_category(
            project, UpdateCategory(category_id=category_id, updates=updates)
        )
        self._changed()
        self.notifier.notify("Category updated successfully", "success")
        return True

    @operation_boundary("delete category", default=False)
    def delete_category(self, category_id: int) -> bool:
        project = self._require_project()
        category = self.handlers.handle_delete_category(
            project, DeleteCategory(category_id=category_id)
        )
        self._changed()
        self.notifier.notify(f'Category "{category.name}" deleted', "success")
        return True

    @operation_boundary("recalculate projections", default=0)
    def recalculate_all(self) -> int:
        """
        Returns:
            Number of categories recomputed
        """
        project = self._require_project()
        with LogOperation(logger, "recalculate_all", project_id=self.current_project_id):
            count = self.projections.recalculate_all(project)
        self._changed()
        return count

    @operation_boundary("update actual spend")
    def record_actual(self, category_id: int, month: Any, amount: Any) -> float | None:
        """
        Record actual spend in the current scenario

        Returns:
            The amount stored (non-numeric input is stored as 0)
        """
        project = self._require_project()
        command = RecordActual(category_id=category_id, month=month, amount=amount)
        validate_category_exists(project, command.category_id)
        value = self.scenarios.record_actual(
            project, command.category_id, command.month, command.amount
        )
        self._changed()
        return value

    # Scenario operations

    @operation_boundary("create scenario")
    def create_scenario(
        self, name: str, base_scenario_id: str = BASELINE_SCENARIO_ID
    ) -> str | None:
        project = self._require_project()
        command = CreateScenario(name=name, base_scenario_id=base_scenario_id)
        scenario_id = self.scenarios.create_scenario(
            project, command.name, command.base_scenario_id
        )
        self._changed()
        self.notifier.notify(
            f'Scenario "{project.scenarios[scenario_id].name}" created', "success"
        )
        return scenario_id

    @operation_boundary("switch scenario", default=False)
    def switch_scenario(self, scenario_id: str) -> bool:
        project = self._require_project()
        if not self.scenarios.switch_scenario(project, scenario_id):
            return False
        self._changed()
        self.notifier.notify(
            f"Switched to scenario: {project.scenarios[scenario_id].name}", "info"
        )
        return True

    @operation_boundary("delete scenario", default=False)
    def delete_scenario(self, scenario_id: str) -> bool:
        project = self._require_project()
        self.scenarios.delete_scenario(project, scenario_id)
        self._changed()
        return True

    # Reporting

    @operation_boundary("summarize project")
    def summary(self, scenario_id: str | None = None) -> ProjectSummary | None:
        return summarize(self._require_project(), scenario_id)

    @operation_boundary("build cashflow")
    def monthly_cashflow(self, scenario_id: str | None = None) -> list[MonthlyCashflow] | None:
        return monthly_cashflow(
            self._require_project(), scenario_id, self.settings.horizon_months
        )

    @operation_boundary("summarize cost types")
    def cost_type_summary(
        self, scenario_id: str | None = None
    ) -> list[CostTypeSummary] | None:
        return summarize_by_cost_type(self._require_project(), scenario_id)

    # Import / export

    @operation_boundary("export data")
    def export_data(self) -> dict[str, Any] | None:
        project = self._require_project()
        envelope = export_project(
            project,
            exported_by=self.identity.email,
            version=self.settings.export_version,
            time_provider=self.time_provider,
        )
        self.notifier.notify("Data exported successfully", "success")
        return envelope

    @operation_boundary("import data", default=False)
    def import_data(self, envelope: dict[str, Any], confirm: bool = True) -> bool:
        """
        Replace the open project with an exported one

        Args:
            envelope: Export envelope ({projectData, exportDate, ...})
            confirm: The user's answer to "replace current project data?"

        Returns:
            True if the project was replaced and saved
        """
        self._require_project()
        imported = import_project(envelope)
        if not confirm:
            return False

        self.saver.cancel()
        self.project = imported
        saved = self.save_current_project()
        if saved:
            self.notifier.notify("Data imported successfully", "success")
        return saved

    # Remote updates

    def apply_remote_update(self, update: DocumentsUpdate) -> None:
        """
        Store subscription callback

        Replaces the project list. If the open project's stored data differs
        from the in-memory project (whole-document comparison), the stored
        version wins and replaces it.
        """
        with self._lock, operation_scope(
            "apply_remote_update", project_id=self.current_project_id
        ):
            if not update.ok:
                self.notifier.notify(f"Project sync failed: {update.error}", "warning")
                return

            previous = (
                self.projects.get(self.current_project_id)
                if self.current_project_id
                else None
            )
            self.projects = self._parse_records(update.documents)
            if self.current_project_id is None:
                return

            record = self.projects.get(self.current_project_id)
            if record is None:
                # Outside the listed window (or gone remotely): keep editing locally
                if previous is not None:
                    self.projects[self.current_project_id] = previous
                return
            if self.project is not None and (
                record.data.to_document() == self.project.to_document()
            ):
                # Keep the live object so callers holding it stay in step
                record.data = self.project
                return

            logger.info("Project updated remotely", project_id=self.current_project_id)
            self.project = record.data
            self.notifier.notify("Project updated by another user", "info")

    # Lifecycle

    def shutdown(self) -> None:
        """
        End the session

        Drops any pending save (a save already running is not interrupted)
        and stops listening for updates.
        """
        self.saver.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        logger.info("Session shut down")

    def __enter__(self) -> "CashflowApp":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()
