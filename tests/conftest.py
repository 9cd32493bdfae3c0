"""
Pytest configuration and shared fixtures

Every fixture uses a frozen clock, so ids, export dates and save stamps are
reproducible from run to run.
"""

import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import pytest

from cashflow_pro.app import CashflowApp
from cashflow_pro.identity import Identity, Role
from cashflow_pro.kernel.ids import TimestampIdFactory
from cashflow_pro.kernel.settings import CashflowSettings
from cashflow_pro.kernel.time import TestTimeProvider
from cashflow_pro.persistence.store import InMemoryDocumentStore, SQLiteDocumentStore
from cashflow_pro.planning.handlers import PlanningCommandHandlers
from cashflow_pro.planning.models import Project
from cashflow_pro.planning.projections import ProjectionAggregator
from cashflow_pro.planning.scenarios import ScenarioStore
from tests.helpers import RecordingNotifier


@pytest.fixture
def temp_db() -> Iterator[Path]:
    """Provide a temporary database file that's cleaned up after test"""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    if db_path.exists():
        db_path.unlink()


@pytest.fixture
def test_time() -> TestTimeProvider:
    """
    Provide a controllable time provider for deterministic tests

    Default time: 2025-01-15 12:00:00 UTC
    """
    return TestTimeProvider(datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings() -> CashflowSettings:
    """
    Default settings with a short save delay

    Long enough that a test finishes its edits before the timer fires,
    short enough to wait out when a test needs the save.
    """
    return CashflowSettings(save_debounce_seconds=0.05)


@pytest.fixture
def id_factory(test_time: TestTimeProvider) -> TimestampIdFactory:
    return TimestampIdFactory(test_time)


@pytest.fixture
def projections(settings: CashflowSettings) -> ProjectionAggregator:
    return ProjectionAggregator(settings)


@pytest.fixture
def scenarios(id_factory: TimestampIdFactory, settings: CashflowSettings) -> ScenarioStore:
    return ScenarioStore(id_factory, settings)


@pytest.fixture
def handlers(
    projections: ProjectionAggregator,
    id_factory: TimestampIdFactory,
    settings: CashflowSettings,
) -> PlanningCommandHandlers:
    """Stateless handlers - the project is passed to every call"""
    return PlanningCommandHandlers(projections, id_factory, settings)


@pytest.fixture
def project() -> Project:
    """Fresh project with only the baseline scenario"""
    return Project.new("Harbor Point Tower", manager="pm@example.com")


@pytest.fixture
def memory_store(test_time: TestTimeProvider) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(test_time)


@pytest.fixture
def sqlite_store(temp_db: Path, test_time: TestTimeProvider) -> SQLiteDocumentStore:
    return SQLiteDocumentStore(temp_db, test_time)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id="user-1", email="pm@example.com", role=Role.USER)


@pytest.fixture
def app(
    memory_store: InMemoryDocumentStore,
    identity: Identity,
    settings: CashflowSettings,
    test_time: TestTimeProvider,
    notifier: RecordingNotifier,
) -> Iterator[CashflowApp]:
    """Session with one open project, backed by an in-memory store"""
    session = CashflowApp(
        memory_store,
        identity=identity,
        settings=settings,
        time_provider=test_time,
        notifier=notifier,
    )
    session.load_projects()
    session.create_project("Harbor Point Tower")
    notifier.clear()

    yield session

    session.shutdown()
