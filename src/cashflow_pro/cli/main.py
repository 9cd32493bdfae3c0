"""
Cashflow Pro CLI

Command-line interface for construction cashflow planning.
Provides commands for projects, budget categories, scenarios, actual spend,
reporting and import/export.

Usage:
    cashflow init --db cashflow.db
    cashflow project create --name "Harbor Point Tower"
    cashflow category add --code 03-300 --name Concrete --amount 120000 --cost-type Hard
    cashflow scenario create --name "Delayed start"
    cashflow actual record --category <id> --month 0 --amount 9500
    cashflow summary
    cashflow export --out harbor.json
"""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from cashflow_pro.app import CashflowApp
from cashflow_pro.identity import Identity, Role
from cashflow_pro.kernel.errors import CashflowError
from cashflow_pro.kernel.logging import configure_logging
from cashflow_pro.kernel.settings import CashflowSettings
from cashflow_pro.persistence.exchange import export_filename, read_envelope, write_envelope
from cashflow_pro.persistence.store import SQLiteDocumentStore

# Configure logging to stderr (avoids polluting stdout for JSON output)
configure_logging(json_output=False, log_level="WARNING")

app = typer.Typer(
    name="cashflow",
    help="Cashflow Pro - Construction budget cashflow planning",
    add_completion=False,
)

# Sub-apps
project_app = typer.Typer(help="Project management commands")
category_app = typer.Typer(help="Budget category commands")
scenario_app = typer.Typer(help="Scenario commands")
actual_app = typer.Typer(help="Actual spend commands")

app.add_typer(project_app, name="project")
app.add_typer(category_app, name="category")
app.add_typer(scenario_app, name="scenario")
app.add_typer(actual_app, name="actual")

# Global state
DEFAULT_DB = Path(".cashflow.db")

DbOption = Annotated[Optional[Path], typer.Option("--db", help="Database path")]
ProjectOption = Annotated[
    Optional[str],
    typer.Option("--project", help="Project id (defaults to the most recently modified)"),
]
UserOption = Annotated[
    str, typer.Option("--user", envvar="CASHFLOW_USER", help="Acting user id")
]


class EchoNotifier:
    """Prints session notifications; errors go to stderr"""

    def notify(self, message: str, level: str = "info") -> None:
        if level in ("warning", "error"):
            typer.echo(f"Error: {message}" if level == "error" else message, err=True)
        else:
            typer.echo(f"✓ {message}" if level == "success" else message)


def get_app(
    db_path: Optional[Path] = None,
    project_id: Optional[str] = None,
    user: str = "cli",
    role: Role = Role.USER,
    require_project: bool = True,
) -> CashflowApp:
    """Open a session on the database and load its projects"""
    db = db_path or DEFAULT_DB
    if not db.exists():
        typer.echo(f"Error: Database not found: {db}", err=True)
        typer.echo(f"Run 'cashflow init --db {db}' to initialize", err=True)
        raise typer.Exit(1)

    settings = CashflowSettings.from_env()
    session = CashflowApp(
        SQLiteDocumentStore(db, max_documents=settings.max_listed_projects),
        identity=Identity(user_id=user, role=role),
        settings=settings,
        notifier=EchoNotifier(),
    )
    session.load_projects(project_id)

    if project_id and session.current_project_id != project_id:
        typer.echo(f"Error: Project not found: {project_id}", err=True)
        session.shutdown()
        raise typer.Exit(1)
    if require_project and session.project is None:
        typer.echo("Error: No projects yet", err=True)
        typer.echo("Run 'cashflow project create --name <name>' first", err=True)
        session.shutdown()
        raise typer.Exit(1)
    return session


def finish(session: CashflowApp, ok: Any = True) -> None:
    """Write any pending save, end the session and set the exit code"""
    session.saver.flush()
    session.shutdown()
    if ok is None or ok is False:
        raise typer.Exit(1)


def parse_json_option(value: Optional[str], option: str) -> dict[str, Any]:
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: {option} is not valid JSON: {e}", err=True)
        raise typer.Exit(1)
    if not isinstance(parsed, dict):
        typer.echo(f"Error: {option} must be a JSON object", err=True)
        raise typer.Exit(1)
    return parsed


def format_money(value: float) -> str:
    return f"${value:,.2f}"


# Initialization command


@app.command()
def init(
    db: Annotated[
        Path,
        typer.Option(help="Database path"),
    ] = DEFAULT_DB,
) -> None:
    """Initialize a new cashflow database"""
    if db.exists():
        typer.echo(f"Error: Database already exists: {db}", err=True)
        raise typer.Exit(1)

    SQLiteDocumentStore(db)
    typer.echo(f"✓ Initialized cashflow database: {db}")


# Project commands


@project_app.command("create")
def project_create(
    name: Annotated[str, typer.Option("--name", help="Project name")],
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Create a new project with an empty baseline scenario"""
    session = get_app(db, user=user, require_project=False)
    project_id = session.create_project(name)
    if project_id:
        typer.echo(f"  Project id: {project_id}")
    finish(session, project_id)


@project_app.command("list")
def project_list(db: DbOption = None) -> None:
    """List projects, most recently modified first"""
    session = get_app(db, require_project=False)
    records = list(session.projects.values())
    session.shutdown()

    if not records:
        typer.echo("No projects")
        return

    typer.echo(f"Projects ({len(records)}):")
    for record in records:
        typer.echo(
            f"  {record.id}: {record.data.info.name} "
            f"({len(record.data.budget_categories)} categories, "
            f"budget {format_money(record.data.total_budget())})"
        )


@project_app.command("delete")
def project_delete(
    project_id: Annotated[str, typer.Option("--id", help="Project id")],
    admin: Annotated[
        bool, typer.Option("--admin", help="Act as super admin")
    ] = False,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Delete a project (super admin only)"""
    role = Role.SUPER_ADMIN if admin else Role.USER
    session = get_app(db, user=user, role=role, require_project=False)
    finish(session, session.delete_project(project_id))


@project_app.command("info")
def project_info(
    name: Annotated[Optional[str], typer.Option("--name")] = None,
    client: Annotated[Optional[str], typer.Option("--client")] = None,
    location: Annotated[Optional[str], typer.Option("--location")] = None,
    start_date: Annotated[
        Optional[str], typer.Option("--start-date", help="YYYY-MM-DD")
    ] = None,
    end_date: Annotated[Optional[str], typer.Option("--end-date", help="YYYY-MM-DD")] = None,
    manager: Annotated[Optional[str], typer.Option("--manager")] = None,
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Show the project header, updating any fields given"""
    session = get_app(db, project, user=user)
    fields = {
        key: value
        for key, value in {
            "name": name,
            "client": client,
            "location": location,
            "start_date": start_date,
            "end_date": end_date,
            "manager": manager,
        }.items()
        if value is not None
    }
    ok = session.update_project_info(**fields) if fields else True

    info = session.project.info
    typer.echo(f"Project: {info.name}")
    typer.echo(f"  Client: {info.client or '-'}")
    typer.echo(f"  Location: {info.location or '-'}")
    typer.echo(f"  Dates: {info.start_date} to {info.end_date}")
    typer.echo(f"  Manager: {info.manager or '-'}")
    finish(session, ok)


# Category commands


@category_app.command("add")
def category_add(
    code: Annotated[str, typer.Option("--code", help="Cost code, e.g. 03-300")],
    name: Annotated[str, typer.Option("--name", help="Category name")],
    amount: Annotated[float, typer.Option("--amount", help="Budget amount")],
    cost_type: Annotated[
        str, typer.Option("--cost-type", help="Hard, Soft or TI")
    ],
    method: Annotated[
        str,
        typer.Option("--method", help="s-curve, straight-line or manual"),
    ] = "s-curve",
    params: Annotated[
        Optional[str],
        typer.Option("--params", help='Distribution params (JSON), e.g. {"duration": 6}'),
    ] = None,
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Add a budget category and project it into every scenario"""
    distribution_params = parse_json_option(params, "--params")
    session = get_app(db, project, user=user)
    category_id = session.add_category(
        code, name, amount, cost_type, method, distribution_params
    )
    if category_id is not None:
        typer.echo(f"  Category id: {category_id}")
    finish(session, category_id)


@category_app.command("update")
def category_update(
    category_id: Annotated[int, typer.Option("--id", help="Category id")],
    changes: Annotated[
        str,
        typer.Option("--set", help='Fields to change (JSON), e.g. {"amount": 5000}'),
    ],
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Edit a category; its projections are recomputed"""
    updates = parse_json_option(changes, "--set")
    session = get_app(db, project, user=user)
    finish(session, session.update_category(category_id, **updates))


@category_app.command("delete")
def category_delete(
    category_id: Annotated[int, typer.Option("--id", help="Category id")],
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Delete a category and its projections and actuals"""
    session = get_app(db, project, user=user)
    finish(session, session.delete_category(category_id))


@category_app.command("list")
def category_list(
    project: ProjectOption = None,
    db: DbOption = None,
) -> None:
    """List budget categories"""
    session = get_app(db, project)
    categories = list(session.project.budget_categories)
    session.shutdown()

    if not categories:
        typer.echo("No budget categories")
        return

    typer.echo(f"Budget Categories ({len(categories)}):")
    for category in categories:
        typer.echo(
            f"  {category.id}: {category.code} {category.name} "
            f"[{category.cost_type.value}] {format_money(category.amount)} "
            f"({category.distribution_method.value})"
        )


@app.command("recalc")
def recalc(
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Recompute projections for every category"""
    session = get_app(db, project, user=user)
    count = session.recalculate_all()
    typer.echo(f"✓ Recalculated {count} categories")
    finish(session)


# Scenario commands


@scenario_app.command("create")
def scenario_create(
    name: Annotated[str, typer.Option("--name", help="Scenario name")],
    base: Annotated[
        str, typer.Option("--base", help="Scenario to copy")
    ] = "baseline",
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Create a scenario as a copy of another"""
    session = get_app(db, project, user=user)
    scenario_id = session.create_scenario(name, base)
    if scenario_id:
        typer.echo(f"  Scenario id: {scenario_id}")
    finish(session, scenario_id)


@scenario_app.command("switch")
def scenario_switch(
    scenario_id: Annotated[str, typer.Option("--id", help="Scenario id")],
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Make a scenario current"""
    session = get_app(db, project, user=user)
    if not session.switch_scenario(scenario_id):
        typer.echo(f"Error: Scenario not found: {scenario_id}", err=True)
        finish(session, False)
    finish(session)


@scenario_app.command("list")
def scenario_list(
    project: ProjectOption = None,
    db: DbOption = None,
) -> None:
    """List scenarios; the current one is marked with *"""
    session = get_app(db, project)
    current = session.project.current_scenario
    scenarios = dict(session.project.scenarios)
    session.shutdown()

    typer.echo(f"Scenarios ({len(scenarios)}):")
    for scenario_id, scenario in scenarios.items():
        marker = "*" if scenario_id == current else " "
        typer.echo(f"{marker} {scenario_id}: {scenario.name}")


@scenario_app.command("delete")
def scenario_delete(
    scenario_id: Annotated[str, typer.Option("--id", help="Scenario id")],
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Delete a scenario (the baseline cannot be deleted)"""
    session = get_app(db, project, user=user)
    finish(session, session.delete_scenario(scenario_id))


# Actual spend commands


@actual_app.command("record")
def actual_record(
    category_id: Annotated[int, typer.Option("--category", help="Category id")],
    month: Annotated[int, typer.Option("--month", help="Month index from project start")],
    amount: Annotated[float, typer.Option("--amount", help="Amount spent")],
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Record actual spend in the current scenario"""
    session = get_app(db, project, user=user)
    stored = session.record_actual(category_id, month, amount)
    if stored is not None:
        typer.echo(f"✓ Recorded {format_money(stored)} for month {month}")
    finish(session, stored is not None)


# Reporting commands


@app.command()
def summary(
    scenario: Annotated[
        Optional[str], typer.Option("--scenario", help="Scenario id (default: current)")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    project: ProjectOption = None,
    db: DbOption = None,
) -> None:
    """Budget, projected, actual and remaining totals"""
    session = get_app(db, project)
    result = session.summary(scenario)
    by_cost_type = session.cost_type_summary(scenario)
    session.shutdown()
    if result is None or by_cost_type is None:
        raise typer.Exit(1)

    if json_output:
        payload = result.model_dump()
        payload["cost_types"] = [row.model_dump() for row in by_cost_type]
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Summary ({result.scenario_id}):")
    typer.echo(f"  Total budget:    {format_money(result.total_budget)}")
    typer.echo(f"  Total projected: {format_money(result.total_projected)}")
    typer.echo(f"  Total actual:    {format_money(result.total_actual)}")
    typer.echo(f"  Remaining:       {format_money(result.total_remaining)}")
    if result.is_over_budget():
        typer.echo("  ⚠️  Actual spend exceeds budget")
    for row in by_cost_type:
        typer.echo(
            f"  {row.cost_type.value} ({row.category_count}): "
            f"budget {format_money(row.total_budget)}, "
            f"actual {format_money(row.total_actual)}"
        )


@app.command()
def cashflow(
    scenario: Annotated[
        Optional[str], typer.Option("--scenario", help="Scenario id (default: current)")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    project: ProjectOption = None,
    db: DbOption = None,
) -> None:
    """Month-by-month planned and actual spend"""
    session = get_app(db, project)
    rows = session.monthly_cashflow(scenario)
    session.shutdown()
    if rows is None:
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps([row.model_dump() for row in rows], indent=2))
        return

    typer.echo(f"{'Month':>5} {'Planned':>14} {'Actual':>14} {'Cum. planned':>14} {'Cum. actual':>14}")
    for row in rows:
        typer.echo(
            f"{row.month:>5} {row.planned:>14,.2f} {row.actual:>14,.2f} "
            f"{row.cumulative_planned:>14,.2f} {row.cumulative_actual:>14,.2f}"
        )


# Import / export commands


@app.command("export")
def export_cmd(
    out: Annotated[
        Optional[Path], typer.Option("--out", help="Output file (default: generated name)")
    ] = None,
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Export the project as a versioned JSON envelope"""
    session = get_app(db, project, user=user)
    envelope = session.export_data()
    if envelope is None:
        finish(session, False)

    target = out or Path(export_filename(session.project, session.time_provider))
    session.shutdown()
    try:
        write_envelope(envelope, target)
    except CashflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"  Written to {target}")


@app.command("import")
def import_cmd(
    file: Annotated[Path, typer.Option("--file", help="Exported JSON file")],
    yes: Annotated[
        bool, typer.Option("--yes", help="Replace without asking")
    ] = False,
    project: ProjectOption = None,
    db: DbOption = None,
    user: UserOption = "cli",
) -> None:
    """Replace the project with an exported one"""
    try:
        envelope = read_envelope(file)
    except CashflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    session = get_app(db, project, user=user)
    confirmed = yes or typer.confirm("This will replace current project data. Continue?")
    if not confirmed:
        typer.echo("Import cancelled")
        finish(session)
        return
    finish(session, session.import_data(envelope, confirm=True))


if __name__ == "__main__":
    app()
