"""
Tests for the Summary Aggregator
"""

import pytest

from cashflow_pro.kernel.errors import ScenarioNotFound
from cashflow_pro.planning.handlers import PlanningCommandHandlers
from cashflow_pro.planning.models import CostType, Project
from cashflow_pro.planning.scenarios import ScenarioStore
from cashflow_pro.planning.summary import monthly_cashflow, summarize, summarize_by_cost_type
from tests.helpers import add_category_command


def test_summary_example(handlers: PlanningCommandHandlers, project: Project) -> None:
    """12,000 straight-line over 12 months with 1,000 spent in month 0"""
    category = handlers.handle_add_category(project, add_category_command())
    project.active_scenario().actuals[category.id] = {0: 1000.0}

    summary = summarize(project)

    assert summary.scenario_id == "baseline"
    assert summary.total_budget == 12000
    assert summary.total_projected == pytest.approx(12000)
    assert summary.total_actual == 1000
    assert summary.total_remaining == 11000
    assert summary.is_over_budget() is False


def test_remaining_can_go_negative(handlers: PlanningCommandHandlers, project: Project) -> None:
    category = handlers.handle_add_category(project, add_category_command(amount=500))
    project.active_scenario().actuals[category.id] = {0: 400.0, 1: 350.0}

    summary = summarize(project)

    assert summary.total_remaining == -250
    assert summary.is_over_budget() is True


def test_empty_project(project: Project) -> None:
    summary = summarize(project)

    assert summary.total_budget == 0
    assert summary.total_projected == 0
    assert summary.total_actual == 0
    assert summary.total_remaining == 0


def test_entries_for_deleted_categories_are_ignored(project: Project) -> None:
    project.active_scenario().actuals[404] = {0: 999.0}
    project.active_scenario().projections[404] = {0: 999.0}

    assert summarize(project).total_actual == 0
    assert summarize(project).total_projected == 0


def test_summary_for_named_scenario(
    handlers: PlanningCommandHandlers, scenarios: ScenarioStore, project: Project
) -> None:
    category = handlers.handle_add_category(project, add_category_command())
    scenario_id = scenarios.create_scenario(project, "B")
    project.scenarios[scenario_id].actuals[category.id] = {0: 3000.0}

    assert summarize(project).total_actual == 0
    assert summarize(project, scenario_id).total_actual == 3000
    assert summarize(project, scenario_id).total_budget == 12000


def test_unknown_scenario(project: Project) -> None:
    with pytest.raises(ScenarioNotFound):
        summarize(project, "scenario_404")
    with pytest.raises(ScenarioNotFound):
        monthly_cashflow(project, "scenario_404")
    with pytest.raises(ScenarioNotFound):
        summarize_by_cost_type(project, "scenario_404")


def test_monthly_cashflow(handlers: PlanningCommandHandlers, project: Project) -> None:
    category = handlers.handle_add_category(
        project, add_category_command(amount=6000, startMonth=2, duration=6)
    )
    project.active_scenario().actuals[category.id] = {2: 800.0, 3: 1100.0}

    rows = monthly_cashflow(project)

    assert len(rows) == 24
    assert rows[0].planned == 0
    assert rows[2].planned == pytest.approx(1000)
    assert rows[3].actual == 1100
    assert rows[3].cumulative_actual == 1900
    assert rows[7].cumulative_planned == pytest.approx(6000)
    assert rows[23].cumulative_planned == pytest.approx(6000)


def test_summarize_by_cost_type(handlers: PlanningCommandHandlers, project: Project) -> None:
    hard = handlers.handle_add_category(project, add_category_command(code="01"))
    handlers.handle_add_category(
        project, add_category_command(code="02", cost_type="Soft", amount=3000)
    )
    project.active_scenario().actuals[hard.id] = {0: 750.0}

    rows = {row.cost_type: row for row in summarize_by_cost_type(project)}

    assert list(rows) == [CostType.HARD, CostType.SOFT, CostType.TI]
    assert rows[CostType.HARD].total_budget == 12000
    assert rows[CostType.HARD].total_actual == 750
    assert rows[CostType.SOFT].category_count == 1
    assert rows[CostType.SOFT].total_projected == pytest.approx(3000)
    assert rows[CostType.TI].category_count == 0
