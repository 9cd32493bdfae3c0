"""
Summary Aggregator - planned vs actual totals for a scenario

Read-only reductions over a project. Remaining budget is measured against
actual spend, not projections, and is allowed to go negative: an over-budget
project is a state to report, not an error.
"""

from pydantic import BaseModel

from cashflow_pro.kernel.errors import ScenarioNotFound
from cashflow_pro.planning.models import CostType, Project, Scenario


class ProjectSummary(BaseModel):
    """Headline totals for one scenario"""

    scenario_id: str
    total_budget: float
    total_projected: float
    total_actual: float
    total_remaining: float

    def is_over_budget(self) -> bool:
        return self.total_remaining < 0


class MonthlyCashflow(BaseModel):
    """One month of the cashflow curve"""

    month: int
    planned: float
    actual: float
    cumulative_planned: float
    cumulative_actual: float


class CostTypeSummary(BaseModel):
    """Totals for one cost type"""

    cost_type: CostType
    category_count: int
    total_budget: float
    total_projected: float
    total_actual: float


def _resolve(project: Project, scenario_id: str | None) -> tuple[str, Scenario]:
    resolved = scenario_id or project.current_scenario
    scenario = project.scenarios.get(resolved)
    if scenario is None:
        raise ScenarioNotFound(resolved)
    return resolved, scenario


def summarize(project: Project, scenario_id: str | None = None) -> ProjectSummary:
    """
    Totals for a scenario (the current one by default)

    total_budget sums category amounts and does not depend on the scenario.
    Projected and actual totals sum every month of every category; missing
    entries count as zero.

    Raises:
        ScenarioNotFound: If scenario_id does not exist
    """
    resolved, scenario = _resolve(project, scenario_id)

    total_budget = project.total_budget()
    total_projected = 0.0
    total_actual = 0.0
    for category in project.budget_categories:
        total_projected += scenario.projected_total(category.id)
        total_actual += scenario.actual_total(category.id)

    return ProjectSummary(
        scenario_id=resolved,
        total_budget=total_budget,
        total_projected=total_projected,
        total_actual=total_actual,
        total_remaining=total_budget - total_actual,
    )


def monthly_cashflow(
    project: Project, scenario_id: str | None = None, horizon: int = 24
) -> list[MonthlyCashflow]:
    """
    Month-by-month planned and actual spend with running totals

    Raises:
        ScenarioNotFound: If scenario_id does not exist
    """
    _, scenario = _resolve(project, scenario_id)

    rows: list[MonthlyCashflow] = []
    running_planned = 0.0
    running_actual = 0.0
    for month in range(horizon):
        planned = sum(
            scenario.projections.get(category.id, {}).get(month, 0.0)
            for category in project.budget_categories
        )
        actual = sum(
            scenario.actuals.get(category.id, {}).get(month, 0.0)
            for category in project.budget_categories
        )
        running_planned += planned
        running_actual += actual
        rows.append(
            MonthlyCashflow(
                month=month,
                planned=planned,
                actual=actual,
                cumulative_planned=running_planned,
                cumulative_actual=running_actual,
            )
        )
    return rows


def summarize_by_cost_type(
    project: Project, scenario_id: str | None = None
) -> list[CostTypeSummary]:
    """
    Totals grouped by Hard / Soft / TI, in that order

    Raises:
        ScenarioNotFound: If scenario_id does not exist
    """
    _, scenario = _resolve(project, scenario_id)

    summaries = []
    for cost_type in CostType:
        categories = [c for c in project.budget_categories if c.cost_type == cost_type]
        summaries.append(
            CostTypeSummary(
                cost_type=cost_type,
                category_count=len(categories),
                total_budget=sum(c.amount for c in categories),
                total_projected=sum(scenario.projected_total(c.id) for c in categories),
                total_actual=sum(scenario.actual_total(c.id) for c in categories),
            )
        )
    return summaries
