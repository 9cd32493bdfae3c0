"""
Projection Aggregator - keeps every scenario's projections in step with categories

Owns the invariant that each category has a projection entry in every
scenario. Categories are independent: there is no cross-category check
against a master budget, and the month horizon is the only shared limit.
"""

from cashflow_pro.kernel.logging import get_logger
from cashflow_pro.kernel.metrics import projections_recomputed_total
from cashflow_pro.kernel.settings import CashflowSettings, default_settings
from cashflow_pro.planning.distribution import distribute
from cashflow_pro.planning.invariants import validate_category_exists
from cashflow_pro.planning.models import Project

logger = get_logger(__name__)


class ProjectionAggregator:
    """
    Recomputes per-scenario, per-category projections

    Stateless apart from settings: the project is passed to every call, so a
    project snapshot replaced between calls is simply used at the next one.
    """

    def __init__(self, settings: CashflowSettings | None = None) -> None:
        self.settings = settings or default_settings

    def recompute_projections(self, project: Project, category_id: int) -> None:
        """
        Recompute one category's projection in every scenario

        Each scenario's entry is replaced wholesale. The scenario adjustment
        for the category is set to its amount the first time the category is
        seen there and never overwritten afterwards. Calling twice with no
        change in between yields identical mappings.

        Raises:
            CategoryNotFound: If the category does not exist (nothing changes)
        """
        category = validate_category_exists(project, category_id)

        for scenario in project.scenarios.values():
            if category_id not in scenario.adjustments:
                scenario.adjustments[category_id] = category.amount

            # distribute() returns a fresh dict per call, so scenarios never share one
            scenario.projections[category_id] = distribute(
                category.amount,
                category.distribution_method,
                category.distribution_params,
                self.settings.horizon_months,
            )

        projections_recomputed_total.inc()
        logger.debug(
            "Projections recomputed",
            category_id=category_id,
            scenario_count=len(project.scenarios),
        )

    def recalculate_all(self, project: Project) -> int:
        """
        Recompute every category

        Returns:
            Number of categories recomputed
        """
        for category in project.budget_categories:
            self.recompute_projections(project, category.id)
        return len(project.budget_categories)

    def remove_category(self, project: Project, category_id: int) -> None:
        """Drop the category's projections and actuals from every scenario"""
        for scenario in project.scenarios.values():
            scenario.projections.pop(category_id, None)
            scenario.actuals.pop(category_id, None)
