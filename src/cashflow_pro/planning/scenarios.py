"""
Scenario Store - named branches of projected and actual spend

The baseline scenario is created with the project and can never be deleted.
Other scenarios are deep copies of an existing one and evolve independently
from then on.
"""

import math
from typing import Any

from cashflow_pro.kernel.errors import ScenarioNotFound, ValidationError
from cashflow_pro.kernel.ids import IdFactory, default_id_factory, prefixed_id
from cashflow_pro.kernel.logging import get_logger
from cashflow_pro.kernel.settings import CashflowSettings, default_settings
from cashflow_pro.planning.invariants import validate_month, validate_scenario_name
from cashflow_pro.planning.models import BASELINE_SCENARIO_ID, Project, Scenario

logger = get_logger(__name__)


def coerce_amount(value: Any) -> float:
    """Numeric input as float; anything non-numeric (or NaN) becomes 0.0"""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(amount) else amount


class ScenarioStore:
    """
    Scenario operations over a project

    Scenario ids ("scenario_<ms>") come from a monotonic factory and are
    never reused within a project.
    """

    def __init__(
        self,
        id_factory: IdFactory | None = None,
        settings: CashflowSettings | None = None,
    ) -> None:
        self.id_factory = id_factory or default_id_factory
        self.settings = settings or default_settings

    def get_scenario(self, project: Project, scenario_id: str) -> Scenario:
        """
        Raises:
            ScenarioNotFound: If the id does not exist
        """
        scenario = project.scenarios.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFound(scenario_id)
        return scenario

    def create_scenario(
        self,
        project: Project,
        name: str,
        base_scenario_id: str = BASELINE_SCENARIO_ID,
    ) -> str:
        """
        Create a scenario as a deep copy of a base scenario

        Projections, actuals and adjustments are copied; the lock flag is
        not (new scenarios start unlocked).

        Returns:
            The new scenario id

        Raises:
            ValidationError: If name is empty
            ScenarioNotFound: If the base scenario does not exist
        """
        clean_name = validate_scenario_name(name)
        base = self.get_scenario(project, base_scenario_id)

        scenario_id = prefixed_id("scenario", self.id_factory)
        while scenario_id in project.scenarios:
            scenario_id = prefixed_id("scenario", self.id_factory)

        project.scenarios[scenario_id] = base.clone(clean_name)
        logger.info(
            "Scenario created",
            scenario_id=scenario_id,
            base_scenario_id=base_scenario_id,
        )
        return scenario_id

    def switch_scenario(self, project: Project, scenario_id: str) -> bool:
        """
        Point the project at another scenario

        Unknown ids are ignored.

        Returns:
            True if the current scenario changed
        """
        if scenario_id not in project.scenarios:
            logger.debug("Switch to unknown scenario ignored", scenario_id=scenario_id)
            return False
        project.current_scenario = scenario_id
        return True

    def delete_scenario(self, project: Project, scenario_id: str) -> None:
        """
        Delete a non-baseline scenario

        Deleting the current scenario moves the pointer back to baseline.

        Raises:
            ValidationError: If scenario_id is the baseline
            ScenarioNotFound: If the id does not exist
        """
        if scenario_id == BASELINE_SCENARIO_ID:
            raise ValidationError("The baseline scenario cannot be deleted")
        self.get_scenario(project, scenario_id)

        del project.scenarios[scenario_id]
        if project.current_scenario == scenario_id:
            project.current_scenario = BASELINE_SCENARIO_ID
        logger.info("Scenario deleted", scenario_id=scenario_id)

    def record_actual(
        self, project: Project, category_id: int, month: Any, amount: Any
    ) -> float:
        """
        Write actual spend into the current scenario

        Non-numeric amounts are stored as 0. The per-category mapping is
        created on first use.

        Returns:
            The amount stored

        Raises:
            ValidationError: If month is outside the horizon
        """
        month_index = validate_month(month, self.settings.horizon_months)
        value = coerce_amount(amount)

        scenario = project.active_scenario()
        scenario.actuals.setdefault(category_id, {})[month_index] = value
        return value
