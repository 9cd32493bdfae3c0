"""
Planning Commands - Intentions to change a project

Commands carry raw user input. They are validated as a whole before any
state is touched; a command that fails validation changes nothing.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from cashflow_pro.planning.models import (
    BASELINE_SCENARIO_ID,
    CostType,
    DistributionMethod,
)


class AddCategory(BaseModel):
    """
    Add a budget category

    distribution_params is merged over the session defaults
    (intensity 3, start month 0, duration 12).
    """

    code: str
    name: str
    amount: Any
    cost_type: str
    distribution_method: str = DistributionMethod.S_CURVE.value
    distribution_params: dict[str, Any] = Field(default_factory=dict)


class UpdateCategory(BaseModel):
    """
    Update fields of an existing category

    Keys may be snake_case or camelCase; distribution params are merged into
    the existing params rather than replacing them.
    """

    category_id: int
    updates: dict[str, Any] = Field(..., min_length=1)


class DeleteCategory(BaseModel):
    """Delete a category and its projections/actuals in every scenario"""

    category_id: int


class CreateScenario(BaseModel):
    """Branch a new scenario from an existing one"""

    name: str
    base_scenario_id: str = BASELINE_SCENARIO_ID


class RecordActual(BaseModel):
    """Record actual spend for one category-month in the current scenario"""

    category_id: int
    month: Any
    amount: Any


class UpdateProjectInfo(BaseModel):
    """Update the project header"""

    name: str | None = None
    client: str | None = None
    location: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    manager: str | None = None


VALID_COST_TYPES = [cost_type.value for cost_type in CostType]
VALID_METHODS = [method.value for method in DistributionMethod]
