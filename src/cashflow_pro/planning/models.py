"""
Planning Domain Models - Categories, scenarios and the project aggregate

These models are both the in-memory state and the stored document shape.
Attributes are snake_case; documents use the camelCase aliases, and every
model keeps unknown fields so other clients' data survives a round trip.

Key concepts:
- BudgetCategory: one line item with a distribution shape
- Scenario: an independently mutable branch of projections and actuals
- Project: aggregate root owning categories and scenarios
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

BASELINE_SCENARIO_ID = "baseline"

# month index -> amount
MonthlyAmounts = dict[int, float]


class DistributionMethod(str, Enum):
    """
    How a category's amount is spread over time

    - S_CURVE: logistic ramp-up/ramp-down, the construction default
    - STRAIGHT_LINE: equal amount every month
    - MANUAL: caller-supplied month map, not reconciled to the amount
    """

    S_CURVE = "s-curve"
    STRAIGHT_LINE = "straight-line"
    MANUAL = "manual"

    def label(self) -> str:
        """Display name for tables and reports"""
        return {
            DistributionMethod.S_CURVE: "S-Curve",
            DistributionMethod.STRAIGHT_LINE: "Straight Line",
            DistributionMethod.MANUAL: "Manual",
        }[self]


class CostType(str, Enum):
    """Reporting classification of a category (not used in calculation)"""

    HARD = "Hard"  # construction costs
    SOFT = "Soft"  # fees, permits, financing
    TI = "TI"  # tenant improvements


class DistributionParams(BaseModel):
    """
    Shape parameters for a category's distribution

    Attributes:
        intensity: S-curve steepness, 1 (gentle) to 5 (sharp)
        start_month: First month index receiving an allocation
        duration: Number of months the amount is spread over
        manual_distribution: Month map used verbatim by the manual method
    """

    intensity: float = Field(default=3, ge=1, le=5)
    start_month: int = Field(default=0, ge=0, alias="startMonth")
    duration: int = Field(default=12, ge=1)
    manual_distribution: MonthlyAmounts | None = Field(
        default=None, alias="manualDistribution"
    )

    model_config = {"populate_by_name": True, "extra": "allow"}

    @field_validator("manual_distribution")
    @classmethod
    def _months_not_negative(cls, value: MonthlyAmounts | None) -> MonthlyAmounts | None:
        if value is not None and any(month < 0 for month in value):
            raise ValueError("manual distribution months must be >= 0")
        return value


class BudgetCategory(BaseModel):
    """
    Single budget line item

    Attributes:
        id: Time-derived unique identifier
        code: Cost code (e.g. "03-300")
        name: Human-readable name
        amount: Nominal budget for the category
        cost_type: Hard / Soft / TI classification
        distribution_method: Shape used to spread the amount over months
        distribution_params: Parameters for the shape
    """

    id: int
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    amount: float = Field(ge=0)
    cost_type: CostType = Field(alias="costType")
    distribution_method: DistributionMethod = Field(
        default=DistributionMethod.S_CURVE, alias="distributionMethod"
    )
    distribution_params: DistributionParams = Field(
        default_factory=DistributionParams, alias="distributionParams"
    )

    model_config = {
        "populate_by_name": True,
        "extra": "allow",
        "str_strip_whitespace": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1736942400000,
                    "code": "03-300",
                    "name": "Cast-in-place Concrete",
                    "amount": 1200000,
                    "costType": "Hard",
                    "distributionMethod": "s-curve",
                    "distributionParams": {
                        "intensity": 3,
                        "startMonth": 2,
                        "duration": 10,
                    },
                }
            ]
        },
    }


class Scenario(BaseModel):
    """
    Named branch of the plan

    Projections, actuals and adjustments are keyed by category id. Ids are
    weak references: entries for deleted categories read as empty.
    """

    name: str
    projections: dict[int, MonthlyAmounts] = Field(default_factory=dict)
    actuals: dict[int, MonthlyAmounts] = Field(default_factory=dict)
    adjustments: dict[int, float] = Field(default_factory=dict)
    is_locked: bool = Field(default=False, alias="isLocked")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @field_validator("projections", "actuals", "adjustments", mode="before")
    @classmethod
    def _missing_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    def projected_total(self, category_id: int) -> float:
        return sum(self.projections.get(category_id, {}).values())

    def actual_total(self, category_id: int) -> float:
        return sum(self.actuals.get(category_id, {}).values())

    def clone(self, name: str) -> "Scenario":
        """Deep copy of the planning data under a new name, always unlocked"""
        return Scenario(
            name=name,
            projections={cid: dict(months) for cid, months in self.projections.items()},
            actuals={cid: dict(months) for cid, months in self.actuals.items()},
            adjustments=dict(self.adjustments),
            is_locked=False,
        )


class ProjectColors(BaseModel):
    """Branding colors for reports"""

    primary: str = "#1B365D"
    secondary: str = "#407EC9"
    accent: str = "#EAAA00"
    steel: str = "#505759"

    model_config = {"extra": "allow"}


class ProjectInfo(BaseModel):
    """Descriptive project header"""

    name: str = Field(default="New Construction Project", min_length=1)
    client: str = ""
    location: str = ""
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    manager: str = ""
    logo: str | None = None
    colors: ProjectColors = Field(default_factory=ProjectColors)

    model_config = {"populate_by_name": True, "extra": "allow", "str_strip_whitespace": True}

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        # Stored dates may carry a time component
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            return value[:10] if value else None
        return value

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "ProjectInfo":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("End date must be after start date")
        return self


class Project(BaseModel):
    """
    Aggregate root for one construction project

    Invariants:
    - the baseline scenario always exists
    - current_scenario always names an existing scenario
    - category order is display order only
    """

    info: ProjectInfo = Field(default_factory=ProjectInfo)
    budget_categories: list[BudgetCategory] = Field(
        default_factory=list, alias="budgetCategories"
    )
    scenarios: dict[str, Scenario] = Field(
        default_factory=lambda: {BASELINE_SCENARIO_ID: Scenario(name="Baseline")}
    )
    current_scenario: str = Field(default=BASELINE_SCENARIO_ID, alias="currentScenario")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @model_validator(mode="after")
    def _scenario_pointers_resolve(self) -> "Project":
        if BASELINE_SCENARIO_ID not in self.scenarios:
            raise ValueError("baseline scenario is missing")
        if self.current_scenario not in self.scenarios:
            raise ValueError(f"current scenario {self.current_scenario} does not exist")
        return self

    @classmethod
    def new(cls, name: str, manager: str = "") -> "Project":
        """Fresh project with an empty baseline scenario"""
        return cls(info=ProjectInfo(name=name, manager=manager))

    def get_category(self, category_id: int) -> BudgetCategory | None:
        for category in self.budget_categories:
            if category.id == category_id:
                return category
        return None

    def category_ids(self) -> set[int]:
        return {category.id for category in self.budget_categories}

    def active_scenario(self) -> Scenario:
        return self.scenarios[self.current_scenario]

    def total_budget(self) -> float:
        return sum(category.amount for category in self.budget_categories)

    def to_document(self) -> dict[str, Any]:
        """Serialize to camelCase JSON-compatible data"""
        return self.model_dump(mode="json", by_alias=True)


class ProjectRecord(BaseModel):
    """
    Stored project document

    The store adds lastModified / modifiedBy on save; they are kept as extra
    fields and written back unchanged.
    """

    id: str
    name: str
    created_date: str | None = Field(default=None, alias="createdDate")
    created_by: str | None = Field(default=None, alias="createdBy")
    data: Project = Field(default_factory=Project)

    model_config = {"populate_by_name": True, "extra": "allow"}

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
