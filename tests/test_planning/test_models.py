"""
Tests for planning models - document shape and structural invariants
"""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from cashflow_pro.planning.models import (
    BASELINE_SCENARIO_ID,
    BudgetCategory,
    CostType,
    DistributionMethod,
    Project,
    ProjectInfo,
    ProjectRecord,
    Scenario,
)


def test_new_project_has_baseline() -> None:
    project = Project.new("Harbor Point Tower")

    assert list(project.scenarios) == [BASELINE_SCENARIO_ID]
    assert project.current_scenario == BASELINE_SCENARIO_ID
    assert project.scenarios[BASELINE_SCENARIO_ID].name == "Baseline"
    assert project.budget_categories == []


def test_project_document_uses_camel_case() -> None:
    project = Project.new("Harbor Point Tower")
    project.budget_categories.append(
        BudgetCategory(id=1, code="03-300", name="Concrete", amount=5000, cost_type=CostType.HARD)
    )

    document = project.to_document()

    assert set(document) >= {"info", "budgetCategories", "scenarios", "currentScenario"}
    category = document["budgetCategories"][0]
    assert category["costType"] == "Hard"
    assert category["distributionMethod"] == "s-curve"
    assert category["distributionParams"]["startMonth"] == 0
    assert document["scenarios"]["baseline"]["isLocked"] is False


def test_document_round_trip_keeps_unknown_fields() -> None:
    """Fields written by other clients survive load and save"""
    document = Project.new("Harbor Point Tower").to_document()
    document["colorTheme"] = "dark"
    document["scenarios"]["baseline"]["notes"] = "approved by owner"

    reloaded = Project.model_validate(document).to_document()

    assert reloaded["colorTheme"] == "dark"
    assert reloaded["scenarios"]["baseline"]["notes"] == "approved by owner"


def test_month_keys_survive_json_round_trip() -> None:
    scenario = Scenario(name="Baseline", projections={7: {0: 100.0, 11: 250.5}})
    project = Project(scenarios={BASELINE_SCENARIO_ID: scenario})

    reloaded = Project.model_validate(project.to_document())

    assert reloaded.scenarios[BASELINE_SCENARIO_ID].projections == {7: {0: 100.0, 11: 250.5}}


def test_project_without_baseline_is_rejected() -> None:
    with pytest.raises(ValidationError, match="baseline"):
        Project(scenarios={"other": Scenario(name="Other")}, current_scenario="other")


def test_dangling_current_scenario_is_rejected() -> None:
    with pytest.raises(ValidationError, match="does not exist"):
        Project(current_scenario="scenario_1")


def test_invalid_enum_in_document_is_rejected() -> None:
    document = {
        "id": 1,
        "code": "03-300",
        "name": "Concrete",
        "amount": 5000,
        "costType": "Capital",
    }
    with pytest.raises(ValidationError):
        BudgetCategory.model_validate(document)


def test_null_scenario_maps_read_as_empty() -> None:
    scenario = Scenario.model_validate(
        {"name": "Imported", "projections": None, "actuals": None, "adjustments": None}
    )
    assert scenario.projections == {}
    assert scenario.actuals == {}
    assert scenario.adjustments == {}


def test_clone_is_deep_and_unlocked() -> None:
    original = Scenario(
        name="Baseline",
        projections={1: {0: 100.0}},
        actuals={1: {0: 90.0}},
        adjustments={1: 100.0},
        is_locked=True,
    )

    copy = original.clone("What-if")
    copy.actuals[1][0] = 5.0
    copy.projections[1][1] = 7.0

    assert copy.name == "What-if"
    assert copy.is_locked is False
    assert original.actuals[1] == {0: 90.0}
    assert original.projections[1] == {0: 100.0}


def test_scenario_totals_treat_missing_as_zero() -> None:
    scenario = Scenario(name="Baseline", projections={1: {0: 10.0, 1: 15.0}})

    assert scenario.projected_total(1) == 25.0
    assert scenario.projected_total(2) == 0.0
    assert scenario.actual_total(1) == 0.0


def test_project_info_dates() -> None:
    info = ProjectInfo.model_validate(
        {"name": "Tower", "startDate": "2025-03-01T00:00:00.000Z", "endDate": datetime(2026, 6, 30, 9)}
    )
    assert info.start_date == date(2025, 3, 1)
    assert info.end_date == date(2026, 6, 30)

    with pytest.raises(ValidationError, match="End date must be after start date"):
        ProjectInfo(name="Tower", start_date=date(2026, 1, 1), end_date=date(2025, 1, 1))


def test_method_labels() -> None:
    assert DistributionMethod.S_CURVE.label() == "S-Curve"
    assert DistributionMethod("straight-line").label() == "Straight Line"


def test_project_record_keeps_store_stamps() -> None:
    record = ProjectRecord.model_validate(
        {"id": "proj_1", "name": "Tower", "data": Project.new("Tower").to_document(), "lastModified": "x"}
    )
    document = record.to_document()

    assert document["data"]["info"]["name"] == "Tower"
    assert document["lastModified"] == "x"
