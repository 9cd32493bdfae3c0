"""
Planning Invariants - validation gates run before any mutation

Each validator collects every problem it finds and raises a single
ValidationError listing them, so the caller can show all of them at once.
"""

import math
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from cashflow_pro.kernel.errors import CategoryNotFound, ValidationError
from cashflow_pro.planning.commands import VALID_COST_TYPES, VALID_METHODS
from cashflow_pro.planning.models import BudgetCategory, Project, ProjectInfo


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def category_errors(data: dict[str, Any]) -> list[str]:
    """
    Check the required fields of a category

    Args:
        data: snake_case category fields (code, name, amount, cost_type,
            distribution_method)

    Returns:
        List of error messages, empty when valid
    """
    errors: list[str] = []

    if _blank(data.get("code")):
        errors.append("Category code is required")

    if _blank(data.get("name")):
        errors.append("Category name is required")

    amount = data.get("amount")
    try:
        amount_value = float(amount)
    except (TypeError, ValueError):
        amount_value = math.nan
    if math.isnan(amount_value) or amount_value < 0:
        errors.append("Amount must be a non-negative number")

    cost_type = getattr(data.get("cost_type"), "value", data.get("cost_type"))
    if cost_type not in VALID_COST_TYPES:
        errors.append("Invalid cost type")

    method = getattr(data.get("distribution_method"), "value", data.get("distribution_method"))
    if method not in VALID_METHODS:
        errors.append("Invalid distribution method")

    return errors


def build_category(data: dict[str, Any]) -> BudgetCategory:
    """
    Validate and construct a BudgetCategory

    Raises:
        ValidationError: Listing every failed check; nothing is constructed
    """
    errors = category_errors(data)
    if errors:
        raise ValidationError(errors)

    try:
        return BudgetCategory.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_pydantic_messages(exc)) from exc


def validate_category_exists(project: Project, category_id: int) -> BudgetCategory:
    """
    Raises:
        CategoryNotFound: If no category has this id
    """
    category = project.get_category(category_id)
    if category is None:
        raise CategoryNotFound(category_id)
    return category


def validate_scenario_name(name: Any) -> str:
    """
    Raises:
        ValidationError: If the name is empty or blank
    """
    if _blank(name):
        raise ValidationError("Scenario name is required")
    return name.strip()


def validate_month(month: Any, horizon: int) -> int:
    """
    Raises:
        ValidationError: If month is not an integer in [0, horizon)
    """
    if isinstance(month, float) and not month.is_integer():
        raise ValidationError(f"Month {month!r} is not a month index")
    try:
        month_index = int(month)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Month {month!r} is not a month index") from exc
    if not 0 <= month_index < horizon:
        raise ValidationError(f"Month must be an integer between 0 and {horizon - 1}")
    return month_index


def build_project_info(data: dict[str, Any]) -> ProjectInfo:
    """
    Validate and construct the project header

    Raises:
        ValidationError: Name missing or end date before start date
    """
    errors: list[str] = []
    if _blank(data.get("name")):
        errors.append("Project name is required")

    start, end = data.get("start_date"), data.get("end_date")
    if isinstance(start, date) and isinstance(end, date) and end < start:
        errors.append("End date must be after start date")

    if errors:
        raise ValidationError(errors)

    try:
        return ProjectInfo.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_pydantic_messages(exc)) from exc


def _pydantic_messages(exc: PydanticValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}"
        for error in exc.errors()
    ]
