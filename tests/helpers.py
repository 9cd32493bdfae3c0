"""
Test Helper Functions - Builders and Assertions

Builders keep test setup short; RecordingNotifier captures what the session
would have shown the user.
"""

from typing import Any

from cashflow_pro.planning.commands import AddCategory
from cashflow_pro.planning.models import MonthlyAmounts


class RecordingNotifier:
    """Notifier that keeps every (message, level) pair"""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "info") -> None:
        self.messages.append((message, level))

    def clear(self) -> None:
        self.messages.clear()

    def errors(self) -> list[str]:
        return [message for message, level in self.messages if level == "error"]

    def last(self) -> tuple[str, str]:
        return self.messages[-1]


def add_category_command(
    code: str = "03-300",
    name: str = "Concrete",
    amount: Any = 12000,
    cost_type: str = "Hard",
    distribution_method: str = "straight-line",
    **params: Any,
) -> AddCategory:
    """
    Builder for AddCategory commands

    Defaults to a 12-month straight-line Hard cost of 12,000, which spreads
    to exactly 1,000 per month.

    Example:
        >>> add_category_command(amount=6000, duration=6, startMonth=2)
    """
    return AddCategory(
        code=code,
        name=name,
        amount=amount,
        cost_type=cost_type,
        distribution_method=distribution_method,
        distribution_params=params,
    )


def assert_months_sum(months: MonthlyAmounts, expected: float, tolerance: float = 1e-6) -> None:
    """Assert a monthly mapping sums to expected within tolerance"""
    total = sum(months.values())
    assert abs(total - expected) < tolerance, f"sum {total} != {expected}"
