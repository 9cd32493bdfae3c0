"""
Distribution Calculator - spreads a category amount over the month horizon

Pure functions: (amount, method, params, horizon) -> {month_index: amount}.
Results are sparse; months past the horizon are dropped, so a plan that runs
off the end of the horizon under-delivers its amount. That is accepted, not
an error.

distribute() never raises. Malformed parameters produce an empty mapping and
are reported through a warning log and the
cashflow_distribution_failures_total counter, so one bad category cannot
abort a recompute of the whole project.
"""

import math
from collections.abc import Mapping
from typing import Any

from cashflow_pro.kernel.errors import DistributionError
from cashflow_pro.kernel.logging import get_logger
from cashflow_pro.kernel.metrics import distribution_failures_total
from cashflow_pro.planning.models import DistributionMethod, DistributionParams, MonthlyAmounts

logger = get_logger(__name__)

DEFAULT_HORIZON_MONTHS = 24
DEFAULT_INTENSITY = 3
DEFAULT_START_MONTH = 0
DEFAULT_DURATION = 12


def _check_months(method: DistributionMethod, start_month: int, duration: int) -> None:
    if duration < 1:
        raise DistributionError(method.value, f"duration {duration} < 1")
    if start_month < 0:
        raise DistributionError(method.value, f"start month {start_month} < 0")


def straight_line(
    amount: float, start_month: int, duration: int, horizon: int
) -> MonthlyAmounts:
    """
    Equal allocation of amount / duration per month

    Raises:
        DistributionError: If duration < 1 or start_month < 0
    """
    _check_months(DistributionMethod.STRAIGHT_LINE, start_month, duration)

    monthly_amount = amount / duration
    return {
        start_month + month: monthly_amount
        for month in range(min(duration, horizon - start_month))
    }


def s_curve(
    amount: float, intensity: float, start_month: int, duration: int, horizon: int
) -> MonthlyAmounts:
    """
    Logistic allocation centred on the middle of the duration

    For m in [0, duration): x = m - duration/2, steepness = intensity * 0.5,
    w(m) = 1 / (1 + exp(-steepness * x / (duration/2))). Each month receives
    w(m) / sum(w) * amount. Normalisation happens before the horizon cut, so
    truncated curves do not sum to amount.

    Raises:
        DistributionError: If duration < 1 or start_month < 0
    """
    _check_months(DistributionMethod.S_CURVE, start_month, duration)

    steepness = intensity * 0.5
    midpoint = duration / 2

    def weight(month: int) -> float:
        return 1 / (1 + math.exp(-steepness * (month - midpoint) / midpoint))

    total = sum(weight(month) for month in range(duration))

    return {
        start_month + month: weight(month) / total * amount
        for month in range(min(duration, horizon - start_month))
    }


def manual(params: Mapping[str, Any]) -> MonthlyAmounts:
    """Caller-supplied month map, copied verbatim (empty if absent)"""
    months = params.get("manualDistribution") or params.get("manual_distribution") or {}
    return {int(month): float(value) for month, value in months.items()}


def _as_mapping(params: DistributionParams | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if params is None:
        return {}
    if isinstance(params, DistributionParams):
        return params.model_dump(by_alias=True, exclude_none=True)
    return params


def _param(params: Mapping[str, Any], alias: str, name: str, default: Any) -> Any:
    value = params.get(alias, params.get(name))
    return default if value is None else value


def distribute(
    amount: float,
    method: DistributionMethod | str,
    params: DistributionParams | Mapping[str, Any] | None = None,
    horizon: int = DEFAULT_HORIZON_MONTHS,
) -> MonthlyAmounts:
    """
    Allocate amount over months according to method

    Args:
        amount: Nominal category amount (>= 0)
        method: "s-curve", "straight-line" or "manual"; anything else is
            treated as straight-line
        params: DistributionParams or a camelCase/snake_case mapping;
            missing values use intensity=3, startMonth=0, duration=12
        horizon: Number of months tracked; later months are dropped

    Returns:
        Sparse {month_index: amount} mapping; empty on malformed params
    """
    method_value = method.value if isinstance(method, DistributionMethod) else str(method)
    values = _as_mapping(params)

    try:
        if method_value == DistributionMethod.MANUAL.value:
            return manual(values)

        start_month = int(_param(values, "startMonth", "start_month", DEFAULT_START_MONTH))
        duration = int(_param(values, "duration", "duration", DEFAULT_DURATION))

        if method_value == DistributionMethod.S_CURVE.value:
            intensity = float(_param(values, "intensity", "intensity", DEFAULT_INTENSITY))
            return s_curve(float(amount), intensity, start_month, duration, horizon)

        if method_value != DistributionMethod.STRAIGHT_LINE.value:
            logger.warning(
                "Unknown distribution method, using straight-line",
                method=method_value,
            )
        return straight_line(float(amount), start_month, duration, horizon)

    except (DistributionError, ArithmeticError, TypeError, ValueError, AttributeError) as exc:
        logger.warning(
            "Distribution failed, returning empty mapping",
            method=method_value,
            error=str(exc),
        )
        distribution_failures_total.labels(method=method_value).inc()
        return {}
