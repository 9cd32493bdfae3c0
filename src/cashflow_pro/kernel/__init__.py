"""
Kernel - infrastructure shared by the planning engine

Errors, clocks, id generation, settings, logging and metrics. Nothing in
here knows about budgets or scenarios.
"""

from cashflow_pro.kernel.errors import (
    CashflowError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from cashflow_pro.kernel.ids import IdFactory, TimestampIdFactory
from cashflow_pro.kernel.settings import CashflowSettings
from cashflow_pro.kernel.time import RealTimeProvider, TestTimeProvider, TimeProvider

__all__ = [
    # IDs
    "IdFactory",
    "TimestampIdFactory",
    # Time
    "TimeProvider",
    "RealTimeProvider",
    "TestTimeProvider",
    # Settings
    "CashflowSettings",
    # Errors
    "CashflowError",
    "ValidationError",
    "NotFoundError",
    "PersistenceError",
]
