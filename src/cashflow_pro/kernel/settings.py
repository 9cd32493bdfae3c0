"""
Cashflow Settings - Tunable parameters for the planning engine

Everything that was a magic number in the planning workflow lives here:
the tracking horizon, the save debounce delay, the distribution defaults
applied to new categories, and the export envelope version.
"""

import os

from pydantic import BaseModel, Field


class CashflowSettings(BaseModel):
    """
    Session configuration

    Defaults reproduce the standard planning setup: a 24-month horizon,
    a one-second trailing save delay, and a 12-month s-curve of intensity 3
    for new categories.
    """

    horizon_months: int = Field(
        default=24,
        ge=1,
        description="Months tracked by projections; allocations beyond are dropped",
    )

    save_debounce_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Trailing-edge delay that coalesces rapid edits into one save",
    )

    default_intensity: float = Field(
        default=3,
        ge=1,
        le=5,
        description="S-curve intensity applied when a new category omits it",
    )

    default_start_month: int = Field(
        default=0,
        ge=0,
        description="Start month applied when a new category omits it",
    )

    default_duration: int = Field(
        default=12,
        ge=1,
        description="Duration in months applied when a new category omits it",
    )

    export_version: str = Field(
        default="1.0",
        description="Version stamped into export envelopes",
    )

    max_listed_projects: int = Field(
        default=50,
        ge=1,
        description="Most recently modified projects returned by load_all",
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "description": "Configuration for the cashflow planning session"
        },
    }

    def default_distribution_params(self) -> dict[str, float | int]:
        """Distribution defaults in document (camelCase) form"""
        return {
            "intensity": self.default_intensity,
            "startMonth": self.default_start_month,
            "duration": self.default_duration,
        }

    @classmethod
    def from_env(cls, prefix: str = "CASHFLOW_") -> "CashflowSettings":
        """
        Build settings from environment variables

        CASHFLOW_HORIZON_MONTHS=36 overrides horizon_months, and so on.
        Unset variables keep their defaults.
        """
        overrides = {
            name: os.environ[f"{prefix}{name.upper()}"]
            for name in cls.model_fields
            if f"{prefix}{name.upper()}" in os.environ
        }
        return cls.model_validate(overrides)


default_settings = CashflowSettings()
