import os
import json
from typing import Any, Dict
from pydantic import BaseModel, Field, field_validator, ValidationInfo
from loguru import logger

from constants import HIGH_RATE_WARNING_PCT


class ConfigurationError(Exception):
    """Raised when the configuration file cannot be loaded or parsed."""


class SWPConfig(BaseModel):
    """Input parameters for a Systematic Withdrawal Plan projection."""

    client_name: str = Field(
        "",
        alias="client",
        description="Name of the client the projection is prepared for.",
    )
    investment: float = Field(
        ..., ge=0, description="Lump sum invested at the start (the initial corpus)."
    )
    monthly_withdrawal: float = Field(
        ...,
        ge=0,
        description="Monthly withdrawal in effect from the first post-deferment month.",
    )
    annual_rate_pct: float = Field(
        ...,
        description="Expected annual return in percent (12 means 12%), compounded monthly.",
    )
    tenure_years: int = Field(..., gt=0, description="Number of years to project.")
    defer_years: int = Field(
        0, ge=0, description="Initial years during which nothing is withdrawn."
    )
    step_up_pct: float = Field(
        0.0,
        ge=0,
        description="Annual percentage increase of the monthly withdrawal after deferment.",
    )

    model_config = {"validate_by_name": True, "validate_assignment": True}

    @field_validator("annual_rate_pct")
    @classmethod
    def check_rate(cls, v: float) -> float:
        if v < 0:
            logger.warning(
                f"Annual return rate is negative ({v:.2f}%); the corpus will shrink every month."
            )
        elif v > HIGH_RATE_WARNING_PCT:
            logger.warning(f"Annual return rate ({v:.2f}%) is unusually high.")
        return v

    @field_validator("defer_years")
    @classmethod
    def check_defer_years(cls, v: int, info: ValidationInfo) -> int:
        tenure = info.data.get("tenure_years")
        if tenure is not None and v >= tenure:
            client = info.data.get("client_name") or "N/A"
            logger.warning(
                f"Deferment ({v} yrs) covers the whole tenure ({tenure} yrs) for client '{client}'; no withdrawal will occur."
            )
        return v

    @property
    def display_name(self) -> str:
        return self.client_name.strip()


def load_config_from_json(file_path: str) -> Dict[str, Any]:
    """Loads and returns the configuration dictionary from a JSON file."""
    if not os.path.exists(file_path):
        raise ConfigurationError(f"Configuration file not found at: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Error parsing JSON file '{file_path}': {e}"
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Unexpected error reading config file '{file_path}': {e}"
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file '{file_path}' must contain a JSON object."
        )
    return data
