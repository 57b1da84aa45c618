"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from src.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# WORKSPACE MODEL
# =============================================================================

class WorkspaceConfig(StrictModel):
    """Where the human-edited workspace documents live."""

    path: str = Field(
        default="workspace",
        description="Workspace root (overridden by WORKSPACE_PATH)"
    )
    tasks_file: str = Field(
        default="TASKS.md",
        description="Kanban task board, relative to the workspace root"
    )
    pending_file: str = Field(
        default="PENDING_TASKS.md",
        description="Async task log, relative to the workspace root"
    )
    agents_dir: str = Field(
        default="agents",
        description="Directory holding agents/<id>/SOUL.md"
    )
    usage_log: str = Field(
        default="usage.log",
        description="Pipe-delimited token usage log, relative to the workspace root"
    )


# =============================================================================
# SYNC MODEL
# =============================================================================

class SyncConfig(StrictModel):
    """Sync job configuration."""

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to each store call"
    )
    description_limit: int = Field(
        default=500,
        gt=0,
        description="Max characters kept in an activity description"
    )
    store_path: str = Field(
        default="data/mission_control.json",
        description="JSON file backing the local store used by run.py"
    )


# =============================================================================
# COSTS MODEL
# =============================================================================

class ModelPrice(StrictModel):
    """Dollar price per 1M tokens."""

    input: float = Field(ge=0, description="$ per 1M input tokens")
    output: float = Field(ge=0, description="$ per 1M output tokens")


class CostsConfig(StrictModel):
    """Model pricing used by the usage aggregator."""

    pricing: dict[str, ModelPrice] = Field(
        default_factory=dict,
        description="Per-model overrides merged over the built-in price table"
    )
    default_price: ModelPrice = Field(
        default_factory=lambda: ModelPrice(input=3.0, output=15.0),
        description="Price for models not in the table"
    )


# =============================================================================
# ALERTS MODEL
# =============================================================================

class BudgetThreshold(StrictModel):
    """Spending limits in dollars. None means no limit for that period."""

    daily: float | None = Field(default=None, ge=0)
    weekly: float | None = Field(default=None, ge=0)
    monthly: float | None = Field(default=None, ge=0)


class NotificationsConfig(StrictModel):
    """Where triggered alerts are delivered."""

    email: bool = False
    webhook: bool = True
    dashboard: bool = True


class AlertsConfig(StrictModel):
    """Budget alert settings.

    The same shape is stored under the ``alert_settings`` key of the
    settings table, where it takes precedence over this file.
    """

    enabled: bool = Field(default=True, description="Run budget checks at all")
    warning_percentage: float = Field(
        default=80,
        gt=0,
        le=100,
        description="Warn at this percentage of a threshold"
    )
    cooldown_minutes: int = Field(
        default=60,
        ge=0,
        description="Suppress repeat alerts for the same condition for this long"
    )
    global_budget: BudgetThreshold = Field(
        default_factory=lambda: BudgetThreshold(daily=10.0, weekly=50.0, monthly=150.0)
    )
    agent_budgets: dict[str, BudgetThreshold] = Field(default_factory=dict)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)

    @field_validator("agent_budgets")
    @classmethod
    def lowercase_agent_ids(
        cls, v: dict[str, BudgetThreshold]
    ) -> dict[str, BudgetThreshold]:
        """Agent ids are lowercase slugs everywhere else."""
        return {agent_id.lower(): budget for agent_id, budget in v.items()}


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the sync job"
    )
    format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="logging.basicConfig format string"
    )


# =============================================================================
# ROOT CONFIG MODEL
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model for the entire application.

    All fields have sensible defaults, so an empty config file is valid.
    """

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    costs: CostsConfig = Field(default_factory=CostsConfig)
    alerts: AlertsConfig = Field(default_factory=AlertsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# LOADING FUNCTIONS
# =============================================================================

def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Args:
        config_dict: Configuration as a dictionary.

    Returns:
        Validated AppConfig instance.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "StrictModel",
    "WorkspaceConfig",
    "SyncConfig",
    "ModelPrice",
    "CostsConfig",
    "BudgetThreshold",
    "NotificationsConfig",
    "AlertsConfig",
    "LoggingConfig",
    "AppConfig",
    "load_validated_config",
    "validate_config_dict",
]
