"""Budget evaluation.

Compares period spending against configured thresholds, globally and
per agent, and produces alerts. Pure: storing and deduplicating alerts
is the caller's job (see src/sync/alerts.py).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from ..config_schema import AlertsConfig, BudgetThreshold
from .aggregator import CostPeriod, CostSummary

logger = logging.getLogger(__name__)


class AlertType(str, Enum):
    BUDGET_EXCEEDED = "budget_exceeded"
    BUDGET_WARNING = "budget_warning"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


class BudgetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def cost_period(self) -> CostPeriod:
        return {
            "daily": CostPeriod.DAY,
            "weekly": CostPeriod.WEEK,
            "monthly": CostPeriod.MONTH,
        }[self.value]


@dataclass
class Alert:
    """A budget threshold that has been reached."""

    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    period: BudgetPeriod
    threshold: float
    current_value: float
    percentage: float
    agent_id: str | None = None

    @property
    def dedup_key(self) -> tuple[str, str, str | None]:
        """Alerts with the same key describe the same condition."""
        return (self.type.value, self.period.value, self.agent_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "period": self.period.value,
            "agent_id": self.agent_id,
            "threshold": self.threshold,
            "current_value": self.current_value,
            "percentage": self.percentage,
        }


def threshold_for(budget: BudgetThreshold, period: BudgetPeriod) -> float | None:
    return getattr(budget, period.value)


def check_budget(
    current: float,
    threshold: float | None,
    period: BudgetPeriod,
    warning_percentage: float = 80,
    agent_id: str | None = None,
) -> Alert | None:
    """Alert for one (scope, period), or None.

    ``current >= threshold`` is exceeded. Otherwise reaching
    ``warning_percentage`` of the threshold is a warning. A threshold of
    None or 0 means the budget is not configured.
    """
    if not threshold:
        return None

    percentage = current * 100 / threshold
    label = period.value.capitalize()
    suffix = f" for {agent_id}" if agent_id else ""

    if current >= threshold:
        return Alert(
            type=AlertType.BUDGET_EXCEEDED,
            severity=AlertSeverity.CRITICAL,
            title=f"{label} Budget Exceeded{suffix}",
            message=(
                f"{label} spending (${current:.2f}) has exceeded "
                f"the budget of ${threshold:.2f}{suffix}."
            ),
            period=period,
            agent_id=agent_id,
            threshold=threshold,
            current_value=current,
            percentage=percentage,
        )

    if current * 100 >= threshold * warning_percentage:
        return Alert(
            type=AlertType.BUDGET_WARNING,
            severity=AlertSeverity.WARNING,
            title=f"{label} Budget Warning{suffix}",
            message=(
                f"{label} spending (${current:.2f}) has reached "
                f"{percentage:.0f}% of the ${threshold:.2f} budget{suffix}."
            ),
            period=period,
            agent_id=agent_id,
            threshold=threshold,
            current_value=current,
            percentage=percentage,
        )

    return None


def evaluate_budgets(
    summaries: Mapping[BudgetPeriod, CostSummary],
    settings: AlertsConfig,
) -> list[Alert]:
    """All alerts for the given period summaries.

    Global budgets come first (daily, weekly, monthly), then agent
    budgets in settings order. An agent budget is only checked for a
    period in which that agent spent something.
    """
    alerts: list[Alert] = []

    for period in BudgetPeriod:
        summary = summaries.get(period)
        if summary is None:
            continue
        alert = check_budget(
            summary.total_cost,
            threshold_for(settings.global_budget, period),
            period,
            settings.warning_percentage,
        )
        if alert:
            alerts.append(alert)

    agent_totals = {p: s.agent_totals() for p, s in summaries.items()}
    for agent_id, budget in settings.agent_budgets.items():
        for period in BudgetPeriod:
            spent = agent_totals.get(period, {}).get(agent_id)
            if spent is None:
                continue
            alert = check_budget(
                spent,
                threshold_for(budget, period),
                period,
                settings.warning_percentage,
                agent_id=agent_id,
            )
            if alert:
                alerts.append(alert)

    if alerts:
        logger.info("Budget evaluation produced %d alert(s)", len(alerts))
    return alerts
