"""Budget check against the store.

Evaluates period spending, then stores each alert as an ``escalation``
message unless one with the same (alert type, period, agent) was stored
within the cooldown window. Dedup-then-insert is not atomic; two checks
racing can both store the same alert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from ..config_schema import AlertsConfig
from ..costs.aggregator import calculate_cost_summary
from ..costs.budget import Alert, BudgetPeriod, evaluate_budgets, threshold_for
from ..costs.pricing import PriceTable
from ..costs.usage import UsageEntry, extract_agent_id
from ..errors import StoreError
from .store import Store, call_with_timeout

logger = logging.getLogger(__name__)

ALERT_SETTINGS_KEY = "alert_settings"
ESCALATION_MESSAGE_TYPE = "escalation"
ALERT_SOURCE = "budget_check"

USAGE_LOOKBACK_DAYS = 30
USAGE_ROW_LIMIT = 1000


@dataclass
class BudgetCheckResult:
    """What one budget check found and stored."""

    checked: bool
    timestamp: str
    dry_run: bool = False
    reason: str | None = None
    costs: dict[str, float] = field(default_factory=dict)
    thresholds: dict[str, float | None] = field(default_factory=dict)
    alerts: list[Alert] = field(default_factory=list)
    stored: list[dict[str, Any]] = field(default_factory=list)
    suppressed: int = 0

    @property
    def alerts_triggered(self) -> int:
        return len(self.alerts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "reason": self.reason,
            "timestamp": self.timestamp,
            "dry_run": self.dry_run,
            "costs": dict(self.costs),
            "thresholds": dict(self.thresholds),
            "alerts_triggered": self.alerts_triggered,
            "alerts": [a.to_dict() for a in self.alerts],
            "stored": len(self.stored),
            "suppressed": self.suppressed,
        }


async def load_alert_settings(store: Store, defaults: AlertsConfig) -> AlertsConfig:
    """Settings stored under ``alert_settings``, layered over ``defaults``.

    Falls back to ``defaults`` when nothing is stored, the store cannot
    be read, or the stored value does not validate.
    """
    try:
        rows = await store.recent_rows("settings", {"key": ALERT_SETTINGS_KEY}, limit=1)
    except StoreError as e:
        logger.warning("Cannot read alert settings, using defaults: %s", e.message)
        return defaults

    if not rows or not isinstance(rows[0].get("value"), dict):
        return defaults

    merged = {**defaults.model_dump(), **rows[0]["value"]}
    try:
        return AlertsConfig.model_validate(merged)
    except ValidationError as e:
        logger.warning("Stored alert settings are invalid, using defaults: %s", e)
        return defaults


def usage_entries_from_activities(rows: list[dict[str, Any]]) -> list[UsageEntry]:
    """Recover usage entries from activities whose metadata has token counts."""
    entries: list[UsageEntry] = []
    for row in rows:
        meta = row.get("metadata") or {}
        input_tokens = meta.get("inputTokens") or meta.get("input_tokens")
        if not input_tokens:
            continue
        try:
            input_count = int(input_tokens)
            output_count = int(meta.get("outputTokens") or meta.get("output_tokens") or 0)
        except (TypeError, ValueError):
            logger.debug("Skipping activity %s with bad token counts", row.get("id"))
            continue
        agent_id = row.get("agent_id") or "unknown"
        session_key = meta.get("sessionKey") or meta.get("session_key") or f"agent:{agent_id}:main"
        entries.append(UsageEntry(
            session_key=session_key,
            agent_id=extract_agent_id(session_key) or agent_id,
            model=meta.get("model") or "default",
            input_tokens=input_count,
            output_tokens=output_count,
            timestamp=str(row.get("created_at", "")),
        ))
    return entries


async def fetch_usage_entries(
    store: Store,
    now: datetime,
    timeout: float | None = None,
) -> list[UsageEntry]:
    """Usage recorded in the store's activities over the last 30 days."""
    since = (now - timedelta(days=USAGE_LOOKBACK_DAYS)).isoformat()
    rows = await call_with_timeout(
        store.recent_rows("activities", since=since, limit=USAGE_ROW_LIMIT),
        timeout,
        "activities",
    )
    return usage_entries_from_activities(rows)


def escalation_message(alert: Alert, created_at: str) -> dict[str, Any]:
    return {
        "from_agent_id": None,
        "to_agent_id": None,
        "from_human": False,
        "to_human": True,
        "content": alert.message,
        "message_type": ESCALATION_MESSAGE_TYPE,
        "metadata": {
            "alert_type": alert.type.value,
            "severity": alert.severity.value,
            "title": alert.title,
            "period": alert.period.value,
            "agent_id": alert.agent_id,
            "threshold": alert.threshold,
            "current_value": alert.current_value,
            "percentage": alert.percentage,
            "acknowledged": False,
            "source": ALERT_SOURCE,
        },
        "created_at": created_at,
    }


def _same_condition(message: dict[str, Any], alert: Alert) -> bool:
    meta = message.get("metadata") or {}
    return (
        meta.get("alert_type"),
        meta.get("period"),
        meta.get("agent_id"),
    ) == alert.dedup_key


async def is_recent_duplicate(
    store: Store,
    alert: Alert,
    since: str,
    timeout: float | None = None,
) -> bool:
    """True if an escalation for the same condition was stored since ``since``."""
    recent = await call_with_timeout(
        store.recent_rows("messages", {"message_type": ESCALATION_MESSAGE_TYPE}, since=since),
        timeout,
        "messages",
    )
    return any(_same_condition(message, alert) for message in recent)


async def run_budget_check(
    store: Store,
    entries: list[UsageEntry],
    settings: AlertsConfig,
    dry_run: bool = False,
    now: datetime | None = None,
    prices: PriceTable | None = None,
    timeout: float | None = None,
) -> BudgetCheckResult:
    """Evaluate budgets and store the alerts that are not recent duplicates.

    Args:
        store: Where escalation messages are read and written
        entries: Usage to evaluate
        settings: Thresholds, warning percentage and cooldown
        dry_run: Evaluate only; store nothing
        now: Reference time. Defaults to the current UTC time.
        prices: Price table for cost estimates
        timeout: Seconds allowed for each store call, or None

    Raises:
        StoreError: The store failed while deduplicating or inserting.
    """
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    timestamp = now.isoformat()

    if not settings.enabled:
        return BudgetCheckResult(checked=False, timestamp=timestamp, reason="Alerts are disabled")

    summaries = {
        period: calculate_cost_summary(entries, period.cost_period, now, prices)
        for period in BudgetPeriod
    }
    alerts = evaluate_budgets(summaries, settings)

    result = BudgetCheckResult(
        checked=True,
        timestamp=timestamp,
        dry_run=dry_run,
        costs={p.value: s.total_cost for p, s in summaries.items()},
        thresholds={p.value: threshold_for(settings.global_budget, p) for p in BudgetPeriod},
        alerts=alerts,
    )
    if dry_run:
        return result

    since = (now - timedelta(minutes=settings.cooldown_minutes)).isoformat()
    for alert in alerts:
        if await is_recent_duplicate(store, alert, since, timeout):
            logger.debug("Suppressing repeat alert %s", alert.dedup_key)
            result.suppressed += 1
            continue
        message = escalation_message(alert, timestamp)
        await call_with_timeout(store.insert("messages", [message]), timeout, "messages")
        result.stored.append(message)
        logger.info("Stored alert: %s", alert.title)

    return result
