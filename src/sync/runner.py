"""Scheduled sync job.

One cycle reads the workspace, pushes the snapshot and runs the budget
check. The same functions back ``run.py`` and any request handler.

Usage:
    config = get_validated_config()
    store = JsonFileStore(config.sync.store_path)
    report = await run_cycle(config, store)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..config_schema import AppConfig
from ..costs.pricing import PriceTable
from ..costs.usage import UsageEntry, parse_usage_log
from ..workspace.loader import load_usage_log, load_workspace
from ..workspace.models import SyncSnapshot
from ..workspace.reconciler import format_for_store, reconcile
from ..workspace.roster import KNOWN_AGENTS
from .alerts import BudgetCheckResult, fetch_usage_entries, load_alert_settings, run_budget_check
from .service import SyncResult, push_snapshot
from .store import Store

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Everything one cycle did. ``sync`` is None on a dry run."""

    snapshot: SyncSnapshot
    sync: SyncResult | None = None
    budget: BudgetCheckResult | None = None

    @property
    def success(self) -> bool:
        return self.sync is None or self.sync.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "synced_at": self.snapshot.synced_at,
            "parsed": self.snapshot.counts,
            "sync": self.sync.to_dict() if self.sync else None,
            "budget": self.budget.to_dict() if self.budget else None,
        }


async def build_snapshot(config: AppConfig, now: datetime | None = None) -> SyncSnapshot:
    """Read and reconcile the configured workspace."""
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    documents = await load_workspace(
        config.workspace.path,
        config.workspace,
        [agent.id for agent in KNOWN_AGENTS],
    )
    return reconcile(
        documents,
        now=now.isoformat(),
        description_limit=config.sync.description_limit,
        agents_dir=config.workspace.agents_dir,
    )


async def run_sync(
    config: AppConfig,
    store: Store,
    now: datetime | None = None,
) -> tuple[SyncSnapshot, SyncResult]:
    """Reconcile the workspace and push it to the store."""
    snapshot = await build_snapshot(config, now)
    result = await push_snapshot(store, format_for_store(snapshot), config.sync.timeout_seconds)
    return snapshot, result


async def collect_usage(
    config: AppConfig,
    store: Store,
    now: datetime,
) -> list[UsageEntry]:
    """Usage from the workspace usage log, else from stored activities."""
    entries = parse_usage_log(await load_usage_log(config.workspace.path, config.workspace))
    if entries:
        return entries
    return await fetch_usage_entries(store, now, config.sync.timeout_seconds)


async def run_cycle(
    config: AppConfig,
    store: Store,
    dry_run: bool = False,
    skip_alerts: bool = False,
    now: datetime | None = None,
) -> CycleReport:
    """Sync then budget check.

    On a dry run the workspace is parsed and budgets are evaluated, but
    nothing is written to the store.
    """
    now = (now or datetime.now(timezone.utc)).replace(microsecond=0)

    if dry_run:
        report = CycleReport(snapshot=await build_snapshot(config, now))
    else:
        snapshot, result = await run_sync(config, store, now)
        report = CycleReport(snapshot=snapshot, sync=result)

    if skip_alerts:
        return report

    settings = await load_alert_settings(store, config.alerts)
    entries = await collect_usage(config, store, now)
    report.budget = await run_budget_check(
        store,
        entries,
        settings,
        dry_run=dry_run,
        now=now,
        prices=PriceTable.from_config(config.costs),
        timeout=config.sync.timeout_seconds,
    )
    return report
