"""Store push, budget check and the scheduled sync job."""

from .alerts import BudgetCheckResult, load_alert_settings, run_budget_check
from .runner import CycleReport, run_cycle, run_sync
from .service import SyncCounts, SyncResult, last_sync_status, push_snapshot
from .store import InMemoryStore, JsonFileStore, Store

__all__ = [
    "BudgetCheckResult",
    "load_alert_settings",
    "run_budget_check",
    "CycleReport",
    "run_cycle",
    "run_sync",
    "SyncCounts",
    "SyncResult",
    "last_sync_status",
    "push_snapshot",
    "InMemoryStore",
    "JsonFileStore",
    "Store",
]
