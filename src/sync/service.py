"""Pushing a reconciled snapshot into the store.

Agents and tasks are upserted by id. Activities are insert-only: ids
already in the store are skipped, so pushing the same snapshot twice
adds nothing. Each step fails independently; a failed step is recorded
in the result and the remaining steps still run.

After the push a ``system_event`` activity records what was written.
``last_sync_status`` reads the newest one back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..errors import ErrorResponse, StoreError, SyncPayloadError
from ..workspace.models import ActivityType, now_iso
from .store import Store, call_with_timeout

logger = logging.getLogger(__name__)

SYNC_EVENT_TITLE = "Data synced from workspace"

STEP_AGENTS = "agents"
STEP_TASKS = "tasks"
STEP_ACTIVITIES = "activities"


@dataclass
class SyncCounts:
    agents_upserted: int = 0
    tasks_upserted: int = 0
    activities_inserted: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "agents_upserted": self.agents_upserted,
            "tasks_upserted": self.tasks_upserted,
            "activities_inserted": self.activities_inserted,
        }


@dataclass
class SyncResult:
    """Outcome of one push.

    ``errors`` holds one "<step> failed: <message>" line per failed step;
    ``step_errors`` has the same failures with their error codes.
    """

    synced_at: str
    counts: SyncCounts = field(default_factory=SyncCounts)
    errors: list[str] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)
    attempted_steps: list[str] = field(default_factory=list)
    step_errors: list[ErrorResponse] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def partial(self) -> bool:
        """Some steps failed but at least one other step succeeded."""
        return bool(self.failed_steps) and len(self.failed_steps) < len(self.attempted_steps)

    def record_failure(self, step: str, error: StoreError) -> None:
        self.errors.append(f"{step} failed: {error.message}")
        self.failed_steps.append(step)
        self.step_errors.append(error.to_response(step=step))
        logger.warning("Sync step %s failed: %s", step, error.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "partial": self.partial,
            "synced_at": self.synced_at,
            "counts": self.counts.to_dict(),
            "errors": list(self.errors),
            "failed_steps": list(self.failed_steps),
            "step_errors": [e.to_dict() for e in self.step_errors],
        }


def validate_payload(payload: dict[str, Any]) -> None:
    """Raise SyncPayloadError unless agents, tasks and synced_at are present."""
    missing = [
        key for key in ("agents", "tasks", "synced_at")
        if payload.get(key) is None
    ]
    if missing:
        raise SyncPayloadError(f"Invalid payload: missing {', '.join(missing)}")
    for key in ("agents", "tasks", "activities"):
        if not isinstance(payload.get(key, []), list):
            raise SyncPayloadError(f"Invalid payload: {key} must be a list")


def _unique_by_id(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    unique = []
    for row in rows:
        if row["id"] in seen:
            continue
        seen.add(row["id"])
        unique.append(row)
    return unique


async def push_snapshot(
    store: Store,
    payload: dict[str, Any],
    timeout: float | None = None,
) -> SyncResult:
    """Write a ``format_for_store`` payload to the store.

    Args:
        store: Target store
        payload: Dict with agents, tasks, activities and synced_at
        timeout: Seconds allowed for each store call, or None

    Raises:
        SyncPayloadError: The payload is missing required collections.
    """
    validate_payload(payload)
    result = SyncResult(synced_at=payload["synced_at"])

    agents = payload["agents"]
    if agents:
        result.attempted_steps.append(STEP_AGENTS)
        try:
            result.counts.agents_upserted = await call_with_timeout(
                store.upsert("agents", agents, on_conflict="id"), timeout, "agents"
            )
        except StoreError as e:
            result.record_failure(STEP_AGENTS, e)

    tasks = payload["tasks"]
    if tasks:
        result.attempted_steps.append(STEP_TASKS)
        try:
            result.counts.tasks_upserted = await call_with_timeout(
                store.upsert("tasks", tasks, on_conflict="id"), timeout, "tasks"
            )
        except StoreError as e:
            result.record_failure(STEP_TASKS, e)

    activities = _unique_by_id(payload.get("activities") or [])
    if activities:
        result.attempted_steps.append(STEP_ACTIVITIES)
        try:
            existing = await call_with_timeout(
                store.select_existing_ids("activities", [a["id"] for a in activities]),
                timeout,
                "activities",
            )
            new_activities = [a for a in activities if a["id"] not in existing]
            if new_activities:
                result.counts.activities_inserted = await call_with_timeout(
                    store.insert("activities", new_activities), timeout, "activities"
                )
        except StoreError as e:
            result.record_failure(STEP_ACTIVITIES, e)

    await _record_sync_event(store, result, timeout)

    logger.info(
        "Sync %s: %d agents, %d tasks, %d new activities",
        "succeeded" if result.success else "finished with errors",
        result.counts.agents_upserted,
        result.counts.tasks_upserted,
        result.counts.activities_inserted,
    )
    return result


async def _record_sync_event(store: Store, result: SyncResult, timeout: float | None) -> None:
    counts = result.counts
    event = {
        "activity_type": ActivityType.SYSTEM_EVENT.value,
        "title": SYNC_EVENT_TITLE,
        "description": (
            f"Synced {counts.agents_upserted} agents, {counts.tasks_upserted} tasks, "
            f"{counts.activities_inserted} activities"
        ),
        "agent_id": None,
        "task_id": None,
        "message_id": None,
        "metadata": {
            "counts": counts.to_dict(),
            "synced_at": result.synced_at,
            "errors": list(result.errors),
        },
        "created_at": now_iso(),
    }
    try:
        await call_with_timeout(store.insert("activities", [event]), timeout, "activities")
    except StoreError as e:
        # The push itself already happened; only the audit record is missing
        logger.warning("Could not record sync event: %s", e.message)


async def last_sync_status(store: Store) -> dict[str, Any] | None:
    """When the last sync ran and what it wrote, or None if never."""
    rows = await store.recent_rows(
        "activities",
        {"activity_type": ActivityType.SYSTEM_EVENT.value, "title": SYNC_EVENT_TITLE},
        limit=1,
    )
    if not rows:
        return None
    row = rows[0]
    metadata = row.get("metadata") or {}
    return {
        "last_sync": row.get("created_at"),
        "synced_at": metadata.get("synced_at", row.get("created_at")),
        "counts": metadata.get("counts", {}),
    }
