"""Reconcile decoded workspace documents into one sync snapshot.

Usage:
    documents = await load_workspace("~/workspace")
    snapshot = reconcile(documents)
    payload = format_for_store(snapshot)

The snapshot holds every roster agent (status from the squad table when
present, offline otherwise), every decodable task from both task
documents in source order, and the report activities. It is stamped with
a single ``synced_at``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .loader import WorkspaceDocuments
from .models import (
    Activity,
    Agent,
    AgentDefinition,
    AgentStatus,
    StatusEntry,
    SyncSnapshot,
    Task,
    now_iso,
)
from .reports import DESCRIPTION_LIMIT, parse_agent_reports
from .roster import KNOWN_AGENTS, heartbeat_interval_minutes, parse_agent_soul, soul_path
from .status_table import parse_status_table
from .tasks import current_task_for, parse_pending_tasks_md, parse_tasks_md

logger = logging.getLogger(__name__)


def build_agents(
    statuses: dict[str, StatusEntry],
    tasks: list[Task],
    souls: dict[str, str] | None = None,
    roster: Iterable[AgentDefinition] = KNOWN_AGENTS,
    agents_dir: str = "agents",
) -> list[Agent]:
    """One Agent per roster entry; table rows for unknown names are ignored."""
    souls = souls or {}
    agents: list[Agent] = []

    for definition in roster:
        entry = statuses.get(definition.id)
        soul = parse_agent_soul(souls.get(definition.id, ""))
        current = current_task_for(tasks, definition.id)

        agents.append(Agent(
            id=definition.id,
            name=definition.name,
            display_name=definition.display_name,
            emoji=definition.emoji,
            domain=definition.domain,
            description=soul.description or f"{definition.display_name} — {definition.domain}",
            soul_path=soul_path(definition.id, agents_dir),
            status=entry.status if entry else AgentStatus.OFFLINE,
            last_heartbeat=(entry.last_heartbeat or None) if entry else None,
            heartbeat_schedule=soul.heartbeat_schedule,
            heartbeat_interval_minutes=heartbeat_interval_minutes(soul.heartbeat_schedule),
            current_task=current.id if current else None,
        ))

    unknown = sorted(set(statuses) - {a.id for a in agents})
    if unknown:
        logger.warning("Status table lists agents not in the roster: %s", ", ".join(unknown))
    return agents


def merge_duplicate_tasks(tasks: list[Task]) -> list[Task]:
    """One task per id: the last parsed record, kept at its first position."""
    by_id: dict[str, Task] = {}
    for task in tasks:
        by_id[task.id] = task
    if len(by_id) < len(tasks):
        logger.info("Merged %d task item(s) sharing an id", len(tasks) - len(by_id))
    return list(by_id.values())


def reconcile(
    documents: WorkspaceDocuments,
    roster: Iterable[AgentDefinition] = KNOWN_AGENTS,
    now: str | None = None,
    description_limit: int = DESCRIPTION_LIMIT,
    agents_dir: str = "agents",
) -> SyncSnapshot:
    """Build the snapshot for one sync run.

    Args:
        documents: Raw workspace text; missing documents are empty strings
        roster: Agents to emit, in order
        now: Sync timestamp (ISO 8601). Defaults to the current UTC time.
        description_limit: Max characters of report prose kept in descriptions
        agents_dir: Directory prefix used for soul paths
    """
    synced_at = now or now_iso()

    tasks = parse_tasks_md(documents.tasks_md, synced_at)
    tasks.extend(parse_pending_tasks_md(documents.pending_md, synced_at))
    tasks = merge_duplicate_tasks(tasks)

    statuses = parse_status_table(documents.tasks_md)
    agents = build_agents(statuses, tasks, documents.souls, roster, agents_dir)
    activities = parse_agent_reports(documents.tasks_md, description_limit)

    snapshot = SyncSnapshot(
        agents=agents,
        tasks=tasks,
        activities=activities,
        synced_at=synced_at,
    )
    logger.info(
        "Reconciled %d agents, %d tasks, %d activities",
        len(snapshot.agents), len(snapshot.tasks), len(snapshot.activities),
    )
    return snapshot


def agent_row(agent: Agent, updated_at: str) -> dict[str, Any]:
    return {
        "id": agent.id,
        "name": agent.name,
        "display_name": agent.display_name,
        "emoji": agent.emoji,
        "domain": agent.domain,
        "description": agent.description,
        "soul_path": agent.soul_path,
        "skills": [],
        "tools": [],
        "status": agent.status.value,
        "session_key": agent.session_key,
        "last_heartbeat": agent.last_heartbeat,
        "current_task_id": agent.current_task,
        "heartbeat_schedule": agent.heartbeat_schedule,
        "heartbeat_interval_minutes": agent.heartbeat_interval_minutes,
        "updated_at": updated_at,
    }


def task_row(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "assigned_agent_id": task.assigned_agent_id,
        "created_by": None,
        "parent_task_id": None,
        "context": dict(task.context),
        "tags": list(task.tags),
        "due_date": task.context.get("deadline"),
        "started_at": task.started_at,
        "completed_at": task.completed_at,
        "updated_at": task.updated_at,
    }


def activity_row(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "activity_type": activity.type.value,
        "title": activity.title,
        "description": activity.description,
        "agent_id": activity.agent_id,
        "task_id": activity.task_id,
        "message_id": None,
        "metadata": dict(activity.metadata),
        "created_at": activity.created_at,
    }


def format_for_store(snapshot: SyncSnapshot) -> dict[str, Any]:
    """Row-shaped payload for id-keyed upsert, with a root ``synced_at``."""
    return {
        "agents": [agent_row(a, snapshot.synced_at) for a in snapshot.agents],
        "tasks": [task_row(t) for t in snapshot.tasks],
        "activities": [activity_row(a) for a in snapshot.activities],
        "synced_at": snapshot.synced_at,
    }
