"""Records produced by the workspace parsers.

These are the normalized agents, tasks and activities built from the
markdown documents, separate from the row shape the store expects
(see reconciler.format_for_store).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# Free-form task context: arbitrary lowercase keys, string values
TaskContext = dict[str, str]


def now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class AgentStatus(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"
    ERROR = "error"


class TaskStatus(str, Enum):
    INBOX = "inbox"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is TaskStatus.DONE


class TaskPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActivityType(str, Enum):
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_COMPLETED = "task_completed"
    AGENT_MESSAGE = "agent_message"
    HUMAN_MESSAGE = "human_message"
    AGENT_STATUS_CHANGE = "agent_status_change"
    DOCUMENT_UPDATED = "document_updated"
    SYSTEM_EVENT = "system_event"


@dataclass
class AgentDefinition:
    """Static roster entry."""

    id: str
    name: str
    display_name: str
    emoji: str
    domain: str


@dataclass
class StatusEntry:
    """One row of the squad status table."""

    last_heartbeat: str
    status: AgentStatus


@dataclass
class Agent:
    """Current state of a squad agent."""

    id: str
    name: str
    display_name: str
    emoji: str
    domain: str
    description: str
    soul_path: str
    status: AgentStatus = AgentStatus.OFFLINE
    last_heartbeat: str | None = None
    heartbeat_schedule: str | None = None
    heartbeat_interval_minutes: int | None = None
    current_task: str | None = None

    @property
    def session_key(self) -> str:
        return f"agent:{self.id}:main"


@dataclass
class Task:
    """A task decoded from one workspace document item."""

    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_agent_id: str | None
    created_at: str
    updated_at: str
    source: str
    completed_at: str | None = None
    started_at: str | None = None
    tags: list[str] = field(default_factory=list)
    context: TaskContext = field(default_factory=dict)


@dataclass
class Activity:
    """An append-only activity feed entry."""

    id: str
    type: ActivityType
    title: str
    description: str | None
    agent_id: str | None
    task_id: str | None
    created_at: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SyncSnapshot:
    """Everything one reconciliation run produced, stamped once."""

    agents: list[Agent]
    tasks: list[Task]
    activities: list[Activity]
    synced_at: str

    @property
    def counts(self) -> dict[str, int]:
        return {
            "agents": len(self.agents),
            "tasks": len(self.tasks),
            "activities": len(self.activities),
        }
