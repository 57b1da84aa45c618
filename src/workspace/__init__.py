"""Workspace document parsing.

Turns the squad's markdown workspace (TASKS.md, PENDING_TASKS.md and
agents/<id>/SOUL.md) into normalized agents, tasks and activities.
"""

from .loader import WorkspaceDocuments, load_usage_log, load_workspace
from .models import (
    Activity,
    ActivityType,
    Agent,
    AgentStatus,
    SyncSnapshot,
    Task,
    TaskPriority,
    TaskStatus,
)
from .reconciler import format_for_store, reconcile
from .reports import parse_agent_reports
from .roster import KNOWN_AGENTS
from .status_table import parse_status_table
from .tasks import parse_pending_tasks_md, parse_tasks_md

__all__ = [
    "WorkspaceDocuments",
    "load_usage_log",
    "load_workspace",
    "Activity",
    "ActivityType",
    "Agent",
    "AgentStatus",
    "SyncSnapshot",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "format_for_store",
    "reconcile",
    "parse_agent_reports",
    "KNOWN_AGENTS",
    "parse_status_table",
    "parse_pending_tasks_md",
    "parse_tasks_md",
]
