"""Task decoding for TASKS.md and PENDING_TASKS.md.

Two item dialects are understood:

Checklist (TASKS.md)::

    - [ ] **Fix login bug** — @Forge #auth
      - Context: Users see a 500 on submit
      - Added: 2026-01-30

Heading (PENDING_TASKS.md)::

    ### Mission Control Phase 2 — Forge
    **Owner:** Forge
    **Started:** 2026-02-03 01:00
    Building the realtime dashboard.

The section an item came from fixes its default status and priority. A
checked box forces ``done``. Items without a recognizable title are
skipped rather than raising.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .models import Task, TaskContext, TaskPriority, TaskStatus, now_iso
from .sections import CHECKLIST_ITEM, HEADING_ITEM, extract_items

logger = logging.getLogger(__name__)

TASKS_SOURCE = "TASKS.md"
PENDING_SOURCE = "PENDING_TASKS.md"

SLUG_MAX_LENGTH = 50


class ItemDialect(str, Enum):
    CHECKLIST = "checklist"
    HEADING = "heading"


@dataclass(frozen=True)
class SectionSpec:
    """Maps one document section to the defaults of its tasks."""

    marker: str
    status: TaskStatus
    priority: TaskPriority


@dataclass(frozen=True)
class DocumentSpec:
    """Layout of one workspace document that holds tasks."""

    source: str
    id_prefix: str
    dialect: ItemDialect
    sections: tuple[SectionSpec, ...]
    tags: tuple[str, ...] = ()


TASK_BOARD = DocumentSpec(
    source=TASKS_SOURCE,
    id_prefix="task",
    dialect=ItemDialect.CHECKLIST,
    sections=(
        SectionSpec("## 🔴 URGENT", TaskStatus.INBOX, TaskPriority.URGENT),
        SectionSpec("## 🟡 ACTION", TaskStatus.ASSIGNED, TaskPriority.HIGH),
        SectionSpec("## 📋 IN PROGRESS", TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM),
        SectionSpec("## ✅ COMPLETED", TaskStatus.DONE, TaskPriority.MEDIUM),
    ),
)

PENDING_LOG = DocumentSpec(
    source=PENDING_SOURCE,
    id_prefix="pending",
    dialect=ItemDialect.HEADING,
    sections=(
        SectionSpec("## 🔄 In Progress", TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM),
        SectionSpec("## ✅ Completed Today", TaskStatus.DONE, TaskPriority.MEDIUM),
    ),
    tags=("async-task",),
)

_BOLD_TITLE = re.compile(r"\*\*([^*]+)\*\*")
_MENTION = re.compile(r"@(\w+)")
_CONTEXT_LINE = re.compile(r"^\s*- (\w+):\s*(.+)$")
_HASHTAG = re.compile(r"(?:^|\s)#([A-Za-z][\w-]*)")
_CHECKED_BOX = re.compile(r"^- \[[xX]\]")

_HEADING_TITLE = re.compile(r"^###\s+(.+?)(?:\s*—.*)?$", re.MULTILINE)
_OWNER = re.compile(r"\*\*Owner:\*\*\s*(\w+)")
_COMPLETED = re.compile(r"\*\*Completed:\*\*\s*(.+)")
_STARTED = re.compile(r"\*\*Started:\*\*\s*(.+)")

PRIORITY_ORDER: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumerics to dashes, cap the length."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:SLUG_MAX_LENGTH].strip("-")


def task_id(title: str, prefix: str) -> str:
    """Deterministic id: the same title from the same source is the same task."""
    return f"{prefix}-{slugify(title)}"


def _extract_tags(text: str) -> list[str]:
    tags: list[str] = []
    for match in _HASHTAG.finditer(text):
        tag = match.group(1).lower()
        if tag not in tags:
            tags.append(tag)
    return tags


def decode_checklist_item(
    item: str,
    section: SectionSpec,
    document: DocumentSpec = TASK_BOARD,
    now: str | None = None,
) -> Task | None:
    """Decode a ``- [ ] **Title**`` item. Returns None when there is no title."""
    title_match = _BOLD_TITLE.search(item)
    if not title_match or not title_match.group(1).strip():
        return None
    title = title_match.group(1).strip()
    timestamp = now or now_iso()

    lines = item.split("\n")
    mention = _MENTION.search(item)
    assigned_agent_id = mention.group(1).lower() if mention else None

    context: TaskContext = {}
    for line in lines[1:]:
        ctx_match = _CONTEXT_LINE.match(line)
        if ctx_match:
            context[ctx_match.group(1).lower()] = ctx_match.group(2).strip()

    is_checked = bool(_CHECKED_BOX.match(item))
    status = TaskStatus.DONE if is_checked else section.status

    completed_at = None
    if status.is_terminal:
        completed_at = context.get("completed") or timestamp

    description = "\n".join(lines[1:]).strip() or None

    return Task(
        id=task_id(title, document.id_prefix),
        title=title,
        description=description,
        status=status,
        priority=section.priority,
        assigned_agent_id=assigned_agent_id,
        created_at=context.get("added") or timestamp,
        updated_at=timestamp,
        source=document.source,
        completed_at=completed_at,
        started_at=context.get("started"),
        tags=list(document.tags) + _extract_tags(item),
        context=context,
    )


def decode_heading_item(
    item: str,
    section: SectionSpec,
    document: DocumentSpec = PENDING_LOG,
    now: str | None = None,
) -> Task | None:
    """Decode a ``### Title — trailing`` item. Returns None when there is no title."""
    title_match = _HEADING_TITLE.search(item)
    if not title_match or not title_match.group(1).strip():
        return None
    title = title_match.group(1).strip()
    timestamp = now or now_iso()

    owner = _OWNER.search(item)
    assigned_agent_id = owner.group(1).lower() if owner else None

    completed = _COMPLETED.search(item)
    completed_value = completed.group(1).strip() if completed else None
    started = _STARTED.search(item)
    started_value = started.group(1).strip() if started else None

    context: TaskContext = {"source": document.source}
    if started_value:
        context["started"] = started_value

    completed_at = None
    if section.status.is_terminal:
        completed_at = completed_value or timestamp

    return Task(
        id=task_id(title, document.id_prefix),
        title=title,
        description=item,
        status=section.status,
        priority=section.priority,
        assigned_agent_id=assigned_agent_id,
        created_at=timestamp,
        updated_at=completed_value or timestamp,
        source=document.source,
        completed_at=completed_at,
        started_at=started_value,
        tags=list(document.tags),
        context=context,
    )


def decode_item(
    item: str,
    section: SectionSpec,
    document: DocumentSpec,
    now: str | None = None,
) -> Task | None:
    """Decode one raw item in the dialect of its document.

    Items in the other dialect decode to None.
    """
    if document.dialect is ItemDialect.HEADING:
        if not HEADING_ITEM.match(item):
            return None
        return decode_heading_item(item, section, document, now)
    if not CHECKLIST_ITEM.match(item):
        return None
    return decode_checklist_item(item, section, document, now)


def parse_document(content: str, document: DocumentSpec, now: str | None = None) -> list[Task]:
    """All decodable tasks of a document, in section then item order."""
    timestamp = now or now_iso()
    tasks: list[Task] = []
    for section in document.sections:
        for item in extract_items(content, section.marker):
            task = decode_item(item, section, document, timestamp)
            if task is None:
                logger.debug("Skipping undecodable item in %s: %r", document.source, item[:80])
                continue
            tasks.append(task)
    return tasks


def parse_tasks_md(content: str, now: str | None = None) -> list[Task]:
    return parse_document(content, TASK_BOARD, now)


def parse_pending_tasks_md(content: str, now: str | None = None) -> list[Task]:
    return parse_document(content, PENDING_LOG, now)


# Queries over decoded tasks


def filter_by_status(tasks: list[Task], status: TaskStatus) -> list[Task]:
    return [t for t in tasks if t.status is status]


def filter_by_agent(tasks: list[Task], agent_id: str) -> list[Task]:
    agent_id = agent_id.lower()
    return [t for t in tasks if t.assigned_agent_id == agent_id]


def filter_by_priority(tasks: list[Task], priority: TaskPriority) -> list[Task]:
    return [t for t in tasks if t.priority is priority]


def sort_by_priority(tasks: list[Task]) -> list[Task]:
    """Most urgent first; stable within a priority."""
    return sorted(tasks, key=lambda t: PRIORITY_ORDER[t.priority])


def current_task_for(tasks: list[Task], agent_id: str) -> Task | None:
    """The first in-progress task assigned to an agent, if any."""
    for task in filter_by_agent(tasks, agent_id):
        if task.status is TaskStatus.IN_PROGRESS:
            return task
    return None
