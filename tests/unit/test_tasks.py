"""Tests for task item decoding and task queries."""

import pytest

from src.workspace.models import TaskPriority, TaskStatus
from src.workspace.tasks import (
    PENDING_LOG,
    TASK_BOARD,
    current_task_for,
    decode_checklist_item,
    decode_heading_item,
    decode_item,
    filter_by_agent,
    filter_by_priority,
    filter_by_status,
    parse_pending_tasks_md,
    parse_tasks_md,
    slugify,
    sort_by_priority,
    task_id,
)

NOW = "2026-02-03T03:00:00+00:00"

URGENT, ACTION, IN_PROGRESS, COMPLETED = TASK_BOARD.sections
PENDING_IN_PROGRESS, PENDING_DONE = PENDING_LOG.sections


class TestSlug:
    """Deterministic ids."""

    def test_slugify(self) -> None:
        assert slugify("Fix login bug") == "fix-login-bug"
        assert slugify("  Ship v2.0 (beta)!  ") == "ship-v2-0-beta"

    def test_slug_is_capped_without_trailing_dash(self) -> None:
        slug = slugify("word " * 30)
        assert len(slug) <= 50
        assert not slug.endswith("-")

    def test_task_id_prefix(self) -> None:
        assert task_id("Design Audit", "pending") == "pending-design-audit"


class TestChecklistItem:
    """Decoding ``- [ ] **Title**`` items."""

    def test_fix_login_bug_scenario(self) -> None:
        item = "- [x] **Fix login bug** — @Forge\n  - Added: 2026-01-30"
        task = decode_checklist_item(item, COMPLETED, now=NOW)

        assert task is not None
        assert task.id == "task-fix-login-bug"
        assert task.status is TaskStatus.DONE
        assert task.assigned_agent_id == "forge"
        assert task.context == {"added": "2026-01-30"}
        assert task.completed_at is not None

    def test_basic_item(self) -> None:
        task = decode_checklist_item("- [ ] **Test Task** — @forge", URGENT, now=NOW)
        assert task.title == "Test Task"
        assert task.status is TaskStatus.INBOX
        assert task.priority is TaskPriority.URGENT
        assert task.source == "TASKS.md"
        assert task.completed_at is None

    def test_section_maps_status_and_priority(self) -> None:
        item = "- [ ] **Test** — @forge"
        decoded = [decode_checklist_item(item, s, now=NOW) for s in TASK_BOARD.sections]
        assert [(t.status, t.priority) for t in decoded] == [
            (TaskStatus.INBOX, TaskPriority.URGENT),
            (TaskStatus.ASSIGNED, TaskPriority.HIGH),
            (TaskStatus.IN_PROGRESS, TaskPriority.MEDIUM),
            (TaskStatus.DONE, TaskPriority.MEDIUM),
        ]

    def test_checked_box_forces_done(self) -> None:
        task = decode_checklist_item("- [x] **Shipped early**", URGENT, now=NOW)
        assert task.status is TaskStatus.DONE
        assert task.priority is TaskPriority.URGENT
        assert task.completed_at == NOW

    def test_explicit_completed_timestamp_wins(self) -> None:
        item = "- [x] **Old** \n  - Completed: 2026-01-15"
        task = decode_checklist_item(item, COMPLETED, now=NOW)
        assert task.completed_at == "2026-01-15"

    def test_context_keys_are_lowercased(self) -> None:
        item = "- [ ] **Ctx** — @iris\n  - Context: Important\n  - Added: 2026-02-03"
        task = decode_checklist_item(item, ACTION, now=NOW)
        assert task.context == {"context": "Important", "added": "2026-02-03"}
        assert task.created_at == "2026-02-03"
        assert task.description == "- Context: Important\n  - Added: 2026-02-03"

    def test_created_at_defaults_to_processing_time(self) -> None:
        task = decode_checklist_item("- [ ] **New**", ACTION, now=NOW)
        assert task.created_at == NOW
        assert task.updated_at == NOW
        assert task.description is None

    def test_unassigned(self) -> None:
        task = decode_checklist_item("- [ ] **Unassigned Task**", ACTION, now=NOW)
        assert task.assigned_agent_id is None

    def test_hashtags_become_tags(self) -> None:
        item = "- [ ] **Tagged** #Auth #infra #auth\n  - Context: see #ops"
        task = decode_checklist_item(item, ACTION, now=NOW)
        assert task.tags == ["auth", "infra", "ops"]

    @pytest.mark.parametrize("item", [
        "This is not a valid task format",
        "- [ ] no bold title here",
        "- [ ] **   **",
    ])
    def test_no_title_is_none(self, item: str) -> None:
        assert decode_checklist_item(item, URGENT, now=NOW) is None

    def test_same_title_same_id(self) -> None:
        first = decode_checklist_item("- [ ] **Test Task** — @forge", URGENT, now=NOW)
        second = decode_checklist_item("- [x] **Test Task** — @iris", COMPLETED, now=NOW)
        assert first.id == second.id == "task-test-task"


class TestHeadingItem:
    """Decoding ``### Title — trailing`` items."""

    def test_in_progress_item(self) -> None:
        item = (
            "### Mission Control Phase 2 — Forge\n"
            "**Owner:** Forge\n"
            "**Started:** 2026-02-03 01:00\n"
            "Building the dashboard."
        )
        task = decode_heading_item(item, PENDING_IN_PROGRESS, now=NOW)

        assert task.id == "pending-mission-control-phase-2"
        assert task.title == "Mission Control Phase 2"
        assert task.assigned_agent_id == "forge"
        assert task.status is TaskStatus.IN_PROGRESS
        assert task.started_at == "2026-02-03 01:00"
        assert task.context == {"source": "PENDING_TASKS.md", "started": "2026-02-03 01:00"}
        assert task.tags == ["async-task"]
        assert task.description == item
        assert task.completed_at is None

    def test_completed_item_uses_completed_value(self) -> None:
        item = "### Design Audit — Pixel\n**Owner:** Pixel\n**Completed:** 2026-02-03 00:15"
        task = decode_heading_item(item, PENDING_DONE, now=NOW)
        assert task.status is TaskStatus.DONE
        assert task.completed_at == "2026-02-03 00:15"

    def test_completed_without_value_uses_processing_time(self) -> None:
        task = decode_heading_item("### Tidy up", PENDING_DONE, now=NOW)
        assert task.completed_at == NOW
        assert task.assigned_agent_id is None

    def test_no_title_is_none(self) -> None:
        assert decode_heading_item("**Owner:** Forge", PENDING_DONE, now=NOW) is None

    def test_decode_item_dispatches_on_dialect(self) -> None:
        heading = decode_item("### Job — x", PENDING_IN_PROGRESS, PENDING_LOG, NOW)
        checklist = decode_item("- [ ] **Job**", ACTION, TASK_BOARD, NOW)
        assert heading.id == "pending-job"
        assert checklist.id == "task-job"

    def test_decode_item_rejects_other_dialect(self) -> None:
        assert decode_item("### Job", ACTION, TASK_BOARD, NOW) is None
        assert decode_item("- [ ] **Job**", PENDING_IN_PROGRESS, PENDING_LOG, NOW) is None


class TestParseDocuments:
    """Whole-document parsing."""

    def test_tasks_md(self, tasks_md: str) -> None:
        tasks = parse_tasks_md(tasks_md, NOW)
        assert [t.title for t in tasks] == [
            "Critical Bug Fix",
            "Review New Agent Design",
            "Build Dashboard Components",
            "Email Integration",
            "Setup Supabase Schema",
            "Create Design System",
        ]
        assert all(t.completed_at for t in tasks if t.status is TaskStatus.DONE)

    def test_pending_tasks_md(self, pending_md: str) -> None:
        tasks = parse_pending_tasks_md(pending_md, NOW)
        assert [(t.title, t.status) for t in tasks] == [
            ("Mission Control Phase 2", TaskStatus.IN_PROGRESS),
            ("Email Sync Setup", TaskStatus.IN_PROGRESS),
            ("Design Audit", TaskStatus.DONE),
        ]
        assert tasks[1].assigned_agent_id == "iris"

    def test_empty_documents(self) -> None:
        assert parse_tasks_md("", NOW) == []
        assert parse_pending_tasks_md("", NOW) == []

    def test_sub_heading_ends_checklist_item(self) -> None:
        content = (
            "## 🔴 URGENT\n"
            "- [ ] **Patch auth** — @forge\n"
            "  - Context: token leak\n"
            "### Notes\n"
            "Ask Iris before deploying.\n"
        )
        tasks = parse_tasks_md(content, NOW)
        assert [t.title for t in tasks] == ["Patch auth"]
        assert tasks[0].description == "- Context: token leak"

    def test_only_one_section(self) -> None:
        tasks = parse_tasks_md("# TASKS.md\n\n## 🔴 URGENT\n- [ ] **Only Urgent Task**\n", NOW)
        assert len(tasks) == 1
        assert tasks[0].priority is TaskPriority.URGENT


class TestQueries:
    """Filtering and ordering decoded tasks."""

    def test_filters(self, tasks_md: str) -> None:
        tasks = parse_tasks_md(tasks_md, NOW)
        assert len(filter_by_status(tasks, TaskStatus.DONE)) == 2
        assert len(filter_by_agent(tasks, "Forge")) == 3
        assert len(filter_by_priority(tasks, TaskPriority.MEDIUM)) == 4

    def test_sort_by_priority_is_stable(self, tasks_md: str) -> None:
        ordered = sort_by_priority(list(reversed(parse_tasks_md(tasks_md, NOW))))
        assert ordered[0].priority is TaskPriority.URGENT
        assert ordered[1].priority is TaskPriority.HIGH
        assert [t.title for t in ordered[2:]] == [
            "Create Design System",
            "Setup Supabase Schema",
            "Email Integration",
            "Build Dashboard Components",
        ]

    def test_current_task(self, tasks_md: str) -> None:
        tasks = parse_tasks_md(tasks_md, NOW)
        assert current_task_for(tasks, "forge").id == "task-build-dashboard-components"
        assert current_task_for(tasks, "pixel") is None
