"""Integration tests for the scheduled sync cycle."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from src.config_schema import AppConfig
from src.sync.runner import run_cycle, run_sync
from src.sync.store import InMemoryStore


def write_usage_log(workspace: Path, lines: list[str]) -> None:
    (workspace / "usage.log").write_text("\n".join(lines) + "\n", encoding="utf-8")


class TestRunSync:
    """Workspace to store in one call."""

    @pytest.mark.asyncio
    async def test_sync_from_disk(self, app_config: AppConfig, store: InMemoryStore, fixed_now: datetime) -> None:
        snapshot, result = await run_sync(app_config, store, now=fixed_now)

        assert result.success
        assert snapshot.synced_at == "2026-02-10T12:00:00+00:00"
        agents = {row["id"]: row for row in store.rows("agents")}
        assert agents["forge"]["heartbeat_interval_minutes"] == 30
        assert agents["forge"]["current_task_id"] == "task-build-dashboard-components"
        assert agents["forge"]["status"] == "online"

    @pytest.mark.asyncio
    async def test_missing_workspace_still_syncs_roster(
        self, app_config: AppConfig, store: InMemoryStore, tmp_path: Path
    ) -> None:
        config = app_config.model_copy(update={
            "workspace": app_config.workspace.model_copy(update={"path": str(tmp_path / "gone")}),
        })
        snapshot, result = await run_sync(config, store)

        assert result.success
        assert snapshot.counts == {"agents": 13, "tasks": 0, "activities": 0}


class TestRunCycle:
    """Sync plus budget check."""

    @pytest.mark.asyncio
    async def test_usage_log_drives_alerts(
        self, app_config: AppConfig, store: InMemoryStore, workspace_dir: Path, fixed_now: datetime
    ) -> None:
        # 24M gemini-pro input tokens is $12 against the default $10 daily budget
        when = (fixed_now - timedelta(hours=2)).isoformat()
        write_usage_log(workspace_dir, [
            "# TIMESTAMP|SESSION|MODEL|IN|OUT",
            f"{when}|agent:forge:main|gemini-pro|24000000|0",
        ])
        report = await run_cycle(app_config, store, now=fixed_now)

        assert report.success
        assert report.budget.alerts_triggered == 1
        assert report.budget.alerts[0].title == "Daily Budget Exceeded"
        assert len(store.rows("messages")) == 1
        assert report.to_dict()["sync"]["counts"]["tasks_upserted"] == 9

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(
        self, app_config: AppConfig, store: InMemoryStore, workspace_dir: Path, fixed_now: datetime
    ) -> None:
        when = (fixed_now - timedelta(hours=2)).isoformat()
        write_usage_log(workspace_dir, [f"{when}|agent:forge:main|gemini-pro|24000000|0"])
        report = await run_cycle(app_config, store, dry_run=True, now=fixed_now)

        assert report.sync is None
        assert report.budget.dry_run
        assert report.budget.alerts_triggered == 1
        assert store.tables == {}

    @pytest.mark.asyncio
    async def test_skip_alerts(self, app_config: AppConfig, store: InMemoryStore, fixed_now: datetime) -> None:
        report = await run_cycle(app_config, store, skip_alerts=True, now=fixed_now)
        assert report.budget is None
        assert report.sync.success

    @pytest.mark.asyncio
    async def test_falls_back_to_stored_activity_usage(
        self, app_config: AppConfig, store: InMemoryStore, fixed_now: datetime
    ) -> None:
        await store.insert("activities", [{
            "id": "usage-1",
            "activity_type": "agent_message",
            "agent_id": "oracle",
            "metadata": {"input_tokens": 24_000_000, "model": "gemini-pro"},
            "created_at": (fixed_now - timedelta(hours=3)).isoformat(),
        }])
        report = await run_cycle(app_config, store, now=fixed_now)

        assert report.budget.costs["daily"] == pytest.approx(12.0)
        assert report.budget.alerts_triggered == 1

    @pytest.mark.asyncio
    async def test_malformed_stored_usage_is_skipped(
        self, app_config: AppConfig, store: InMemoryStore, fixed_now: datetime
    ) -> None:
        created_at = (fixed_now - timedelta(hours=3)).isoformat()
        await store.insert("activities", [
            {
                "id": "usage-bad",
                "activity_type": "agent_message",
                "agent_id": "oracle",
                "metadata": {"input_tokens": "1,200", "model": "gemini-pro"},
                "created_at": created_at,
            },
            {
                "id": "usage-good",
                "activity_type": "agent_message",
                "agent_id": "oracle",
                "metadata": {"input_tokens": 24_000_000, "model": "gemini-pro"},
                "created_at": created_at,
            },
        ])
        report = await run_cycle(app_config, store, now=fixed_now)

        assert report.budget.costs["daily"] == pytest.approx(12.0)
