"""Pytest fixtures for mission control tests.

Shared workspace documents, a fixed clock and stores.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.config import reset_config
from src.config_schema import AppConfig, validate_config_dict
from src.sync.store import InMemoryStore


SAMPLE_TASKS_MD = """# TASKS.md — Mission Control Task Board

## 🔴 URGENT
*Format: - [ ] **Title** — @agent*
- [ ] **Critical Bug Fix** — @forge #prod
  - Context: Production issue affecting users
  - Added: 2026-02-03

## 🟡 ACTION — Needs Matt's Input
- [ ] **Review New Agent Design** — @pixel
  - Context: Need approval on UX mockups

## 📋 IN PROGRESS
- [ ] **Build Dashboard Components** — @forge
  - Context: Phase 2 implementation
- [ ] **Email Integration** — @iris
  - Context: Gmail sync setup

## ✅ COMPLETED
- [x] **Setup Supabase Schema** — @forge
  - Added: 2026-02-01
- [x] **Create Design System** — @pixel

## 📊 SQUAD STATUS

| Agent | Domain | Last Heartbeat | Status |
|-------|--------|----------------|--------|
| Forge | Code | 02:30 AM | 🟢 |
| Iris | Email | 02:00 AM | 🟡 |
| Atlas | Calendar | 01:00 AM | 🔴 |

---

## 📝 AGENT REPORTS

#### Forge
*Last check: 2026-02-03 02:30*
- Completed step 15 of Phase 2
- Working on dashboard components
- No blockers

#### Iris
*Last check: 2026-02-03 02:00*
- Monitoring inbox
- 3 new emails since last check
"""

SAMPLE_PENDING_MD = """# PENDING_TASKS.md

## 🔄 In Progress

### Mission Control Phase 2 — Forge
**Owner:** Forge
**Started:** 2026-02-03 01:00
Building real-time dashboard with Supabase subscriptions.

### Email Sync Setup — Iris
**Owner:** Iris  
**Started:** 2026-02-03 00:30
Configuring Gmail API integration.

## ✅ Completed Today

### Design Audit — Pixel
**Owner:** Pixel
**Completed:** 2026-02-03 00:15
Completed UI audit with 12 findings.
"""

SAMPLE_FORGE_SOUL = """# Forge 🔨

Forge writes and reviews code, opens pull requests and keeps CI green.

## Schedule

Heartbeat every 30 minutes during working hours.
"""


@pytest.fixture(autouse=True)
def _reset_global_config() -> None:
    """Each test starts without a cached config."""
    reset_config()


@pytest.fixture
def tasks_md() -> str:
    return SAMPLE_TASKS_MD


@pytest.fixture
def pending_md() -> str:
    return SAMPLE_PENDING_MD


@pytest.fixture
def forge_soul() -> str:
    return SAMPLE_FORGE_SOUL


@pytest.fixture
def fixed_now() -> datetime:
    """Reference time for window and cooldown tests."""
    return datetime(2026, 2, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """A workspace with both task documents and one SOUL.md."""
    root = tmp_path / "workspace"
    (root / "agents" / "forge").mkdir(parents=True)
    (root / "TASKS.md").write_text(SAMPLE_TASKS_MD, encoding="utf-8")
    (root / "PENDING_TASKS.md").write_text(SAMPLE_PENDING_MD, encoding="utf-8")
    (root / "agents" / "forge" / "SOUL.md").write_text(SAMPLE_FORGE_SOUL, encoding="utf-8")
    return root


@pytest.fixture
def app_config(workspace_dir: Path, tmp_path: Path) -> AppConfig:
    """Validated config pointing at the temporary workspace."""
    return validate_config_dict({
        "workspace": {"path": str(workspace_dir)},
        "sync": {"store_path": str(tmp_path / "store.json")},
    })


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
