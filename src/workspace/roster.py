"""The squad roster and per-agent SOUL.md details.

Agent identity comes from this fixed roster, never from the documents.
SOUL.md files (``agents/<id>/SOUL.md``) optionally add a description
and a heartbeat schedule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import AgentDefinition

KNOWN_AGENTS: tuple[AgentDefinition, ...] = (
    AgentDefinition("klaus", "klaus", "Klaus", "🎯", "Squad Lead"),
    AgentDefinition("iris", "iris", "Iris", "📧", "Email & Comms"),
    AgentDefinition("atlas", "atlas", "Atlas", "📅", "Calendar & Meetings"),
    AgentDefinition("oracle", "oracle", "Oracle", "🔮", "Intelligence & Research"),
    AgentDefinition("sentinel", "sentinel", "Sentinel", "📊", "Metrics & Alerts"),
    AgentDefinition("herald", "herald", "Herald", "📢", "Content & Brand"),
    AgentDefinition("forge", "forge", "Forge", "🔨", "Code & PRs"),
    AgentDefinition("aegis", "aegis", "Aegis", "🛡️", "Testing & QA"),
    AgentDefinition("codex", "codex", "Codex", "📚", "Docs & Knowledge"),
    AgentDefinition("pixel", "pixel", "Pixel", "🎨", "UX & Design"),
    AgentDefinition("pathfinder", "pathfinder", "Pathfinder", "🧭", "Travel & Logistics"),
    AgentDefinition("curator", "curator", "Curator", "🎁", "Gifts & Occasions"),
    AgentDefinition("steward", "steward", "Steward", "🏠", "Personal Admin"),
)

SOUL_DESCRIPTION_LIMIT = 500

_SOUL_FIRST_PARAGRAPH = re.compile(r"^# .+?\n\n(.+?)(?:\n\n|$)", re.DOTALL)
_SOUL_HEARTBEAT = re.compile(
    r"heartbeat.*?(\d+\s*(?:minutes|minute|mins|min|hours|hour|hrs|hr))",
    re.IGNORECASE,
)

_EVERY = re.compile(r"^every\s+(\d+)\s*(m|h)$", re.IGNORECASE)
_DURATION = re.compile(r"^(\d+)\s*(minutes|minute|mins|min|hours|hour|hrs|hr)$", re.IGNORECASE)
_CRON_EVERY_MINUTES = re.compile(r"^\*/(\d+)\s+\*\s+\*\s+\*\s+\*$")
_CRON_EVERY_HOURS = re.compile(r"^0\s+\*/(\d+)\s+\*\s+\*\s+\*$")
_CRON_HOURLY = re.compile(r"^\d+\s+\*\s+\*\s+\*\s+\*$")


@dataclass
class SoulInfo:
    """What a SOUL.md contributes to an agent record."""

    description: str | None = None
    heartbeat_schedule: str | None = None


def soul_path(agent_id: str, agents_dir: str = "agents") -> str:
    return f"{agents_dir}/{agent_id}/SOUL.md"


def parse_agent_soul(content: str) -> SoulInfo:
    """First paragraph after the title, plus any "heartbeat ... N min" phrase."""
    if not content.strip():
        return SoulInfo()

    description = None
    paragraph = _SOUL_FIRST_PARAGRAPH.search(content.replace("\r\n", "\n"))
    if paragraph:
        description = paragraph.group(1).strip()[:SOUL_DESCRIPTION_LIMIT] or None

    heartbeat = _SOUL_HEARTBEAT.search(content)
    schedule = heartbeat.group(1).strip() if heartbeat else None

    return SoulInfo(description=description, heartbeat_schedule=schedule)


def heartbeat_interval_minutes(schedule: str | None) -> int | None:
    """Minutes between heartbeats for the schedule forms we know.

    Understands "every 30m", "30 min", "2 hours" and the simple cron
    shapes "*/30 * * * *", "0 */2 * * *" and "15 * * * *".
    Returns None for anything else.
    """
    if not schedule:
        return None
    text = schedule.strip()

    every = _EVERY.match(text)
    if every:
        value = int(every.group(1))
        return value * 60 if every.group(2).lower() == "h" else value

    duration = _DURATION.match(text)
    if duration:
        value = int(duration.group(1))
        return value * 60 if duration.group(2).lower().startswith("h") else value

    minutes = _CRON_EVERY_MINUTES.match(text)
    if minutes:
        return int(minutes.group(1))

    hours = _CRON_EVERY_HOURS.match(text)
    if hours:
        return int(hours.group(1)) * 60

    if _CRON_HOURLY.match(text):
        return 60

    return None
