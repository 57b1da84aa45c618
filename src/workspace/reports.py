"""Agent report decoding.

Reports live under ``## 📝 AGENT REPORTS`` in TASKS.md, one block per
agent::

    #### Forge
    *Last check: 2026-02-03 02:30*
    - Completed step 15 of Phase 2
    - No blockers

Each block becomes one agent_status_change activity, dated by its
"Last check" line rather than by when it was parsed.
"""

from __future__ import annotations

import logging
import re

from .models import Activity, ActivityType
from .sections import extract_section
from .tasks import TASKS_SOURCE, slugify

logger = logging.getLogger(__name__)

REPORTS_MARKER = "## 📝 AGENT REPORTS"
DESCRIPTION_LIMIT = 500

_BLOCK_HEADING = re.compile(r"^####\s+(\w+)")
_LAST_CHECK = re.compile(r"^\*Last check:\s*([^*]+)\*", re.IGNORECASE)


def report_activity_id(agent_id: str, last_check: str) -> str:
    """Same agent and same check time give the same id, so re-syncs dedup."""
    return f"report-{agent_id}-{slugify(last_check)}"


def _split_blocks(section: str) -> list[list[str]]:
    blocks: list[list[str]] = []
    for line in section.splitlines():
        if _BLOCK_HEADING.match(line):
            blocks.append([line])
        elif blocks:
            blocks[-1].append(line)
    return blocks


def decode_report_block(
    lines: list[str],
    description_limit: int = DESCRIPTION_LIMIT,
) -> Activity | None:
    """Turn one ``#### Name`` block into an activity, or None if malformed."""
    heading = _BLOCK_HEADING.match(lines[0])
    if heading is None:
        return None
    display_name = heading.group(1)

    rest = list(lines[1:])
    while rest and not rest[0].strip():
        rest.pop(0)
    if not rest:
        return None
    last_check = _LAST_CHECK.match(rest[0].strip())
    if last_check is None:
        return None
    timestamp = last_check.group(1).strip()

    report = "\n".join(rest[1:]).strip()
    agent_id = display_name.lower()

    return Activity(
        id=report_activity_id(agent_id, timestamp),
        type=ActivityType.AGENT_STATUS_CHANGE,
        title=f"{display_name} heartbeat report",
        description=report[:description_limit] or None,
        agent_id=agent_id,
        task_id=None,
        created_at=timestamp,
        metadata={
            "source": TASKS_SOURCE,
            "last_check": timestamp,
            "full_report": report,
        },
    )


def parse_agent_reports(
    content: str,
    description_limit: int = DESCRIPTION_LIMIT,
) -> list[Activity]:
    """All well-formed report blocks, in document order."""
    section = extract_section(content, REPORTS_MARKER, stop_at_rule=True)
    if section is None:
        return []

    activities: list[Activity] = []
    for block in _split_blocks(section):
        activity = decode_report_block(block, description_limit)
        if activity is None:
            logger.warning("Skipping report block without a last-check line: %r", block[0])
            continue
        activities.append(activity)
    return activities
