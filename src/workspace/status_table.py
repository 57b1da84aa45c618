"""Squad status table decoding.

The table lives under ``## 📊 SQUAD STATUS`` in TASKS.md::

    | Agent | Domain | Last Heartbeat | Status |
    |-------|--------|----------------|--------|
    | Forge | Code   | 02:30 AM       | 🟢     |

Rows map positionally to (agent, domain, last heartbeat, status glyph).
A missing or malformed table yields an empty mapping.
"""

from __future__ import annotations

import logging
import re

from .models import AgentStatus, StatusEntry
from .sections import extract_section

logger = logging.getLogger(__name__)

SQUAD_STATUS_MARKER = "## 📊 SQUAD STATUS"

# Checked in order; the first glyph found in the cell wins
STATUS_GLYPHS: tuple[tuple[str, AgentStatus], ...] = (
    ("🟢", AgentStatus.ONLINE),
    ("🟡", AgentStatus.BUSY),
    ("🔴", AgentStatus.ERROR),
)

_SEPARATOR_ROW = re.compile(r"^\|?\s*:?-{2,}")
_MIN_CELLS = 4
_AGENT_NAME = re.compile(r"[A-Za-z][\w-]*")


def decode_status_glyph(cell: str) -> AgentStatus:
    """Map a status cell to a status. Anything unrecognized is offline."""
    for glyph, status in STATUS_GLYPHS:
        if glyph in cell:
            return status
    return AgentStatus.OFFLINE


def _split_row(row: str) -> list[str]:
    return [cell.strip() for cell in row.strip().strip("|").split("|")]


def parse_status_table(content: str) -> dict[str, StatusEntry]:
    """Return agent id (lowercased name) -> heartbeat and status."""
    section = extract_section(content, SQUAD_STATUS_MARKER, stop_at_rule=True)
    if section is None:
        return {}

    rows = [line.strip() for line in section.splitlines() if line.strip().startswith("|")]
    if not rows:
        return {}

    # Everything up to and including the separator row is header
    for index, row in enumerate(rows):
        if _SEPARATOR_ROW.match(row):
            body = rows[index + 1:]
            break
    else:
        body = rows[1:]

    statuses: dict[str, StatusEntry] = {}
    for row in body:
        cells = _split_row(row)
        name = _AGENT_NAME.search(cells[0]) if len(cells) >= _MIN_CELLS else None
        if name is None:
            logger.debug("Skipping malformed status row: %r", row)
            continue
        agent_id = name.group(0).lower()
        statuses[agent_id] = StatusEntry(
            last_heartbeat=cells[2],
            status=decode_status_glyph(cells[3]),
        )
    return statuses
