"""Token usage records and their raw input formats.

Two sources are understood:

Usage log, one call per line (``#`` starts a comment)::

    2026-02-03T10:00:00Z|agent:forge:main|claude-3.5-sonnet|1200|340

JSON, a list of objects with camelCase or snake_case keys::

    [{"sessionKey": "agent:forge:main", "model": "gpt-4o",
      "inputTokens": 1200, "outputTokens": 340, "timestamp": "..."}]

Lines or objects that cannot be decoded are skipped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..workspace.models import now_iso

logger = logging.getLogger(__name__)

UNKNOWN_AGENT = "unknown"

_SESSION_AGENT = re.compile(r"^agent:(\w+):")


@dataclass
class UsageEntry:
    """One model call."""

    session_key: str
    agent_id: str
    model: str
    input_tokens: int
    output_tokens: int
    timestamp: str

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


def extract_agent_id(session_key: str) -> str | None:
    """``agent:forge:main`` and ``agent:forge:isolated:<hash>`` both give forge."""
    match = _SESSION_AGENT.match(session_key)
    return match.group(1) if match else None


def resolve_agent_id(entry: UsageEntry) -> str:
    """Session key first, then the explicit field, then "unknown"."""
    return extract_agent_id(entry.session_key) or entry.agent_id or UNKNOWN_AGENT


def extract_date(timestamp: str) -> str:
    """YYYY-MM-DD prefix of an ISO timestamp."""
    return timestamp[:10]


def parse_timestamp(timestamp: str) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(timestamp.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_usage_log_line(line: str) -> UsageEntry | None:
    parts = line.strip().split("|")
    if len(parts) < 5:
        return None

    timestamp, session_key, model, raw_in, raw_out = (p.strip() for p in parts[:5])
    try:
        input_tokens = int(raw_in)
        output_tokens = int(raw_out)
    except ValueError:
        return None

    return UsageEntry(
        session_key=session_key,
        agent_id=extract_agent_id(session_key) or UNKNOWN_AGENT,
        model=model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        timestamp=timestamp,
    )


def parse_usage_log(content: str) -> list[UsageEntry]:
    entries: list[UsageEntry] = []
    for line in content.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        entry = parse_usage_log_line(line)
        if entry is None:
            logger.debug("Skipping malformed usage line: %r", line[:80])
            continue
        entries.append(entry)
    return entries


def _first(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def parse_usage_json(data: Any) -> list[UsageEntry]:
    """Decode a list of usage objects.

    Objects with neither a session key nor an agent id are dropped.
    """
    if not isinstance(data, list):
        return []

    entries: list[UsageEntry] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        session_key = str(_first(item, "sessionKey", "session_key") or "")
        agent_id = str(
            _first(item, "agentId", "agent_id")
            or extract_agent_id(session_key)
            or UNKNOWN_AGENT
        )
        if not session_key and agent_id == UNKNOWN_AGENT:
            continue
        entries.append(UsageEntry(
            session_key=session_key,
            agent_id=agent_id,
            model=str(item.get("model") or "default"),
            input_tokens=_as_int(_first(item, "inputTokens", "input_tokens")),
            output_tokens=_as_int(_first(item, "outputTokens", "output_tokens")),
            timestamp=str(_first(item, "timestamp", "created_at") or now_iso()),
        ))
    return entries
