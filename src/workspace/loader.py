"""Reading workspace documents.

All documents are read concurrently; none depends on another. A missing
file reads as empty text. A file that exists but cannot be read is
logged and also treated as empty, so one bad source never fails the
whole sync.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from ..config_schema import WorkspaceConfig
from ..errors import WorkspaceReadError
from .roster import KNOWN_AGENTS, soul_path

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceDocuments:
    """Raw text of every document a sync reads."""

    tasks_md: str = ""
    pending_md: str = ""
    souls: dict[str, str] = field(default_factory=dict)

    @property
    def missing(self) -> list[str]:
        names = []
        if not self.tasks_md:
            names.append("tasks")
        if not self.pending_md:
            names.append("pending")
        return names


def read_workspace_file(root: Path, relative_path: str) -> str:
    """Read a workspace file, returning "" if it does not exist.

    Raises:
        WorkspaceReadError: The file exists but could not be read.
    """
    path = root / relative_path
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        raise WorkspaceReadError(str(path), str(e)) from e


async def _read_or_empty(root: Path, relative_path: str) -> str:
    try:
        return await asyncio.to_thread(read_workspace_file, root, relative_path)
    except WorkspaceReadError as e:
        logger.warning("%s; treating it as empty", e.message)
        return ""


async def load_workspace(
    root: str | Path,
    workspace: WorkspaceConfig | None = None,
    agent_ids: Iterable[str] | None = None,
) -> WorkspaceDocuments:
    """Read the task board, the pending log and every agent's SOUL.md."""
    root = Path(root).expanduser()
    workspace = workspace or WorkspaceConfig()
    ids = list(agent_ids) if agent_ids is not None else [a.id for a in KNOWN_AGENTS]

    paths = [workspace.tasks_file, workspace.pending_file]
    paths.extend(soul_path(agent_id, workspace.agents_dir) for agent_id in ids)

    contents = await asyncio.gather(*(_read_or_empty(root, p) for p in paths))

    documents = WorkspaceDocuments(
        tasks_md=contents[0],
        pending_md=contents[1],
        souls={agent_id: text for agent_id, text in zip(ids, contents[2:]) if text},
    )
    if documents.missing:
        logger.info("Workspace %s has no %s document(s)", root, ", ".join(documents.missing))
    return documents


async def load_usage_log(root: str | Path, workspace: WorkspaceConfig | None = None) -> str:
    """Raw text of the usage log, or "" when there is none."""
    workspace = workspace or WorkspaceConfig()
    return await _read_or_empty(Path(root).expanduser(), workspace.usage_log)
