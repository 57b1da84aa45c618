"""Section extraction for workspace markdown documents.

Documents are split by ``## `` headings. A section is located by an exact
heading prefix (emoji plus keyword, e.g. ``## 🔴 URGENT``) and runs until
the next ``## `` heading or the end of the document. Inside a section,
items start at a checklist marker or a ``### `` sub-heading; every other
line belongs to the item above it.

A missing section is an empty result, never an error.
"""

from __future__ import annotations

import re
from typing import Iterable

CHECKLIST_ITEM = re.compile(r"^- \[[ xX]\]")
HEADING_ITEM = re.compile(r"^### ")
ITEM_START = re.compile(r"^(?:- \[[ xX]\]|### )")

_TOP_LEVEL_HEADING = re.compile(r"^## ")
_HORIZONTAL_RULE = re.compile(r"^-{3,}\s*$")
_COMMENT_LINE = re.compile(r"^\s*<!--")
# "*Format: ...*" hints, but not "**bold**" lines
_FORMAT_HINT = re.compile(r"^\*[^*\s]")


def find_heading(lines: list[str], marker: str) -> int | None:
    """Index of the first line starting with ``marker``."""
    for index, line in enumerate(lines):
        if line.rstrip().startswith(marker):
            return index
    return None


def extract_section(content: str, marker: str, stop_at_rule: bool = False) -> str | None:
    """Return the body under the heading ``marker``, or None if absent.

    Args:
        content: Full document text
        marker: Exact heading prefix, including the ``## ``
        stop_at_rule: Also end the section at a ``---`` horizontal rule
    """
    lines = content.splitlines()
    start = find_heading(lines, marker)
    if start is None:
        return None

    body: list[str] = []
    for line in lines[start + 1:]:
        if _TOP_LEVEL_HEADING.match(line):
            break
        if stop_at_rule and _HORIZONTAL_RULE.match(line):
            break
        body.append(line)
    return "\n".join(body)


def split_items(section: str, item_start: re.Pattern[str] = ITEM_START) -> list[str]:
    """Split a section body into raw item blocks.

    Both item markers start a new item by default; the decoder rejects
    items in the other dialect. Lines before the first item (format
    hints, comments) are dropped.
    Blank lines and comment lines never become part of an item.
    """
    items: list[str] = []
    current: list[str] | None = None

    for line in section.splitlines():
        if item_start.match(line):
            if current:
                items.append("\n".join(current).strip())
            current = [line]
        elif current is None:
            continue
        elif not line.strip() or _COMMENT_LINE.match(line):
            continue
        elif _FORMAT_HINT.match(line):
            continue
        else:
            current.append(line.rstrip())

    if current:
        items.append("\n".join(current).strip())
    return items


def extract_items(
    content: str,
    marker: str,
    item_start: re.Pattern[str] = ITEM_START,
) -> list[str]:
    """Raw items of one section; empty when the section is missing."""
    section = extract_section(content, marker)
    if section is None:
        return []
    return split_items(section, item_start)


def extract_sections(
    content: str,
    markers: Iterable[str],
    item_start: re.Pattern[str] = ITEM_START,
) -> dict[str, list[str]]:
    """Raw items for each marker, in the order the markers were given."""
    return {marker: extract_items(content, marker, item_start) for marker in markers}
