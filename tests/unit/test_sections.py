"""Tests for section extraction and item splitting."""

from src.workspace.sections import (
    CHECKLIST_ITEM,
    HEADING_ITEM,
    extract_items,
    extract_section,
    extract_sections,
    split_items,
)


class TestExtractSection:
    """Locating a section by heading prefix."""

    def test_section_ends_at_next_top_level_heading(self) -> None:
        content = "## 🔴 URGENT\n- [ ] **A**\n## 🟡 ACTION\n- [ ] **B**\n"
        section = extract_section(content, "## 🔴 URGENT")
        assert section == "- [ ] **A**"

    def test_marker_matches_heading_prefix(self) -> None:
        """Trailing heading text after the marker is allowed."""
        content = "## 🟡 ACTION — Needs input\n- [ ] **B**\n"
        assert extract_section(content, "## 🟡 ACTION") == "- [ ] **B**"

    def test_missing_section_is_none(self) -> None:
        assert extract_section("# Title\n", "## 🔴 URGENT") is None

    def test_stop_at_rule(self) -> None:
        content = "## 📊 SQUAD STATUS\n| a |\n---\nfooter\n"
        assert extract_section(content, "## 📊 SQUAD STATUS", stop_at_rule=True) == "| a |"
        assert "footer" in extract_section(content, "## 📊 SQUAD STATUS")

    def test_section_runs_to_end_of_document(self) -> None:
        content = "## ✅ COMPLETED\n- [x] **Done**\n  - Added: 2026-01-01"
        assert extract_section(content, "## ✅ COMPLETED").endswith("2026-01-01")


class TestSplitItems:
    """Splitting a section body into items."""

    def test_continuation_lines_attach_to_item(self) -> None:
        section = "- [ ] **A**\n  - Context: x\n- [x] **B**\n"
        items = split_items(section, CHECKLIST_ITEM)
        assert items == ["- [ ] **A**\n  - Context: x", "- [x] **B**"]

    def test_skips_hints_comments_and_blank_lines(self) -> None:
        section = (
            "*Format: - [ ] **Title***\n"
            "<!-- add tasks below -->\n"
            "\n"
            "- [ ] **A**\n"
            "\n"
            "<!-- note -->\n"
            "  - Added: 2026-02-01\n"
        )
        items = split_items(section, CHECKLIST_ITEM)
        assert items == ["- [ ] **A**\n  - Added: 2026-02-01"]

    def test_bold_lines_are_not_hints(self) -> None:
        section = "### Job\n**Owner:** Forge\n"
        assert split_items(section, HEADING_ITEM) == ["### Job\n**Owner:** Forge"]

    def test_empty_section(self) -> None:
        assert split_items("", CHECKLIST_ITEM) == []

    def test_either_marker_starts_an_item_by_default(self) -> None:
        section = "- [ ] **A**\n  - Context: x\n### Notes\nfree text\n- [x] **B**\n"
        assert split_items(section) == [
            "- [ ] **A**\n  - Context: x",
            "### Notes\nfree text",
            "- [x] **B**",
        ]


class TestExtractSections:
    """Multiple sections at once."""

    def test_returns_every_marker_in_order(self, tasks_md: str) -> None:
        markers = ["## 🔴 URGENT", "## 🟡 ACTION", "## 📋 IN PROGRESS", "## ✅ COMPLETED"]
        result = extract_sections(tasks_md, markers)
        assert list(result) == markers
        assert [len(items) for items in result.values()] == [1, 1, 2, 2]

    def test_empty_and_missing_sections(self) -> None:
        content = "# TASKS.md\n\n## 🔴 URGENT\n\n## 🟡 ACTION\n"
        result = extract_sections(content, ["## 🔴 URGENT", "## 🟡 ACTION", "## ✅ COMPLETED"])
        assert result == {"## 🔴 URGENT": [], "## 🟡 ACTION": [], "## ✅ COMPLETED": []}

    def test_extract_items_missing_section(self) -> None:
        assert extract_items("nothing here", "## 🔴 URGENT") == []
