"""Squad Mission Control source package.

This package contains the workspace sync components:
- config: Configuration loading and management
- workspace: Markdown workspace parsing and reconciliation
- costs: Token usage, cost aggregation and budget evaluation
- sync: Store push, budget check and the scheduled job
"""

from __future__ import annotations

__all__: list[str] = []
