"""Cost aggregation over token usage.

Usage entries are folded into one CostData per (agent, date), then into
one DailyCost per date. Period summaries compare a trailing window
against the window of equal length right before it.

Usage:
    entries = parse_usage_log(text)
    summary = calculate_cost_summary(entries, CostPeriod.WEEK)
    print(summary.total_cost, summary.cost_change)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable

from .pricing import PriceTable
from .usage import UsageEntry, extract_date, parse_timestamp, resolve_agent_id

logger = logging.getLogger(__name__)


class CostPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return {"day": 1, "week": 7, "month": 30}[self.value]


@dataclass
class CostData:
    """Usage and cost of one agent on one date."""

    agent_id: str
    agent_name: str
    date: str
    runs: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0

    def add(self, entry: UsageEntry, cost: float) -> None:
        self.runs += 1
        self.input_tokens += entry.input_tokens
        self.output_tokens += entry.output_tokens
        self.total_tokens += entry.total_tokens
        self.cost += cost


@dataclass
class DailyCost:
    """All agents' cost on one date."""

    date: str
    total_cost: float = 0.0
    total_tokens: int = 0
    by_agent: dict[str, float] = field(default_factory=dict)


@dataclass
class CostSummary:
    """Totals for a trailing window plus change vs the previous window.

    Changes are percentages; 0 when the previous window had nothing.
    """

    period: CostPeriod
    total_cost: float = 0.0
    total_tokens: int = 0
    total_runs: int = 0
    cost_change: float = 0.0
    token_change: float = 0.0
    run_change: float = 0.0
    by_agent: list[CostData] = field(default_factory=list)
    daily: list[DailyCost] = field(default_factory=list)

    def agent_totals(self) -> dict[str, float]:
        """Cost per agent summed across every date in the window."""
        totals: dict[str, float] = {}
        for data in self.by_agent:
            totals[data.agent_id] = totals.get(data.agent_id, 0.0) + data.cost
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period.value,
            "total_cost": self.total_cost,
            "total_tokens": self.total_tokens,
            "total_runs": self.total_runs,
            "cost_change": self.cost_change,
            "token_change": self.token_change,
            "run_change": self.run_change,
            "by_agent": [vars(d).copy() for d in self.by_agent],
            "daily": [
                {**vars(d), "by_agent": dict(d.by_agent)} for d in self.daily
            ],
        }


def aggregate_by_agent_and_date(
    entries: Iterable[UsageEntry],
    prices: PriceTable | None = None,
) -> list[CostData]:
    """One CostData per (agent, date), in first-seen order."""
    prices = prices or PriceTable()
    groups: dict[tuple[str, str], CostData] = {}

    for entry in entries:
        agent_id = resolve_agent_id(entry)
        date = extract_date(entry.timestamp)
        key = (agent_id, date)
        if key not in groups:
            groups[key] = CostData(
                agent_id=agent_id,
                agent_name=agent_id[:1].upper() + agent_id[1:],
                date=date,
            )
        groups[key].add(entry, prices.cost(entry.input_tokens, entry.output_tokens, entry.model))

    return list(groups.values())


def aggregate_by_date(
    entries: Iterable[UsageEntry],
    prices: PriceTable | None = None,
) -> list[DailyCost]:
    """One DailyCost per date, sorted by date."""
    days: dict[str, DailyCost] = {}
    for data in aggregate_by_agent_and_date(entries, prices):
        day = days.setdefault(data.date, DailyCost(date=data.date))
        day.total_cost += data.cost
        day.total_tokens += data.total_tokens
        day.by_agent[data.agent_id] = day.by_agent.get(data.agent_id, 0.0) + data.cost
    return sorted(days.values(), key=lambda d: d.date)


def _percent_change(current: float, previous: float) -> float:
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


def _in_window(
    entries: Iterable[UsageEntry],
    start: datetime,
    end: datetime | None = None,
) -> list[UsageEntry]:
    selected: list[UsageEntry] = []
    for entry in entries:
        when = parse_timestamp(entry.timestamp)
        if when is None:
            logger.debug("Ignoring usage entry with bad timestamp: %r", entry.timestamp)
            continue
        if when >= start and (end is None or when < end):
            selected.append(entry)
    return selected


def calculate_cost_summary(
    entries: list[UsageEntry],
    period: CostPeriod | str = CostPeriod.WEEK,
    now: datetime | None = None,
    prices: PriceTable | None = None,
) -> CostSummary:
    """Summarize the trailing ``period`` ending at ``now``.

    Args:
        entries: Usage entries in any order
        period: day, week or month (1, 7 or 30 days)
        now: End of the window. Defaults to the current UTC time.
        prices: Price table. Defaults to the built-in table.
    """
    period = CostPeriod(period)
    now = now or datetime.now(timezone.utc)
    span = timedelta(days=period.days)
    cutoff = now - span

    current = _in_window(entries, cutoff)
    previous = _in_window(entries, cutoff - span, cutoff)

    by_agent = aggregate_by_agent_and_date(current, prices)
    prev_by_agent = aggregate_by_agent_and_date(previous, prices)

    total_cost = sum(d.cost for d in by_agent)
    total_tokens = sum(d.total_tokens for d in by_agent)
    total_runs = sum(d.runs for d in by_agent)

    return CostSummary(
        period=period,
        total_cost=total_cost,
        total_tokens=total_tokens,
        total_runs=total_runs,
        cost_change=_percent_change(total_cost, sum(d.cost for d in prev_by_agent)),
        token_change=_percent_change(total_tokens, sum(d.total_tokens for d in prev_by_agent)),
        run_change=_percent_change(total_runs, sum(d.runs for d in prev_by_agent)),
        by_agent=by_agent,
        daily=aggregate_by_date(current, prices),
    )
