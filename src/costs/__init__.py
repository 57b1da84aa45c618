"""Token usage, cost aggregation and budget evaluation."""

from .aggregator import (
    CostData,
    CostPeriod,
    CostSummary,
    DailyCost,
    aggregate_by_agent_and_date,
    aggregate_by_date,
    calculate_cost_summary,
)
from .budget import (
    Alert,
    AlertSeverity,
    AlertType,
    BudgetPeriod,
    check_budget,
    evaluate_budgets,
)
from .pricing import MODEL_PRICING, PriceTable, calculate_cost
from .usage import UsageEntry, parse_usage_json, parse_usage_log

__all__ = [
    "CostData",
    "CostPeriod",
    "CostSummary",
    "DailyCost",
    "aggregate_by_agent_and_date",
    "aggregate_by_date",
    "calculate_cost_summary",
    "Alert",
    "AlertSeverity",
    "AlertType",
    "BudgetPeriod",
    "check_budget",
    "evaluate_budgets",
    "MODEL_PRICING",
    "PriceTable",
    "calculate_cost",
    "UsageEntry",
    "parse_usage_json",
    "parse_usage_log",
]
