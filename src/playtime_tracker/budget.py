"""Qualitative classification of a budget snapshot."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from .models import BudgetStatus

LOW_BUDGET_MINUTES = 5


class BudgetLevel(str, enum.Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    EXCEEDED = "exceeded"


# Highest threshold first.
_THRESHOLDS: tuple[tuple[int, BudgetLevel], ...] = (
    (100, BudgetLevel.EXCEEDED),
    (90, BudgetLevel.CRITICAL),
    (75, BudgetLevel.WARNING),
)


@dataclass(frozen=True, slots=True)
class BudgetClassification:
    percentage: int
    status: BudgetLevel


def usage_percentage(budget: BudgetStatus) -> int:
    """Percent of today's available minutes already used; 0 when none are available."""
    if budget.total_available_minutes == 0:
        return 0
    ratio = budget.used_today_minutes / budget.total_available_minutes * 100
    # Halves round up, unlike round()'s banker's rounding.
    return math.floor(ratio + 0.5)


def classify(budget: BudgetStatus) -> BudgetClassification:
    percentage = usage_percentage(budget)
    for threshold, level in _THRESHOLDS:
        if percentage >= threshold:
            return BudgetClassification(percentage=percentage, status=level)
    return BudgetClassification(percentage=percentage, status=BudgetLevel.SAFE)


def is_over_budget(budget: BudgetStatus) -> bool:
    return budget.remaining_today_minutes <= 0


def is_low_budget(budget: BudgetStatus) -> bool:
    return 0 < budget.remaining_today_minutes <= LOW_BUDGET_MINUTES
