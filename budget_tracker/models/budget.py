"""
Budget Models

A budget caps what a user means to spend on one expense category over a
recurring period. Each user has at most one budget per category; saving
another one for the same category replaces it.
"""

import calendar
import datetime as dt
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from budget_tracker.models.transaction import MAX_AMOUNT


class BudgetPeriod(str, Enum):
    """How often a budget starts over."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    def window(self, today: dt.date) -> tuple[dt.date, dt.date]:
        """
        First and last day of the period containing today.

        Weeks run Monday to Sunday.
        """
        if self == BudgetPeriod.WEEKLY:
            start = today - dt.timedelta(days=today.weekday())
            return start, start + dt.timedelta(days=6)
        if self == BudgetPeriod.MONTHLY:
            last_day = calendar.monthrange(today.year, today.month)[1]
            return today.replace(day=1), today.replace(day=last_day)
        return dt.date(today.year, 1, 1), dt.date(today.year, 12, 31)


class Budget(BaseModel):
    """A spending limit for one category."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        le=MAX_AMOUNT,
        description="Spending limit per period"
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    created_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )
    updated_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )


class BudgetStatus(BaseModel):
    """How much of a budget has been used in its current period."""

    budget: Budget
    spent: Decimal = Decimal("0")
    period_start: dt.date
    period_end: dt.date

    @property
    def remaining(self) -> Decimal:
        return self.budget.amount - self.spent

    @property
    def percentage(self) -> float:
        return float(self.spent / self.budget.amount * 100)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.budget.amount
