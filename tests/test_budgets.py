"""
Tests for budget management and budget progress.
"""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budget_tracker.audit import AuditLogger
from budget_tracker.errors import BUDGET_AUTH_MESSAGE, BUDGET_NOT_FOUND_MESSAGE
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.budget import Budget, BudgetPeriod
from budget_tracker.models.transaction import (
    StoredTransaction,
    SubmissionResult,
    TransactionRecord,
    TransactionType,
)
from budget_tracker.queries import budget_status, load_budget_status
from budget_tracker.services.storage import InMemoryBudgetStore
from budget_tracker.validation import AMOUNT_MESSAGE, CATEGORY_MESSAGE
from budget_tracker.workflow import BudgetManager
from budget_tracker.workflow.budgets import PERIOD_MESSAGE

from conftest import TODAY


@pytest.fixture
def budget_store():
    return InMemoryBudgetStore()


@pytest.fixture
def manager(identity, budget_store, audit_storage):
    return BudgetManager(
        identity_provider=identity,
        budget_store=budget_store,
        audit_logger=AuditLogger(audit_storage),
    )


def make_tx(amount, day, category_id="groceries", type=TransactionType.EXPENSE, user_id="u1"):
    return StoredTransaction.from_record(TransactionRecord(
        user_id=user_id,
        type=type,
        category_id=category_id,
        amount=Decimal(amount),
        description="x",
        date=day,
    ))


class TestBudgetManager:

    def test_save_creates_budget(self, manager, budget_store, audit_storage):
        result = asyncio.run(manager.save("groceries", "300", "weekly"))

        assert result.is_ok
        [budget] = asyncio.run(budget_store.list_budgets("u1"))
        assert budget.amount == Decimal("300")
        assert budget.period == BudgetPeriod.WEEKLY
        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.BUDGET_SAVED in {e.event_type for e in events}

    def test_saving_same_category_replaces(self, manager, budget_store):
        asyncio.run(manager.save("groceries", "300"))
        asyncio.run(manager.save("groceries", "150.50", BudgetPeriod.YEARLY))

        [budget] = asyncio.run(budget_store.list_budgets("u1"))
        assert budget.amount == Decimal("150.50")
        assert budget.period == BudgetPeriod.YEARLY

    def test_requires_login(self, manager, identity, budget_store):
        identity.user = None

        result = asyncio.run(manager.save("groceries", "300"))

        assert result == SubmissionResult.auth_error(BUDGET_AUTH_MESSAGE)
        assert asyncio.run(budget_store.list_budgets("u1")) == []

    @pytest.mark.parametrize("category_id,amount,period,message", [
        ("", "abc", "monthly", CATEGORY_MESSAGE),
        ("groceries", "abc", "monthly", AMOUNT_MESSAGE),
        ("groceries", "0", "monthly", AMOUNT_MESSAGE),
        ("groceries", "1e27", "monthly", AMOUNT_MESSAGE),
        ("groceries", "300", "daily", PERIOD_MESSAGE),
    ])
    def test_rules_in_order(self, manager, budget_store, category_id, amount, period, message):
        result = asyncio.run(manager.save(category_id, amount, period))

        assert result == SubmissionResult.validation_error(message)
        assert asyncio.run(budget_store.list_budgets("u1")) == []

    def test_delete(self, manager, budget_store, audit_storage):
        asyncio.run(manager.save("groceries", "300"))
        [budget] = asyncio.run(budget_store.list_budgets("u1"))

        result = asyncio.run(manager.delete(budget.id))

        assert result.is_ok
        assert asyncio.run(budget_store.list_budgets("u1")) == []
        events = asyncio.run(audit_storage.get_recent_events())
        assert AuditEventType.BUDGET_DELETED in {e.event_type for e in events}

    def test_delete_missing_budget(self, manager):
        result = asyncio.run(manager.delete(uuid4()))

        assert result == SubmissionResult.storage_error(BUDGET_NOT_FOUND_MESSAGE)


class TestBudgetStatus:

    def test_counts_expenses_in_current_period_only(self):
        budget = Budget(user_id="u1", category_id="groceries", amount=Decimal("200"))
        transactions = [
            make_tx("50", date(2024, 2, 1)),
            make_tx("70.25", date(2024, 2, 29)),
            make_tx("999", date(2024, 1, 31)),
            make_tx("10", date(2024, 2, 3), category_id="rent"),
            make_tx("500", date(2024, 2, 3), category_id="groceries", type=TransactionType.INCOME),
        ]

        [status] = budget_status([budget], transactions, TODAY)

        assert status.spent == Decimal("120.25")
        assert status.remaining == Decimal("79.75")
        assert (status.period_start, status.period_end) == (date(2024, 2, 1), date(2024, 2, 29))
        assert not status.is_over_budget

    def test_no_spending(self):
        budget = Budget(
            user_id="u1",
            category_id="rent",
            amount=Decimal("900"),
            period=BudgetPeriod.WEEKLY,
        )

        [status] = budget_status([budget], [], TODAY)

        assert status.spent == Decimal("0")
        assert status.percentage == 0.0

    def test_load_uses_widest_window(self, store, budget_store):
        async def scenario():
            await budget_store.save_budget(Budget(
                user_id="u1",
                category_id="groceries",
                amount=Decimal("100"),
                period=BudgetPeriod.WEEKLY,
            ))
            await budget_store.save_budget(Budget(
                user_id="u1",
                category_id="rent",
                amount=Decimal("10000"),
                period=BudgetPeriod.YEARLY,
            ))
            for category_id, amount, day in (
                ("groceries", "30", date(2024, 1, 30)),
                ("groceries", "40", date(2024, 1, 10)),
                ("rent", "900", date(2024, 1, 1)),
                ("rent", "900", date(2024, 2, 1)),
            ):
                await store.insert(TransactionRecord(
                    user_id="u1",
                    type=TransactionType.EXPENSE,
                    category_id=category_id,
                    amount=Decimal(amount),
                    description="x",
                    date=day,
                ))
            return await load_budget_status(budget_store, store, "u1", TODAY)

        groceries, rent = asyncio.run(scenario())

        assert groceries.spent == Decimal("30")
        assert rent.spent == Decimal("1800")

    def test_load_without_budgets(self, store, budget_store):
        assert asyncio.run(load_budget_status(budget_store, store, "u1", TODAY)) == []
