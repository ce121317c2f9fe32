"""
Shared fixtures.

No real services in tests: identity comes from a fake provider and
transactions go to the in-memory store.
"""

import asyncio
from datetime import date
from typing import Optional

import pytest

from budget_tracker.audit import AuditLogger
from budget_tracker.models.transaction import AuthenticatedUser
from budget_tracker.services.identity import IdentityProviderInterface
from budget_tracker.services.storage import InMemoryAuditStorage, InMemoryTransactionStore
from budget_tracker.workflow import TransactionEntryWorkflow


TODAY = date(2024, 2, 1)


class FakeIdentityProvider(IdentityProviderInterface):
    """Returns a fixed user; can block on a gate, sleep, or raise."""

    def __init__(
        self,
        user: Optional[AuthenticatedUser] = None,
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.user = user
        self.error = error
        self.delay = delay
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0

    async def get_current_user(self) -> Optional[AuthenticatedUser]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.user


@pytest.fixture
def user():
    return AuthenticatedUser(id="u1", email="u1@example.com", name="Una")


@pytest.fixture
def identity(user):
    return FakeIdentityProvider(user)


@pytest.fixture
def store():
    return InMemoryTransactionStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def notifications():
    """Records callback invocations in order."""
    return []


@pytest.fixture
def workflow(identity, store, audit_storage, notifications):
    return TransactionEntryWorkflow(
        identity_provider=identity,
        transaction_store=store,
        on_transaction_added=lambda: notifications.append("added"),
        on_refresh=lambda: notifications.append("refresh"),
        audit_logger=AuditLogger(audit_storage),
        today=lambda: TODAY,
    )


@pytest.fixture
def valid_fields():
    return {
        "type": "expense",
        "category_id": "groceries",
        "amount": "45.00",
        "description": "Weekly shop",
        "date": "2024-01-15",
    }
