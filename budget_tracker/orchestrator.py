"""
Main Orchestrator for Budget Tracker

This module ties together all the components the front end needs:
1. Identity (who is logged in)
2. Transaction and budget stores (Google Sheets, or in-memory when not configured)
3. Audit logging
4. The workflows built from them: entry, edit/delete, budgets

DESIGN DECISION: The front end never constructs services itself.
Everything is wired here so tests and the app share one composition.
"""

from collections.abc import MutableMapping
from typing import Any, Optional

import structlog

from budget_tracker.audit import AuditLogger
from budget_tracker.config import AppSettings, get_settings
from budget_tracker.services.identity import SessionIdentityProvider
from budget_tracker.services.storage import (
    BudgetStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStore,
    GoogleSheetsClient,
    GoogleSheetsTransactionStore,
    InMemoryBudgetStore,
    InMemoryTransactionStore,
    TransactionStoreInterface,
)
from budget_tracker.validation import TransactionDraftValidator
from budget_tracker.workflow import (
    BudgetManager,
    TransactionEditor,
    TransactionEntryWorkflow,
)
from budget_tracker.workflow.transaction_entry import Callback


logger = structlog.get_logger(__name__)


def create_storage(
    use_storage: bool = True,
) -> tuple[TransactionStoreInterface, AuditLogger]:
    """
    Create the transaction store and audit logger.

    Args:
        use_storage: Whether to use Google Sheets.
                    Set to False for running without credentials.

    Returns:
        (transaction_store, audit_logger)
    """
    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            transaction_store = GoogleSheetsTransactionStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
            return transaction_store, audit_logger
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    return InMemoryTransactionStore(), AuditLogger()  # Local-only logging


def create_budget_store(use_storage: bool = True) -> BudgetStoreInterface:
    """Google Sheets budget store, or in-memory when not configured."""
    if use_storage:
        try:
            return GoogleSheetsBudgetStore(GoogleSheetsClient())
        except Exception as e:
            logger.warning("budget_storage_not_configured", error=str(e))

    return InMemoryBudgetStore()


def create_app_components(
    session: MutableMapping[str, Any],
    use_storage: bool = True,
) -> tuple[SessionIdentityProvider, TransactionStoreInterface, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        session: Mapping that holds the signed-in user
                 (Streamlit session state in the app)
        use_storage: Whether to initialize Google Sheets storage

    Returns:
        (identity_provider, transaction_store, audit_logger)
    """
    transaction_store, audit_logger = create_storage(use_storage)
    identity_provider = SessionIdentityProvider(session)
    return identity_provider, transaction_store, audit_logger


def create_entry_workflow(
    identity_provider: SessionIdentityProvider,
    transaction_store: TransactionStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    on_transaction_added: Optional[Callback] = None,
    on_refresh: Optional[Callback] = None,
    settings: Optional[AppSettings] = None,
) -> TransactionEntryWorkflow:
    """Build a workflow configured from AppSettings."""
    settings = settings or get_settings().app
    return TransactionEntryWorkflow(
        identity_provider=identity_provider,
        transaction_store=transaction_store,
        on_transaction_added=on_transaction_added,
        on_refresh=on_refresh,
        validator=TransactionDraftValidator(
            max_description_length=settings.max_description_length,
        ),
        audit_logger=audit_logger,
        timeout_seconds=settings.submit_timeout,
    )


def create_transaction_editor(
    identity_provider: SessionIdentityProvider,
    transaction_store: TransactionStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    settings: Optional[AppSettings] = None,
) -> TransactionEditor:
    """Build an editor with the same rules and timeout as the entry form."""
    settings = settings or get_settings().app
    return TransactionEditor(
        identity_provider=identity_provider,
        transaction_store=transaction_store,
        validator=TransactionDraftValidator(
            max_description_length=settings.max_description_length,
        ),
        audit_logger=audit_logger,
        timeout_seconds=settings.submit_timeout,
    )


def create_budget_manager(
    identity_provider: SessionIdentityProvider,
    budget_store: BudgetStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    settings: Optional[AppSettings] = None,
) -> BudgetManager:
    settings = settings or get_settings().app
    return BudgetManager(
        identity_provider=identity_provider,
        budget_store=budget_store,
        audit_logger=audit_logger,
        timeout_seconds=settings.submit_timeout,
    )
