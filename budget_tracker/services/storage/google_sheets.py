"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Users can view their data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- Limited query capabilities (we filter in Python)

Connecting is retried; inserts are not. A failed insert is reported to the
user, who decides whether to submit again.
"""

import asyncio
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from budget_tracker.config import GoogleSheetsSettings, get_settings
from budget_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from budget_tracker.models.budget import Budget, BudgetPeriod
from budget_tracker.models.transaction import (
    Category,
    CategoryType,
    StoredTransaction,
    TransactionRecord,
    TransactionType,
)
from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStoreInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TransactionStoreInterface,
)
from budget_tracker.services.storage.memory import filter_transactions


TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "user_id",
    "type",
    "category_id",
    "amount",
    "description",
    "date",
]

CATEGORY_COLUMNS = [
    "id",
    "name",
    "type",
    "icon",
    "user_id",
]

BUDGET_COLUMNS = [
    "id",
    "user_id",
    "category_id",
    "amount",
    "period",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    A ready spreadsheet can be passed in directly (used by tests).
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        spreadsheet: Optional[gspread.Spreadsheet] = None,
    ):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet = spreadsheet
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, 1000
        )

    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet."""
        return self._get_or_create_sheet(
            self._settings.categories_sheet_name, CATEGORY_COLUMNS, 200
        )

    def get_budgets_sheet(self) -> gspread.Worksheet:
        """Get or create the Budgets worksheet."""
        return self._get_or_create_sheet(
            self._settings.budgets_sheet_name, BUDGET_COLUMNS, 200
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000
        )


class GoogleSheetsTransactionStore(TransactionStoreInterface):
    """
    Google Sheets implementation of the transaction store.

    Transactions are stored as rows in a worksheet, one per row.
    gspread is synchronous, so sheet calls run in a worker thread and
    the event loop (and any submit timeout) stays responsive.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, tx: StoredTransaction) -> list:
        """Convert a StoredTransaction to a spreadsheet row."""
        return [
            str(tx.id),
            tx.created_at.isoformat(),
            tx.user_id,
            tx.type.value,
            tx.category_id,
            str(tx.amount),
            tx.description,
            tx.date.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> StoredTransaction:
        """Convert a spreadsheet row to a StoredTransaction."""
        return StoredTransaction(
            id=UUID(_safe_get(row, 0)),
            created_at=datetime.fromisoformat(_safe_get(row, 1)),
            user_id=_safe_get(row, 2),
            type=TransactionType(_safe_get(row, 3)),
            category_id=_safe_get(row, 4),
            amount=Decimal(_safe_get(row, 5)),
            description=_safe_get(row, 6),
            date=date.fromisoformat(_safe_get(row, 7)),
        )

    def _row_to_category(self, row: list) -> Category:
        return Category(
            id=_safe_get(row, 0),
            name=_safe_get(row, 1),
            type=CategoryType(_safe_get(row, 2, CategoryType.BOTH.value)),
            icon=_safe_get(row, 3) or None,
            user_id=_safe_get(row, 4) or None,
        )

    def _append(self, tx: StoredTransaction) -> None:
        sheet = self._client.get_transactions_sheet()
        sheet.append_row(self._transaction_to_row(tx), value_input_option="RAW")

    def _read_transactions(self) -> list[StoredTransaction]:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()[1:]  # Skip header

        transactions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except (ValueError, ArithmeticError):
                continue  # Skip malformed rows
        return transactions

    def _read_categories(self) -> list[Category]:
        sheet = self._client.get_categories_sheet()
        categories = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                categories.append(self._row_to_category(row))
            except ValueError:
                continue
        return categories

    def _find_row(self, sheet: gspread.Worksheet, transaction_id: UUID, user_id: str):
        """Sheet row number and values of a user's transaction, or (None, None)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Start from 2 (row 1 is header)
            if row and row[0] == str(transaction_id) and _safe_get(row, 2) == user_id:
                return idx, row
        return None, None

    def _replace(self, transaction_id: UUID, record: TransactionRecord) -> StoredTransaction:
        sheet = self._client.get_transactions_sheet()
        idx, row = self._find_row(sheet, transaction_id, record.user_id)
        if idx is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        updated = StoredTransaction.from_record(
            record,
            id=transaction_id,
            created_at=datetime.fromisoformat(_safe_get(row, 1)),
        )
        # Update each cell in the row
        for col_idx, value in enumerate(self._transaction_to_row(updated), start=1):
            sheet.update_cell(idx, col_idx, value)
        return updated

    def _remove(self, transaction_id: UUID, user_id: str) -> None:
        sheet = self._client.get_transactions_sheet()
        idx, _ = self._find_row(sheet, transaction_id, user_id)
        if idx is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        sheet.delete_rows(idx)

    async def insert(self, record: TransactionRecord) -> StoredTransaction:
        """Append one transaction row. Never retried."""
        stored = StoredTransaction.from_record(record)
        try:
            await asyncio.to_thread(self._append, stored)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add transaction: {e}")
        return stored

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_transactions(
        self,
        user_id: str,
        transaction_type: Optional[TransactionType] = None,
        category_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StoredTransaction]:
        """List transactions with optional filters."""
        try:
            transactions = await asyncio.to_thread(self._read_transactions)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        return filter_transactions(
            transactions,
            user_id=user_id,
            transaction_type=transaction_type,
            category_id=category_id,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )

    async def list_categories(
        self,
        user_id: Optional[str] = None,
    ) -> list[Category]:
        """Shared categories plus the ones owned by user_id."""
        try:
            categories = await asyncio.to_thread(self._read_categories)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

        return [
            cat for cat in categories
            if cat.user_id is None or cat.user_id == user_id
        ]

    async def update(
        self,
        transaction_id: UUID,
        record: TransactionRecord,
    ) -> StoredTransaction:
        """Rewrite one of the user's transaction rows in place."""
        try:
            return await asyncio.to_thread(self._replace, transaction_id, record)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}")

    async def delete(self, transaction_id: UUID, user_id: str) -> None:
        """Delete one of the user's transaction rows."""
        try:
            await asyncio.to_thread(self._remove, transaction_id, user_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")


class GoogleSheetsBudgetStore(BudgetStoreInterface):
    """
    Google Sheets implementation of budget storage.

    One row per budget in the Budgets worksheet.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _budget_to_row(self, budget: Budget) -> list:
        return [
            str(budget.id),
            budget.user_id,
            budget.category_id,
            str(budget.amount),
            budget.period.value,
            budget.created_at.isoformat(),
            budget.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list) -> Budget:
        return Budget(
            id=UUID(_safe_get(row, 0)),
            user_id=_safe_get(row, 1),
            category_id=_safe_get(row, 2),
            amount=Decimal(_safe_get(row, 3)),
            period=BudgetPeriod(_safe_get(row, 4, BudgetPeriod.MONTHLY.value)),
            created_at=datetime.fromisoformat(_safe_get(row, 5)),
            updated_at=datetime.fromisoformat(_safe_get(row, 6)),
        )

    def _read_rows(self, sheet: gspread.Worksheet) -> list[tuple[int, Budget]]:
        budgets = []
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                budgets.append((idx, self._row_to_budget(row)))
            except (ValueError, ArithmeticError):
                continue
        return budgets

    def _list(self, user_id: str) -> list[Budget]:
        sheet = self._client.get_budgets_sheet()
        return [b for _, b in self._read_rows(sheet) if b.user_id == user_id]

    def _save(self, budget: Budget) -> Budget:
        sheet = self._client.get_budgets_sheet()
        for idx, existing in self._read_rows(sheet):
            if existing.user_id == budget.user_id and existing.category_id == budget.category_id:
                budget = budget.model_copy(
                    update={"id": existing.id, "created_at": existing.created_at}
                )
                for col_idx, value in enumerate(self._budget_to_row(budget), start=1):
                    sheet.update_cell(idx, col_idx, value)
                return budget

        sheet.append_row(self._budget_to_row(budget), value_input_option="RAW")
        return budget

    def _delete(self, budget_id: UUID, user_id: str) -> None:
        sheet = self._client.get_budgets_sheet()
        for idx, existing in self._read_rows(sheet):
            if existing.id == budget_id and existing.user_id == user_id:
                sheet.delete_rows(idx)
                return
        raise NotFoundError(f"Budget not found: {budget_id}")

    async def list_budgets(self, user_id: str) -> list[Budget]:
        try:
            return await asyncio.to_thread(self._list, user_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list budgets: {e}")

    async def save_budget(self, budget: Budget) -> Budget:
        try:
            return await asyncio.to_thread(self._save, budget)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def delete_budget(self, budget_id: UUID, user_id: str) -> None:
        try:
            await asyncio.to_thread(self._delete, budget_id, user_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=UUID(_safe_get(row, 5)) if _safe_get(row, 5) else None,
            user_id=_safe_get(row, 6) or None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            await asyncio.to_thread(
                sheet.append_row, event.to_sheets_row(), value_input_option="RAW"
            )
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = await asyncio.to_thread(self._read_events)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = [e for e in events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = await asyncio.to_thread(self._read_events)
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
