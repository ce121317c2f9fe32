"""
Streamlit Frontend for Budget Tracker

The pages a user interacts with:
1. Sign in (sidebar)
2. Add Transaction - the entry form
3. Transactions - filtered list, totals, edit and delete
4. Budgets - per-category limits and progress
5. Settings - theme and currency

The entry form is a thin view over TransactionEntryWorkflow:
- Widgets write into the workflow's draft
- Submit runs the workflow; its state drives spinner, errors and reset
- Nothing is saved without an explicit "Add Transaction" click
"""

import asyncio
import math
from datetime import date
from typing import Optional

import streamlit as st

from budget_tracker.config import get_settings
from budget_tracker.formatting import format_currency, format_date
from budget_tracker.models.preferences import Theme, UserPreferences, resolve_dark_mode
from budget_tracker.models.budget import BudgetPeriod
from budget_tracker.models.transaction import (
    AuthenticatedUser,
    TransactionDraft,
    TransactionType,
)
from budget_tracker.orchestrator import (
    create_budget_manager,
    create_budget_store,
    create_entry_workflow,
    create_storage,
    create_transaction_editor,
)
from budget_tracker.queries import load_budget_status, load_summary
from budget_tracker.services.identity import SessionIdentityProvider
from budget_tracker.services.preferences import PreferencesStore
from budget_tracker.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="Budget Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

LIGHT_CSS = """
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
    }
</style>
"""

DARK_CSS = """
<style>
    .stApp {
        background-color: #0f172a;
        color: #e2e8f0;
    }
</style>
"""

FORM_KEYS = {
    "type": "draft_type",
    "category_id": "draft_category_id",
    "amount": "draft_amount",
    "description": "draft_description",
    "date": "draft_date",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_storage():
    """Get or create the shared transaction store and audit logger (cached)."""
    return create_storage(use_storage=True)


@st.cache_resource
def get_budget_store():
    """Get or create the shared budget store (cached)."""
    return create_budget_store(use_storage=True)


def get_preferences() -> PreferencesStore:
    if "preferences" not in st.session_state:
        settings = get_settings().app
        st.session_state.preferences = PreferencesStore(
            UserPreferences(
                currency=settings.default_currency,
                theme=Theme(settings.default_theme),
            )
        )
    return st.session_state.preferences


def get_identity() -> SessionIdentityProvider:
    return SessionIdentityProvider(st.session_state)


def get_workflow():
    """One workflow per browser session, kept across reruns."""
    if "entry_workflow" not in st.session_state:
        transaction_store, audit_logger = get_storage()

        def on_transaction_added() -> None:
            st.session_state.reset_form = True
            st.session_state.flash = "Transaction added."

        def on_refresh() -> None:
            st.session_state.transactions_stale = True

        st.session_state.entry_workflow = create_entry_workflow(
            identity_provider=get_identity(),
            transaction_store=transaction_store,
            audit_logger=audit_logger,
            on_transaction_added=on_transaction_added,
            on_refresh=on_refresh,
        )
    return st.session_state.entry_workflow


def get_editor():
    if "transaction_editor" not in st.session_state:
        transaction_store, audit_logger = get_storage()
        st.session_state.transaction_editor = create_transaction_editor(
            identity_provider=get_identity(),
            transaction_store=transaction_store,
            audit_logger=audit_logger,
        )
    return st.session_state.transaction_editor


def get_budget_manager():
    if "budget_manager" not in st.session_state:
        _, audit_logger = get_storage()
        st.session_state.budget_manager = create_budget_manager(
            identity_provider=get_identity(),
            budget_store=get_budget_store(),
            audit_logger=audit_logger,
        )
    return st.session_state.budget_manager


def apply_theme(preferences: UserPreferences) -> None:
    st.markdown(LIGHT_CSS, unsafe_allow_html=True)
    # Streamlit exposes no system colour-scheme signal; SYSTEM renders light
    if resolve_dark_mode(preferences.theme, system_prefers_dark=False):
        st.markdown(DARK_CSS, unsafe_allow_html=True)


def main():
    """Main application entry point."""
    preferences = get_preferences()
    apply_theme(preferences.get())

    st.sidebar.title("💰 Budget Tracker")
    st.sidebar.markdown("---")
    render_sign_in(get_identity(), preferences)
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["➕ Add Transaction", "📊 Transactions", "🎯 Budgets", "⚙️ Settings"],
        index=0,
    )

    if page == "➕ Add Transaction":
        render_add_page(get_workflow(), preferences.get())
    elif page == "📊 Transactions":
        render_transactions_page(get_identity(), preferences.get())
    elif page == "🎯 Budgets":
        render_budgets_page(get_identity(), preferences.get())
    elif page == "⚙️ Settings":
        render_settings_page(preferences)


def render_sign_in(identity: SessionIdentityProvider, preferences: PreferencesStore):
    user = run_async(identity.get_current_user())
    if user:
        st.sidebar.markdown(f"Signed in as **{user.name or user.id}**")
        if st.sidebar.button("Sign out"):
            identity.sign_out()
            preferences.update(user_id=None, username="")
            st.rerun()
        return

    with st.sidebar.form("sign_in"):
        email = st.text_input("Email")
        name = st.text_input("Name (optional)")
        if st.form_submit_button("Sign in"):
            if not email.strip():
                st.error("Please enter your email.")
            else:
                user = AuthenticatedUser(
                    id=email.strip().lower(),
                    email=email.strip(),
                    name=name.strip() or None,
                )
                identity.sign_in(user)
                preferences.update(user_id=user.id, username=user.name or "")
                st.rerun()


def _sync_form_from_draft(workflow) -> None:
    draft = workflow.draft
    st.session_state[FORM_KEYS["type"]] = draft.type.value
    st.session_state[FORM_KEYS["category_id"]] = draft.category_id
    st.session_state[FORM_KEYS["amount"]] = draft.amount
    st.session_state[FORM_KEYS["description"]] = draft.description
    st.session_state[FORM_KEYS["date"]] = date.fromisoformat(draft.date)


def render_add_page(workflow, preferences: UserPreferences):
    """Render the transaction entry form."""
    st.title("➕ Add Transaction")

    if st.session_state.pop("reset_form", False) or FORM_KEYS["type"] not in st.session_state:
        _sync_form_from_draft(workflow)

    flash = st.session_state.pop("flash", None)
    if flash:
        st.success(flash)

    user = run_async(get_identity().get_current_user())
    categories = _load_categories(user)

    transaction_type = st.radio(
        "Type",
        options=[t.value for t in TransactionType],
        format_func=str.title,
        horizontal=True,
        key=FORM_KEYS["type"],
    )
    workflow.update_field("type", transaction_type)
    available = workflow.categories_for_type(categories)
    names = _category_names(available)
    if st.session_state.get(FORM_KEYS["category_id"]) not in names:
        # Switching type can hide the selected category
        st.session_state[FORM_KEYS["category_id"]] = ""

    with st.form("add_transaction"):
        category_id = st.selectbox(
            "Category",
            options=[""] + list(names),
            format_func=lambda cid: names.get(cid, "Select a category"),
            key=FORM_KEYS["category_id"],
        )
        amount = st.text_input(
            f"Amount ({preferences.currency})",
            placeholder="0.00",
            key=FORM_KEYS["amount"],
        )
        description = st.text_input(
            "Description",
            placeholder="What was this for?",
            key=FORM_KEYS["description"],
        )
        transaction_date = st.date_input("Date", key=FORM_KEYS["date"])

        submitted = st.form_submit_button(
            "Saving..." if workflow.is_submitting else "Add Transaction",
            type="primary",
            disabled=workflow.is_submitting,
        )

    if submitted:
        workflow.update(
            category_id=category_id,
            amount=amount,
            description=description,
            date=transaction_date,
        )
        with st.spinner("Saving..."):
            result = run_async(workflow.submit())
        if result is not None and result.is_ok:
            st.rerun()

    if workflow.last_error is not None:
        st.error(workflow.last_error.message)


def _category_names(categories) -> dict[str, str]:
    return {cat.id: f"{cat.icon or ''} {cat.name}".strip() for cat in categories}


def _load_categories(user: Optional[AuthenticatedUser]) -> list:
    transaction_store, _ = get_storage()
    try:
        return run_async(transaction_store.list_categories(user.id if user else None))
    except StorageError as e:
        st.error(f"Could not load categories: {e}")
        return []


def _show_result(result, success: str) -> None:
    if result.is_ok:
        st.session_state.flash = success
        st.rerun()
    st.error(result.message)


def render_transaction_filters(names: dict[str, str]) -> dict:
    """Type, category and date-range filters. Returns list_transactions kwargs."""
    with st.expander("🔍 Filters", expanded=False):
        col1, col2 = st.columns(2)
        type_choice = col1.selectbox(
            "Type",
            options=["all"] + [t.value for t in TransactionType],
            format_func=str.title,
        )
        category_id = col2.selectbox(
            "Category",
            options=[""] + list(names),
            format_func=lambda cid: names.get(cid, "All categories"),
        )
        col3, col4 = st.columns(2)
        date_from = col3.date_input("From", value=None)
        date_to = col4.date_input("To", value=None)

    return {
        "transaction_type": None if type_choice == "all" else TransactionType(type_choice),
        "category_id": category_id or None,
        "date_from": date_from,
        "date_to": date_to,
    }


def render_transaction_row(tx, names: dict[str, str], currency: str) -> None:
    signed = tx.signed_amount
    col1, col2, col3 = st.columns([2, 4, 2])
    col1.write(format_date(tx.date))
    col2.write(f"**{tx.description}** · {names.get(tx.category_id, tx.category_id)}")
    col3.write(f"{'+' if signed > 0 else ''}{format_currency(signed, currency=currency)}")

    with st.expander("Edit or delete"):
        type_options = [t.value for t in TransactionType]
        with st.form(f"edit_{tx.id}"):
            new_type = st.radio(
                "Type",
                options=type_options,
                index=type_options.index(tx.type.value),
                format_func=str.title,
                horizontal=True,
            )
            options = [""] + list(names)
            new_category = st.selectbox(
                "Category",
                options=options,
                index=options.index(tx.category_id) if tx.category_id in names else 0,
                format_func=lambda cid: names.get(cid, "Select a category"),
            )
            new_amount = st.text_input("Amount", value=str(tx.amount))
            new_description = st.text_input("Description", value=tx.description)
            new_date = st.date_input("Date", value=tx.date)
            save = st.form_submit_button("Save changes", type="primary")

        if save:
            draft = TransactionDraft(
                type=new_type,
                category_id=new_category,
                amount=new_amount,
                description=new_description,
                date=new_date,
            )
            _show_result(run_async(get_editor().update(tx.id, draft)), "Transaction updated.")

        if st.button("🗑️ Delete", key=f"delete_{tx.id}"):
            _show_result(run_async(get_editor().delete(tx.id)), "Transaction deleted.")


def render_transactions_page(identity: SessionIdentityProvider, preferences: UserPreferences):
    """Render the filtered list of transactions with totals."""
    st.title("📊 Transactions")

    flash = st.session_state.pop("flash", None)
    if flash:
        st.success(flash)

    user = run_async(identity.get_current_user())
    if user is None:
        st.info("Sign in to see your transactions.")
        return

    transaction_store, _ = get_storage()
    page_size = get_settings().app.transactions_page_size
    st.session_state.pop("transactions_stale", None)

    categories = _load_categories(user)
    names = _category_names(categories)
    filters = render_transaction_filters(names)

    try:
        summary = run_async(load_summary(transaction_store, user.id, **filters))
    except StorageError as e:
        st.error(f"Could not load transactions: {e}")
        return

    currency = preferences.currency
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", format_currency(summary.total_income, True, currency))
    col2.metric("Expenses", format_currency(summary.total_expenses, True, currency))
    col3.metric("Balance", format_currency(summary.balance, True, currency))

    if summary.transaction_count == 0:
        st.info("No transactions found. Add your first one!")
        return

    pages = math.ceil(summary.transaction_count / page_size)
    page = st.number_input("Page", min_value=1, max_value=pages, value=1, step=1)
    try:
        transactions = run_async(transaction_store.list_transactions(
            user_id=user.id,
            limit=page_size,
            offset=(page - 1) * page_size,
            **filters,
        ))
    except StorageError as e:
        st.error(f"Could not load transactions: {e}")
        return

    st.markdown("---")
    for tx in transactions:
        render_transaction_row(tx, names, currency)

    if summary.expenses_by_category:
        st.markdown("### Spending by category")
        for item in summary.expenses_by_category:
            label = names.get(item.category_id, item.category_id)
            st.write(f"{label}: {format_currency(item.total, currency=currency)}")


def render_budgets_page(identity: SessionIdentityProvider, preferences: UserPreferences):
    """Per-category spending limits and progress for the current period."""
    st.title("🎯 Budgets")

    flash = st.session_state.pop("flash", None)
    if flash:
        st.success(flash)

    user = run_async(identity.get_current_user())
    if user is None:
        st.info("Sign in to manage your budgets.")
        return

    transaction_store, _ = get_storage()
    expense_categories = [
        c for c in _load_categories(user) if c.applies_to(TransactionType.EXPENSE)
    ]
    names = _category_names(expense_categories)
    currency = preferences.currency

    with st.form("save_budget"):
        st.markdown("### Set a budget")
        category_id = st.selectbox(
            "Category",
            options=[""] + list(names),
            format_func=lambda cid: names.get(cid, "Select a category"),
        )
        amount = st.text_input(f"Limit ({currency})", placeholder="0.00")
        period = st.selectbox(
            "Period",
            options=[p.value for p in BudgetPeriod],
            index=1,
            format_func=str.title,
        )
        st.caption("Saving a budget for a category that already has one replaces it.")
        save = st.form_submit_button("Save budget", type="primary")

    if save:
        _show_result(
            run_async(get_budget_manager().save(category_id, amount, period)),
            "Budget saved.",
        )

    try:
        statuses = run_async(load_budget_status(
            get_budget_store(), transaction_store, user.id, date.today()
        ))
    except StorageError as e:
        st.error(f"Could not load budgets: {e}")
        return

    if not statuses:
        st.info("No budgets yet. Set one above.")
        return

    st.markdown("---")
    for status in statuses:
        budget = status.budget
        label = names.get(budget.category_id, budget.category_id)
        col1, col2 = st.columns([5, 1])
        col1.markdown(
            f"**{label}** · {budget.period.value.title()} · "
            f"{format_currency(status.spent, currency=currency)} of "
            f"{format_currency(budget.amount, currency=currency)}"
        )
        col1.progress(min(status.percentage, 100.0) / 100)
        if status.is_over_budget:
            col1.error(
                f"Over budget by {format_currency(-status.remaining, currency=currency)}"
            )
        else:
            col1.caption(
                f"{format_currency(status.remaining, currency=currency)} left until "
                f"{format_date(status.period_end)}"
            )
        if col2.button("🗑️ Delete", key=f"delete_budget_{budget.id}"):
            _show_result(run_async(get_budget_manager().delete(budget.id)), "Budget deleted.")


def render_settings_page(preferences: PreferencesStore):
    """Render the settings page."""
    st.title("⚙️ Settings")

    current = preferences.get()
    themes = list(Theme)
    theme = st.selectbox(
        "Theme",
        options=themes,
        index=themes.index(current.theme),
        format_func=lambda t: t.value.title(),
    )
    currency = st.text_input("Currency (ISO code)", value=current.currency)

    if st.button("Save settings", type="primary"):
        try:
            updated = preferences.update(theme=theme, currency=currency)
        except ValueError as e:
            st.error(f"Invalid settings: {e}")
        else:
            _, audit_logger = get_storage()
            run_async(
                audit_logger.log_preferences_updated(
                    user_id=updated.user_id,
                    changes={"theme": updated.theme.value, "currency": updated.currency},
                )
            )
            st.success("Settings saved.")
            st.rerun()


if __name__ == "__main__":
    main()
