"""
Registry of family-scoped resources.

Each entry names the table, how list queries are scoped and ordered, and
which other cached views go stale when the resource changes. Summary keys
(e.g. accounts_summary) are views computed from several tables; they are
listed here so callers caching them get invalidated too.
"""

from .exceptions import UnknownResourceError
from .models import ResourceSpec

_SCHEDULE_KEYS = ("scheduled_payments", "scheduled_instances", "active_schedules", "schedules_summary")

RESOURCES: dict[str, ResourceSpec] = {
    spec.name: spec
    for spec in (
        # Accounts
        ResourceSpec(
            name="bank_accounts",
            table="bank_accounts",
            order_by="is_primary",
            invalidates=("accounts_summary",),
        ),
        ResourceSpec(
            name="credit_cards",
            table="credit_cards",
            invalidates=("accounts_summary",),
        ),
        ResourceSpec(
            name="credit_card_bills",
            table="credit_card_bills",
            scope_column="credit_card_id",
            order_by="year",
            invalidates=("credit_cards", "scheduled_instances", "monthly_data"),
        ),
        ResourceSpec(
            name="transactions",
            table="transactions",
            order_by="date",
            invalidates=("bank_accounts", "credit_cards", "accounts_summary", "recent_transactions"),
        ),
        # Budget
        ResourceSpec(
            name="expense_categories",
            table="expense_categories",
            order_by="display_order",
            ascending=True,
            invalidates=("budget_summary",),
        ),
        ResourceSpec(
            name="income_sources",
            table="income_sources",
            order_by="display_order",
            ascending=True,
            invalidates=("budget_summary",),
        ),
        # Monthly tracker
        ResourceSpec(
            name="expense_records",
            table="expense_records",
            order_by="date",
            invalidates=("monthly_data", "budget_summary", "transactions", "bank_accounts"),
        ),
        ResourceSpec(
            name="income_records",
            table="income_records",
            order_by="date",
            invalidates=("monthly_data", "budget_summary", "transactions", "bank_accounts"),
        ),
        # Loans
        ResourceSpec(
            name="loans",
            table="loans",
            invalidates=("active_loans", "loans_summary", *_SCHEDULE_KEYS),
        ),
        ResourceSpec(
            name="loan_payments",
            table="loan_payments",
            scope_column="loan_id",
            order_by="payment_date",
            invalidates=("loans", "active_loans", "loans_summary", "transactions", "bank_accounts"),
        ),
        # Investments
        ResourceSpec(
            name="investments",
            table="investments",
            invalidates=(
                "active_investments",
                "investments_by_type",
                "investments_summary",
                *_SCHEDULE_KEYS,
            ),
        ),
        # Insurance
        ResourceSpec(
            name="insurance",
            table="insurance",
            order_by="next_due_date",
            ascending=True,
            invalidates=(
                "active_policies",
                "policies_by_type",
                "insurance_summary",
                "upcoming_premiums",
                *_SCHEDULE_KEYS,
            ),
        ),
        # Lending
        ResourceSpec(
            name="personal_lending",
            table="personal_lending",
            order_by="date",
            invalidates=("active_lendings", "lent_money", "borrowed_money", "lending_summary"),
        ),
        ResourceSpec(
            name="lending_payments",
            table="lending_payments",
            scope_column="lending_id",
            order_by="payment_date",
            invalidates=("personal_lending", "active_lendings", "lending_summary", "transactions", "bank_accounts"),
        ),
        # Schedules
        ResourceSpec(
            name="scheduled_payments",
            table="scheduled_payments",
            order_by="due_day",
            ascending=True,
            invalidates=("active_schedules", "schedules_summary", "upcoming_instances"),
        ),
        ResourceSpec(
            name="scheduled_instances",
            table="scheduled_instances",
            order_by="due_date",
            ascending=True,
            invalidates=(
                "schedules_summary",
                "upcoming_instances",
                "overdue_instances",
                "transactions",
                "bank_accounts",
            ),
        ),
        # Documents
        ResourceSpec(
            name="documents",
            table="documents",
            invalidates=("documents_summary",),
        ),
        # Notifications
        ResourceSpec(
            name="notifications",
            table="notifications",
            track_creator=False,
            invalidates=("unread_notifications", "unread_count", "notifications_summary"),
        ),
    )
}


def get_resource_spec(name: str) -> ResourceSpec:
    """
    Look up a resource by name.

    Raises:
        UnknownResourceError: If the name is not registered
    """
    try:
        return RESOURCES[name]
    except KeyError:
        raise UnknownResourceError(name)
