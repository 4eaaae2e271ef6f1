"""initial ledger, recurring and reconciliation schema

Revision ID: 001
Revises: 
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

frequency = sa.Enum("daily", "weekly", "biweekly", "monthly", "quarterly", "yearly", name="frequency")
exception_type = sa.Enum("skipped", "modified", name="exceptiontype")
budget_scope = sa.Enum("shared", "personal", name="budgetscope")


def _schedule_columns():
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("frequency", frequency, nullable=False),
        sa.Column("interval", sa.Integer, nullable=False),
        sa.Column("day_of_week", sa.Integer, nullable=True),
        sa.Column("day_of_month", sa.Integer, nullable=True),
        sa.Column("month_of_year", sa.Integer, nullable=True),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=True),
        sa.Column("next_occurrence", sa.Date, nullable=True),
        sa.Column("last_generated_date", sa.Date, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("scope", budget_scope, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    ]


def _exception_columns():
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("original_date", sa.Date, nullable=False),
        sa.Column("exception_type", exception_type, nullable=False),
        sa.Column("modified_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("modified_description", sa.Text, nullable=True),
        sa.Column("modified_date", sa.Date, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("account_type", sa.Enum("checking", "savings", "credit", "cash", "other", name="accounttype"), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("initial_balance", sa.Numeric(12, 2), nullable=False),
        sa.Column("initial_balance_date", sa.Date, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )

    op.create_table(
        "recurring_transactions",
        *_schedule_columns(),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
    )
    op.create_table(
        "recurring_transaction_exceptions",
        *_exception_columns(),
        sa.Column("recurring_transaction_id", sa.String(36), sa.ForeignKey("recurring_transactions.id"),
                  nullable=False, index=True),
        sa.UniqueConstraint("recurring_transaction_id", "original_date", name="uq_recurring_exception_date"),
    )

    op.create_table(
        "recurring_transfers",
        *_schedule_columns(),
        sa.Column("source_account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
        sa.Column("destination_account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False, index=True),
    )
    op.create_table(
        "recurring_transfer_exceptions",
        *_exception_columns(),
        sa.Column("recurring_transfer_id", sa.String(36), sa.ForeignKey("recurring_transfers.id"),
                  nullable=False, index=True),
        sa.UniqueConstraint("recurring_transfer_id", "original_date", name="uq_recurring_transfer_exception_date"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("hash", sa.String(64), nullable=True, unique=True, index=True),
        sa.Column("date", sa.Date, nullable=False, index=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("account_id", sa.String(36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("is_imported", sa.Boolean, nullable=False),
        sa.Column("recurring_transaction_id", sa.String(36), sa.ForeignKey("recurring_transactions.id"), nullable=True),
        sa.Column("recurring_instance_date", sa.Date, nullable=True),
        sa.Column("transfer_id", sa.String(36), nullable=True, index=True),
        sa.Column("transfer_direction", sa.Enum("source", "destination", name="transferdirection"), nullable=True),
        sa.Column("recurring_transfer_id", sa.String(36), sa.ForeignKey("recurring_transfers.id"), nullable=True),
        sa.Column("recurring_transfer_instance_date", sa.Date, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_transaction_date_account", "transactions", ["date", "account_id"])
    op.create_index(
        "idx_transaction_recurring_instance", "transactions",
        ["recurring_transaction_id", "recurring_instance_date"],
    )
    op.create_index(
        "idx_transaction_recurring_transfer_instance", "transactions",
        ["recurring_transfer_id", "recurring_transfer_instance_date"],
    )

    op.create_table(
        "reconciliation_matches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("imported_transaction_id", sa.String(36), sa.ForeignKey("transactions.id"), nullable=False, index=True),
        sa.Column("recurring_transaction_id", sa.String(36), sa.ForeignKey("recurring_transactions.id"),
                  nullable=False, index=True),
        sa.Column("recurring_instance_date", sa.Date, nullable=False, index=True),
        sa.Column("confidence_score", sa.Numeric(5, 4), nullable=False),
        sa.Column("confidence_level", sa.Enum("high", "medium", "low", name="confidencelevel"), nullable=False),
        sa.Column("status", sa.Enum("pending", "auto_matched", "accepted", "rejected", name="matchstatus"),
                  nullable=False, index=True),
        sa.Column("amount_variance", sa.Numeric(12, 2), nullable=False),
        sa.Column("date_offset_days", sa.Integer, nullable=False),
        sa.Column("description_similarity", sa.Numeric(5, 4), nullable=True),
        sa.Column("scope", budget_scope, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("resolved_at", sa.DateTime, nullable=True),
        sa.UniqueConstraint(
            "imported_transaction_id", "recurring_transaction_id", "recurring_instance_date",
            name="uq_reconciliation_match_instance",
        ),
    )

    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("auto_realize_past_due_items", sa.Boolean, nullable=False),
        sa.Column("past_due_lookback_days", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
    op.drop_table("reconciliation_matches")
    op.drop_index("idx_transaction_recurring_transfer_instance", table_name="transactions")
    op.drop_index("idx_transaction_recurring_instance", table_name="transactions")
    op.drop_index("idx_transaction_date_account", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("recurring_transfer_exceptions")
    op.drop_table("recurring_transfers")
    op.drop_table("recurring_transaction_exceptions")
    op.drop_table("recurring_transactions")
    op.drop_table("accounts")
