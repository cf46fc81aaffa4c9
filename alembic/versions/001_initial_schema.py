"""Initial schema: merchants, keys, virtual accounts, balances, payment methods, transactions, payouts, audit logs

Revision ID: 001
Revises:
Create Date: 2024-01-01

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.Numeric(18, 2)


def upgrade() -> None:
    op.create_table(
        "merchants",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("middle_name", sa.String(255), nullable=True),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("preferred_currency", sa.String(3), nullable=False, server_default="NGN"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint("status IN ('active', 'inactive', 'suspended')", name="ck_merchants_status"),
    )
    op.create_index("ix_merchants_first_name", "merchants", ["first_name"])

    op.create_table(
        "merchant_keys",
        sa.Column("public_key", sa.String(64), primary_key=True),
        sa.Column("merchant_id", sa.String(26), sa.ForeignKey("merchants.id"), nullable=False),
        sa.Column("secret_key_hash", sa.String(64), nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_merchant_keys_merchant_id", "merchant_keys", ["merchant_id"])

    op.create_table(
        "virtual_accounts",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("merchant_id", sa.String(26), sa.ForeignKey("merchants.id"), nullable=False),
        sa.Column("account_number", sa.String(10), nullable=False, unique=True),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("bank_code", sa.String(3), nullable=False),
        sa.Column("bank_name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_virtual_accounts_merchant_id", "virtual_accounts", ["merchant_id"])

    op.create_table(
        "merchant_balances",
        sa.Column("merchant_id", sa.String(26), sa.ForeignKey("merchants.id"), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("available_balance", MONEY, nullable=False, server_default="0"),
        sa.Column("pending_settlement_balance", MONEY, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("merchant_id", "currency", name="pk_merchant_balances"),
        sa.CheckConstraint("available_balance >= 0", name="ck_merchant_balances_available_non_negative"),
        sa.CheckConstraint(
            "pending_settlement_balance >= 0", name="ck_merchant_balances_pending_non_negative"
        ),
    )

    payment_methods = op.create_table(
        "payment_methods",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("fee_type", sa.String(20), nullable=True),
        sa.Column("fee_rate", sa.Numeric(9, 4), nullable=True),
        sa.Column("fee_amount", MONEY, nullable=True),
        sa.Column("minimum_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("maximum_amount", MONEY, nullable=False),
        sa.Column("allowed_currencies", postgresql.ARRAY(sa.String(3)), nullable=False),
        sa.Column("available", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("reference", sa.String(64), nullable=False, unique=True),
        sa.Column("merchant_id", sa.String(26), sa.ForeignKey("merchants.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("tx_type", sa.String(20), nullable=True),
        sa.Column("payment_method_id", sa.String(26), sa.ForeignKey("payment_methods.id"), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("customer_phone_number", sa.String(50), nullable=True),
        sa.Column("fee_rate", sa.Numeric(9, 4), nullable=True),
        sa.Column("fee_amount", MONEY, nullable=True),
        sa.Column("total_amount", MONEY, nullable=True),
        sa.Column("card_last_four", sa.String(4), nullable=True),
        sa.Column("card_holder_name", sa.String(255), nullable=True),
        sa.Column("card_expiry", sa.String(5), nullable=True),
        sa.Column("customer_account_name", sa.String(255), nullable=True),
        sa.Column("customer_account_number", sa.String(20), nullable=True),
        sa.Column("customer_bank_code", sa.String(3), nullable=True),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint("status IN ('pending', 'success', 'failed')", name="ck_transactions_status"),
    )
    op.create_index("ix_transactions_merchant_id", "transactions", ["merchant_id"])
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])

    op.create_table(
        "payouts",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("reference", sa.String(64), nullable=False, unique=True),
        sa.Column("merchant_id", sa.String(26), sa.ForeignKey("merchants.id"), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("account_name", sa.String(255), nullable=False),
        sa.Column("account_number", sa.String(20), nullable=False),
        sa.Column("bank_code", sa.String(10), nullable=False),
        sa.Column("bank_name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_payouts_amount_positive"),
        sa.CheckConstraint("status IN ('pending', 'success', 'failed')", name="ck_payouts_status"),
    )
    op.create_index("ix_payouts_merchant_id", "payouts", ["merchant_id"])
    op.create_index("ix_payouts_created_at", "payouts", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("db_table", sa.String(100), nullable=False),
        sa.Column("table_id", sa.String(64), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="failure"),
        sa.Column("attempted_changes", postgresql.JSONB, nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("context", postgresql.JSONB, nullable=True),
        sa.Column("user_type", sa.String(20), nullable=True),
        sa.Column("user_id", sa.String(26), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_event_type", "audit_logs", ["event_type"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.bulk_insert(
        payment_methods,
        [
            {
                "id": "pm_card",
                "name": "card",
                "fee_type": "percentage",
                "fee_rate": 1.5,
                "fee_amount": None,
                "minimum_amount": 100,
                "maximum_amount": 5000000,
                "allowed_currencies": ["NGN", "USD"],
                "available": True,
            },
            {
                "id": "pm_virtual_account",
                "name": "virtual_account",
                "fee_type": "flat",
                "fee_rate": None,
                "fee_amount": 50,
                "minimum_amount": 100,
                "maximum_amount": 10000000,
                "allowed_currencies": ["NGN"],
                "available": True,
            },
        ],
    )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("payouts")
    op.drop_table("transactions")
    op.drop_table("payment_methods")
    op.drop_table("merchant_balances")
    op.drop_table("virtual_accounts")
    op.drop_table("merchant_keys")
    op.drop_table("merchants")
