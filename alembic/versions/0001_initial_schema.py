"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Initial database schema for Brickvest.
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Enum columns store member names
user_role = sa.Enum("USER", "ADMIN", "CREATOR", name="userrole")
kyc_status = sa.Enum("PENDING", "VERIFIED", "REJECTED", name="kycstatus")
verification_status = sa.Enum(
    "NOT_SUBMITTED", "PENDING", "VERIFIED", "REJECTED", name="verificationstatus"
)
connect_account_status = sa.Enum(
    "PENDING", "VERIFIED", "RESTRICTED", "REJECTED", name="connectaccountstatus"
)
project_type = sa.Enum("RESIDENTIAL", "COMMERCIAL", "INDUSTRIAL", name="projecttype")
project_status = sa.Enum("ACTIVE", "COMPLETED", "CANCELLED", name="projectstatus")
transaction_type = sa.Enum(
    "DEPOSIT", "WITHDRAWAL", "INVESTMENT", "DIVIDEND", name="transactiontype"
)
transaction_status = sa.Enum("PENDING", "COMPLETED", "FAILED", name="transactionstatus")
settlement_state = sa.Enum("RESERVED", "SUBMITTED", "SETTLED", "REVERSED", name="settlementstate")
project_payment_status = sa.Enum(
    "PENDING", "COMPLETED", "FAILED", "REFUNDED", name="projectpaymentstatus"
)


def upgrade() -> None:
    """Create initial database schema."""
    # Fee tiers
    op.create_table(
        "fee_configs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("platform_fee_percent", sa.DECIMAL(precision=10, scale=4), nullable=False),
        sa.Column("processor_fee_percent", sa.DECIMAL(precision=10, scale=4), nullable=False),
        sa.Column("processor_fee_fixed", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("payout_fee_percent", sa.DECIMAL(precision=10, scale=4), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("password_hash", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("phone", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("address", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column(
            "employment_details", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True
        ),
        sa.Column("office_address", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("country", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
        sa.Column(
            "citizenship_number", sqlmodel.sql.sqltypes.AutoString(length=512), nullable=True
        ),
        sa.Column("passport_number", sqlmodel.sql.sqltypes.AutoString(length=512), nullable=True),
        sa.Column("onboarding_step", sa.Integer(), nullable=False),
        sa.Column("onboarding_completed", sa.Boolean(), nullable=False),
        sa.Column("kyc_status", kyc_status, nullable=False),
        sa.Column("identity_verification_status", verification_status, nullable=False),
        sa.Column("address_verification_status", verification_status, nullable=False),
        sa.Column(
            "residential_status", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True
        ),
        sa.Column("id_document", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("proof_of_address", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column(
            "passport_document", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True
        ),
        sa.Column("selfie_document", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column(
            "verification_secret", sqlmodel.sql.sqltypes.AutoString(length=512), nullable=True
        ),
        sa.Column("verification_expires_at", sa.DateTime(), nullable=True),
        sa.Column("token_version", sa.Integer(), nullable=False),
        sa.Column(
            "stripe_customer_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True
        ),
        sa.Column(
            "stripe_connect_account_id",
            sqlmodel.sql.sqltypes.AutoString(length=255),
            nullable=True,
        ),
        sa.Column("connect_account_status", connect_account_status, nullable=True),
        sa.Column("connect_onboarding_complete", sa.Boolean(), nullable=False),
        sa.Column("connect_payouts_enabled", sa.Boolean(), nullable=False),
        sa.Column("fee_config_id", sa.Integer(), nullable=True),
        sa.Column("member_since", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["fee_config_id"], ["fee_configs.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(
        op.f("ix_users_stripe_connect_account_id"),
        "users",
        ["stripe_connect_account_id"],
        unique=False,
    )

    # Wallets table
    op.create_table(
        "wallets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("balance", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_wallets_user_id"), "wallets", ["user_id"], unique=True)

    # Projects table
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("creator_id", sa.Integer(), nullable=True),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("type", project_type, nullable=False),
        sa.Column("location", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("target_amount", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("current_amount", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("return_rate", sa.DECIMAL(precision=10, scale=4), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", project_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_creator_id"), "projects", ["creator_id"], unique=False)
    op.create_index(op.f("ix_projects_type"), "projects", ["type"], unique=False)
    op.create_index(op.f("ix_projects_status"), "projects", ["status"], unique=False)
    op.create_index(op.f("ix_projects_created_at"), "projects", ["created_at"], unique=False)

    # Ledger
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("amount", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("status", transaction_status, nullable=False),
        sa.Column("settlement_state", settlement_state, nullable=True),
        sa.Column("fee", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("reference", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("gateway_ref", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("description", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reference"),
    )
    op.create_index(op.f("ix_transactions_user_id"), "transactions", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_transactions_project_id"), "transactions", ["project_id"], unique=False
    )
    op.create_index(op.f("ix_transactions_type"), "transactions", ["type"], unique=False)
    op.create_index(op.f("ix_transactions_status"), "transactions", ["status"], unique=False)
    op.create_index(
        op.f("ix_transactions_settlement_state"),
        "transactions",
        ["settlement_state"],
        unique=False,
    )
    op.create_index(
        op.f("ix_transactions_gateway_ref"), "transactions", ["gateway_ref"], unique=False
    )
    op.create_index(op.f("ix_transactions_date"), "transactions", ["date"], unique=False)

    # Card-funded investments
    op.create_table(
        "project_payments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("investor_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("status", project_payment_status, nullable=False),
        sa.Column(
            "payment_intent_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False
        ),
        sa.Column("transfer_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("fee", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("platform_fee", sa.DECIMAL(precision=18, scale=2), nullable=False),
        sa.Column("refund_amount", sa.DECIMAL(precision=18, scale=2), nullable=True),
        sa.Column("refund_reason", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["investor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_project_payments_project_id"), "project_payments", ["project_id"], unique=False
    )
    op.create_index(
        op.f("ix_project_payments_investor_id"), "project_payments", ["investor_id"], unique=False
    )
    op.create_index(
        op.f("ix_project_payments_status"), "project_payments", ["status"], unique=False
    )
    op.create_index(
        op.f("ix_project_payments_payment_intent_id"),
        "project_payments",
        ["payment_intent_id"],
        unique=True,
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("project_payments")
    op.drop_table("transactions")
    op.drop_table("projects")
    op.drop_table("wallets")
    op.drop_table("users")
    op.drop_table("fee_configs")
