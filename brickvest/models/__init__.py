"""Models module - SQLModel database entities."""

from brickvest.models.fee_config import FeeConfig
from brickvest.models.project import Project, ProjectStatus, ProjectType
from brickvest.models.project_payment import ProjectPayment, ProjectPaymentStatus
from brickvest.models.transaction import (
    SettlementState,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from brickvest.models.user import (
    ConnectAccountStatus,
    KycStatus,
    User,
    UserRole,
    VerificationStatus,
)
from brickvest.models.wallet import Wallet

__all__ = [
    # User
    "User",
    "UserRole",
    "KycStatus",
    "VerificationStatus",
    "ConnectAccountStatus",
    # Fee Config
    "FeeConfig",
    # Wallet & Ledger
    "Wallet",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "SettlementState",
    # Projects
    "Project",
    "ProjectType",
    "ProjectStatus",
    "ProjectPayment",
    "ProjectPaymentStatus",
]
