"""Services module - business logic layer."""

from brickvest.services.auth_service import AuthService
from brickvest.services.connect_service import ConnectService
from brickvest.services.deposit_service import DepositService
from brickvest.services.email_service import EmailService
from brickvest.services.fee_config_service import FeeConfigService
from brickvest.services.funding_service import FundingService
from brickvest.services.ledger_service import LedgerService
from brickvest.services.payment_gateway import PaymentGateway, get_payment_gateway
from brickvest.services.portfolio_service import PortfolioService
from brickvest.services.project_service import ProjectService
from brickvest.services.user_service import UserService
from brickvest.services.webhook_service import WebhookService
from brickvest.services.withdrawal_service import WithdrawalService

__all__ = [
    "AuthService",
    "ConnectService",
    "DepositService",
    "EmailService",
    "FeeConfigService",
    "FundingService",
    "LedgerService",
    "PaymentGateway",
    "PortfolioService",
    "ProjectService",
    "UserService",
    "WebhookService",
    "WithdrawalService",
    "get_payment_gateway",
]
