"""Ledger reconciliation tasks.

- Withdrawals left reserved/submitted are re-driven to settled or reversed
- Cached wallet balances are checked against a ledger replay
"""

import logging

from sqlmodel import select

from brickvest.core.config import get_settings
from brickvest.db.engine import close_db, get_session
from brickvest.models.wallet import Wallet
from brickvest.services.ledger_service import LedgerService
from brickvest.services.payment_gateway import get_payment_gateway
from brickvest.services.withdrawal_service import WithdrawalService
from brickvest.tasks.celery_app import celery_app
from brickvest.tasks.notifications import run_async

logger = logging.getLogger(__name__)


@celery_app.task(name="reconciliation.reconcile_withdrawals")
def reconcile_withdrawals() -> dict:
    """Re-drive in-flight withdrawals older than the configured cutoff."""
    return run_async(_reconcile_withdrawals_async())


async def _reconcile_withdrawals_async() -> dict:
    try:
        async with get_session() as db:
            service = WithdrawalService(db, get_payment_gateway())
            return await service.reconcile_stuck_withdrawals(
                get_settings().withdrawal_reconcile_after_seconds
            )
    finally:
        await close_db()


@celery_app.task(name="reconciliation.reconcile_wallets")
def reconcile_wallets(repair: bool = True) -> dict:
    """Compare every cached wallet balance with its ledger, repairing drift."""
    return run_async(_reconcile_wallets_async(repair))


async def _reconcile_wallets_async(repair: bool) -> dict:
    stats = {"checked": 0, "drifted": 0, "repaired": 0, "skipped": 0}
    try:
        async with get_session() as db:
            result = await db.execute(select(Wallet.user_id).order_by(Wallet.user_id))
            ledger = LedgerService(db)
            for user_id in result.scalars().all():
                report = await ledger.reconcile_wallet(user_id, repair=repair)
                stats["checked"] += 1
                if report["drift"]:
                    stats["drifted"] += 1
                if report["repaired"]:
                    stats["repaired"] += 1
                if report["skipped"]:
                    stats["skipped"] += 1
    finally:
        await close_db()

    if stats["drifted"]:
        logger.warning(f"[reconcile_wallets] {stats}")
    else:
        logger.info(f"[reconcile_wallets] {stats}")
    return stats
