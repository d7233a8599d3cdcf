"""API module - route handlers and common dependencies."""

from fastapi import FastAPI

from brickvest.api.deps import AdminUser, CurrentUser, DbSession, Gateway

__all__ = [
    "AdminUser",
    "CurrentUser",
    "DbSession",
    "Gateway",
    "register_routers",
]


def register_routers(app: FastAPI) -> None:
    """Register all API routers to the application.

    Args:
        app: FastAPI application instance
    """
    # Auth & User management
    from brickvest.api.auth import router as auth_router
    from brickvest.api.users import router as users_router

    app.include_router(auth_router, prefix="/api")
    app.include_router(users_router, prefix="/api")

    # Projects, investment & dividends
    from brickvest.api.projects import router as projects_router

    app.include_router(projects_router, prefix="/api")

    # Wallet & ledger
    from brickvest.api.wallet import router as wallet_router

    app.include_router(wallet_router, prefix="/api")

    # Deposits, withdrawals & processor webhooks
    from brickvest.api.connect import router as connect_router
    from brickvest.api.payments import router as payments_router

    app.include_router(payments_router, prefix="/api")
    app.include_router(connect_router, prefix="/api")

    # Fee tiers
    from brickvest.api.fee_configs import router as fee_configs_router

    app.include_router(fee_configs_router, prefix="/api")
