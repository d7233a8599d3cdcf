"""Shared fixtures for Brickvest tests.

- A fresh SQLite database per test (file-backed so every session sees the same data)
- The FastAPI app with get_db and the payment gateway overridden
- A fake Stripe gateway that records calls and can be told to fail
- User / wallet / project factories and auth headers
"""

import base64
import json
import os
import tempfile
import time
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

# Settings are read at import time; configure before importing brickvest
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AES_ENCRYPTION_KEY"] = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode()
os.environ["JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_brickvest"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_brickvest"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="brickvest-uploads-")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import brickvest.models  # noqa: E402, F401
from brickvest.core.exceptions import GatewayError  # noqa: E402
from brickvest.core.security import hash_password  # noqa: E402
from brickvest.db.engine import get_db  # noqa: E402
from brickvest.main import app  # noqa: E402
from brickvest.models.project import Project, ProjectStatus, ProjectType  # noqa: E402
from brickvest.models.transaction import TransactionStatus, TransactionType  # noqa: E402
from brickvest.models.user import User, UserRole  # noqa: E402
from brickvest.models.wallet import Wallet  # noqa: E402
from brickvest.services.auth_service import AuthService  # noqa: E402
from brickvest.services.ledger_service import LedgerService  # noqa: E402
from brickvest.services.payment_gateway import get_payment_gateway  # noqa: E402


class FakeGateway:
    """In-memory stand-in for PaymentGateway.

    Set ``transfer_error`` / ``refund_error`` to a GatewayError to make the
    next calls fail. ``account`` is what retrieve_account returns.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.sessions: dict[str, dict[str, Any]] = {}
        self.transfer_error: GatewayError | None = None
        self.refund_error: GatewayError | None = None
        self.account: dict[str, Any] = {
            "id": "acct_test",
            "charges_enabled": True,
            "payouts_enabled": True,
            "details_submitted": True,
            "requirements": {},
        }
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    async def create_checkout_session(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_checkout_session", kwargs))
        session_id = self._next_id("cs_test")
        return {"id": session_id, "url": f"https://checkout.stripe.test/{session_id}"}

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        self.calls.append(("retrieve_checkout_session", {"session_id": session_id}))
        if session_id not in self.sessions:
            raise GatewayError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    async def create_transfer(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_transfer", kwargs))
        if self.transfer_error is not None:
            raise self.transfer_error
        return {"id": f"tr_{kwargs['idempotency_key']}", "amount": kwargs["amount"]}

    async def create_customer(self, email: str, name: str | None = None) -> dict[str, Any]:
        self.calls.append(("create_customer", {"email": email, "name": name}))
        return {"id": self._next_id("cus_test")}

    async def create_payment_intent(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_payment_intent", kwargs))
        intent_id = self._next_id("pi_test")
        return {"id": intent_id, "client_secret": f"{intent_id}_secret"}

    async def create_refund(self, payment_intent_id: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("create_refund", {"payment_intent_id": payment_intent_id, **kwargs}))
        if self.refund_error is not None:
            raise self.refund_error
        return {"id": self._next_id("re_test"), "payment_intent": payment_intent_id}

    async def create_connect_account(self, email: str, user_id: int) -> dict[str, Any]:
        self.calls.append(("create_connect_account", {"email": email, "user_id": user_id}))
        return {"id": self.account["id"]}

    async def retrieve_account(self, account_id: str) -> dict[str, Any]:
        self.calls.append(("retrieve_account", {"account_id": account_id}))
        return {**self.account, "id": account_id}

    async def create_account_link(
        self, account_id: str, refresh_url: str, return_url: str
    ) -> dict[str, Any]:
        self.calls.append(("create_account_link", {"account_id": account_id}))
        return {"url": f"https://connect.stripe.test/setup/{account_id}"}

    def construct_event(self, payload: bytes, sig_header: str | None) -> dict[str, Any]:
        from brickvest.core.config import get_settings
        from brickvest.services.payment_gateway import verify_webhook_signature

        return verify_webhook_signature(payload, sig_header, get_settings().stripe_webhook_secret)


# ============ Database ============


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ============ App ============


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def email_task():
    """Verification email task with .delay patched out."""
    with patch("brickvest.api.auth.send_verification_email") as task:
        task.delay = MagicMock()
        yield task


@pytest_asyncio.fixture
async def client(session_factory, gateway, email_task):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============ Factories ============


async def create_user(
    db: AsyncSession,
    email: str = "investor@example.com",
    name: str = "Ivy Investor",
    password: str = "secret123",
    role: UserRole = UserRole.USER,
    **fields: Any,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_verified=True,
        **fields,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def fund_wallet(db: AsyncSession, user: User, amount: str | Decimal) -> Wallet:
    """Credit a completed deposit through the ledger."""
    ledger = LedgerService(db)
    await ledger.get_or_create_wallet(user.id)
    ledger.record(
        user_id=user.id,
        tx_type=TransactionType.DEPOSIT,
        amount=Decimal(amount),
        status=TransactionStatus.COMPLETED,
        description="Test deposit",
    )
    await ledger.credit(user.id, Decimal(amount))
    await db.commit()
    return await ledger.get_wallet(user.id)


async def create_project(
    db: AsyncSession,
    creator: User | None = None,
    target: str = "1000.00",
    current: str = "0.00",
    status: ProjectStatus = ProjectStatus.ACTIVE,
    name: str = "Harbor Lofts",
    project_type: ProjectType = ProjectType.RESIDENTIAL,
) -> Project:
    project = Project(
        creator_id=creator.id if creator else None,
        name=name,
        type=project_type,
        location="Lisbon",
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        return_rate=Decimal("8.5"),
        duration=24,
        description="Mixed-use renovation",
        status=status,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {AuthService(None).issue_token(user)}"}  # type: ignore[arg-type]


@pytest_asyncio.fixture
async def investor(db) -> User:
    return await create_user(db)


@pytest_asyncio.fixture
async def admin(db) -> User:
    return await create_user(db, email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def creator(db) -> User:
    return await create_user(
        db,
        email="creator@example.com",
        name="Cal Creator",
        role=UserRole.CREATOR,
        stripe_connect_account_id="acct_creator",
        connect_payouts_enabled=True,
    )


def signed(event: dict, secret: str | None = None) -> tuple[bytes, dict[str, str]]:
    """Serialize a webhook event with a valid (or wrong-secret) stripe-signature header."""
    from brickvest.core.config import get_settings
    from brickvest.services.payment_gateway import compute_signature

    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    signature = compute_signature(payload, timestamp, secret or get_settings().stripe_webhook_secret)
    return payload, {
        "stripe-signature": f"t={timestamp},v1={signature}",
        "content-type": "application/json",
    }
