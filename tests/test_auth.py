"""Signup, login, session revocation and email verification."""

from brickvest.core.config import get_settings
from brickvest.models.user import User
from tests.conftest import auth_headers, create_user


async def _signup(client, email="New.Person@Example.com", password="hunter22"):
    return await client.post(
        "/api/auth/signup", json={"name": "New Person", "email": email, "password": password}
    )


async def test_signup_creates_unverified_user_and_emails_code(client, email_task):
    response = await _signup(client)

    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "new.person@example.com"
    assert body["is_verified"] is False
    assert body["role"] == "user"

    email_task.delay.assert_called_once()
    email, name, code = email_task.delay.call_args.args
    assert (email, name) == ("new.person@example.com", "New Person")
    assert len(code) == 6 and code.isdigit()


async def test_duplicate_signup_is_rejected(client, db):
    await create_user(db, email="taken@example.com")

    response = await _signup(client, email="TAKEN@example.com")

    assert response.status_code == 400
    assert response.json()["error"] == "User already exists"


async def test_signup_validates_payload(client):
    response = await _signup(client, password="123")

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
    assert response.json()["details"]


async def test_check_user(client, db):
    await create_user(db, email="known@example.com")

    known = await client.post("/api/auth/check-user", json={"email": "Known@example.com"})
    unknown = await client.post("/api/auth/check-user", json={"email": "nobody@example.com"})

    assert known.json() == {"exists": True}
    assert unknown.json() == {"exists": False}


async def test_login_issues_token_and_cookie(client, db):
    await create_user(db, email="login@example.com", password="correct-horse")

    response = await client.post(
        "/api/auth/login", json={"email": "login@example.com", "password": "correct-horse"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "login@example.com"
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{get_settings().session_cookie_name}=")
    assert "httponly" in set_cookie.lower()

    me = await client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"


async def test_login_with_wrong_password(client, db):
    await create_user(db, email="login@example.com", password="correct-horse")

    response = await client.post(
        "/api/auth/login", json={"email": "login@example.com", "password": "battery-staple"}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"


async def test_logout_revokes_outstanding_tokens(client, db, investor):
    headers = auth_headers(investor)

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["error"] == "Session revoked"


async def test_garbage_token_is_rejected(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid session token"


async def test_verify_email_with_emailed_code(client, db, email_task):
    await _signup(client, email="verify@example.com")
    code = email_task.delay.call_args.args[2]

    wrong = "000000" if code != "000000" else "111111"
    response = await client.post(
        "/api/auth/verify-email", json={"email": "verify@example.com", "code": wrong}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid verification code"

    response = await client.post(
        "/api/auth/verify-email", json={"email": "verify@example.com", "code": code}
    )
    assert response.status_code == 200
    assert response.json()["is_verified"] is True

    user = await db.get(User, response.json()["id"])
    assert user.verification_secret is None

    response = await client.post(
        "/api/auth/verify-email", json={"email": "verify@example.com", "code": code}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Email already verified"


async def test_resend_verification_issues_new_code(client, email_task):
    await _signup(client, email="again@example.com")

    response = await client.post("/api/auth/resend-verification", json={"email": "again@example.com"})

    assert response.status_code == 200
    assert email_task.delay.call_count == 2

    response = await client.post("/api/auth/resend-verification", json={"email": "ghost@example.com"})
    assert response.status_code == 404
