from datetime import timedelta

from sqlmodel import select

from blazehub.db.models.base import utcnow
from blazehub.db.models.password_reset_tokens import PasswordResetToken
from blazehub.db.models.security_audit_logs import SecurityAuditLog
from blazehub.db.models.users import Account, User

from conftest import PASSWORD

NEW_PASSWORD = "Fresh@4567"


def _user(db, email):
    db.expire_all()
    return db.exec(select(User).where(User.email == email)).first()


# -----------------------------
# Register / verify
# -----------------------------
def test_register_sends_otp_and_verify(client, db, mailer):
    resp = client.post("/api/auth/register", json={"name": "Alice", "email": "alice@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json() == {"user": {"name": "Alice", "email": "alice@example.com"}}

    user = _user(db, "alice@example.com")
    assert user.email_verified is None
    assert len(user.verification_code) == 6
    assert user.verification_expires > utcnow() + timedelta(minutes=9)
    assert mailer.sent[0]["to"] == "alice@example.com"
    assert user.verification_code in mailer.sent[0]["html"]

    resp = client.post("/api/auth/verify", json={"email": "alice@example.com", "otp": user.verification_code})
    assert resp.status_code == 200

    user = _user(db, "alice@example.com")
    assert user.email_verified is not None
    assert user.verification_code is None

    resp = client.post("/api/auth/verify", json={"email": "alice@example.com", "otp": "000000"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Email already verified"}


def test_register_rejects_weak_password(client):
    resp = client.post("/api/auth/register", json={"name": "Bob", "email": "bob@example.com", "password": "weakpassword"})
    assert resp.status_code == 400
    assert "uppercase" in resp.json()["error"]


def test_register_existing_verified_email(client, make_user):
    make_user(email="taken@example.com")
    resp = client.post("/api/auth/register", json={"name": "Bob", "email": "taken@example.com", "password": PASSWORD})
    assert resp.status_code == 400


def test_register_replaces_unverified_account(client, db, make_user):
    make_user(email="again@example.com", name="Old", verified=False)
    resp = client.post("/api/auth/register", json={"name": "New", "email": "again@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    user = _user(db, "again@example.com")
    assert user.name == "New"


def test_register_mail_failure_removes_user(client, db, mailer):
    mailer.fail = True
    resp = client.post("/api/auth/register", json={"name": "Carl", "email": "carl@example.com", "password": PASSWORD})
    assert resp.status_code == 500
    assert _user(db, "carl@example.com") is None


def test_register_without_mail_provider_keeps_unverified_account(client, db, make_user, mailer):
    make_user(email="gina@example.com", name="Old", verified=False)
    mailer.api_key = None

    resp = client.post("/api/auth/register", json={"name": "New", "email": "gina@example.com", "password": PASSWORD})
    assert resp.status_code == 500
    assert _user(db, "gina@example.com").name == "Old"


def test_register_mail_failure_keeps_previous_unverified_account(client, db, make_user, mailer):
    make_user(email="hugo@example.com", name="Old", verified=False)
    mailer.fail = True

    resp = client.post("/api/auth/register", json={"name": "New", "email": "hugo@example.com", "password": PASSWORD})
    assert resp.status_code == 500
    assert _user(db, "hugo@example.com").name == "Old"


def test_register_replacement_drops_reset_tokens_and_accounts(client, db, make_user):
    old = make_user(email="ines@example.com", verified=False)
    old_id = old.id
    db.add(PasswordResetToken(token="o" * 64, user_id=old_id, expires=utcnow() + timedelta(hours=1)))
    db.add(Account(user_id=old_id, provider="github", provider_account_id="gh-9", access_token="gho_old"))
    db.commit()

    resp = client.post("/api/auth/register", json={"name": "New", "email": "ines@example.com", "password": PASSWORD})
    assert resp.status_code == 200

    db.expire_all()
    assert db.exec(select(PasswordResetToken).where(PasswordResetToken.user_id == old_id)).all() == []
    assert db.exec(select(Account).where(Account.user_id == old_id)).all() == []
    assert client.post("/api/auth/reset-password", json={"token": "o" * 64, "password": NEW_PASSWORD}).status_code == 400


def test_verify_errors(client, db, make_user):
    assert client.post("/api/auth/verify", json={"email": "x@example.com"}).status_code == 400
    assert client.post("/api/auth/verify", json={"email": "ghost@example.com", "otp": "123456"}).status_code == 404

    user = make_user(email="late@example.com", verified=False)
    user.verification_code = "123456"
    user.verification_expires = utcnow() - timedelta(minutes=1)
    db.add(user)
    db.commit()

    resp = client.post("/api/auth/verify", json={"email": "late@example.com", "otp": "123456"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Verification code has expired"}


# -----------------------------
# Sign-in / session
# -----------------------------
def test_sign_in_sets_cookie_session(client, db, make_user):
    make_user(email="dana@example.com")
    resp = client.post("/api/auth/sign-in", json={"email": "dana@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["tokenType"] == "bearer"
    assert body["expiresIn"] == 30 * 24 * 3600
    assert "session_token" in resp.cookies

    # le cookie suffit pour les appels suivants
    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "dana@example.com"
    assert _user(db, "dana@example.com").last_login is not None

    assert client.post("/api/auth/sign-out").status_code == 204
    assert client.get("/api/auth/me").status_code == 401


def test_sign_in_failures_are_audited(client, db, make_user):
    make_user(email="erin@example.com")
    make_user(email="fresh@example.com", verified=False)

    resp = client.post("/api/auth/sign-in", json={"email": "erin@example.com", "password": "Wrong@1234"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}
    assert client.post("/api/auth/sign-in", json={"email": "nobody@example.com", "password": PASSWORD}).status_code == 401
    assert client.post("/api/auth/sign-in", json={"email": "fresh@example.com", "password": PASSWORD}).status_code == 403

    db.expire_all()
    events = {e.event for e in db.exec(select(SecurityAuditLog)).all()}
    assert events == {
        "LOGIN_ATTEMPT_INVALID_PASSWORD",
        "LOGIN_ATTEMPT_USER_NOT_FOUND",
        "LOGIN_ATTEMPT_UNVERIFIED",
    }


# -----------------------------
# Mot de passe oublié / reset
# -----------------------------
def test_forgot_password_unknown_email_creates_nothing(client, db, mailer):
    resp = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert resp.status_code == 404
    assert db.exec(select(PasswordResetToken)).all() == []
    assert mailer.sent == []


def test_forgot_password_invalid_shape(client):
    assert client.post("/api/auth/forgot-password", json={"email": "not-an-email"}).status_code == 400
    assert client.post("/api/auth/forgot-password", json={}).status_code == 400


def test_forgot_then_reset_password(client, db, make_user, mailer):
    user = make_user(email="gina@example.com")
    resp = client.post("/api/auth/forgot-password", json={"email": "gina@example.com"})
    assert resp.status_code == 200

    db.expire_all()
    row = db.exec(select(PasswordResetToken).where(PasswordResetToken.user_id == user.id)).one()
    assert len(row.token) == 64
    assert timedelta(hours=23) < row.expires - utcnow() <= timedelta(hours=24)
    assert f"token={row.token}" in mailer.sent[0]["html"]

    resp = client.post("/api/auth/reset-password", json={"token": row.token, "password": NEW_PASSWORD})
    assert resp.status_code == 200

    db.expire_all()
    assert db.exec(select(PasswordResetToken)).all() == []
    assert client.post("/api/auth/sign-in", json={"email": "gina@example.com", "password": PASSWORD}).status_code == 401
    assert client.post("/api/auth/sign-in", json={"email": "gina@example.com", "password": NEW_PASSWORD}).status_code == 200


def test_reset_password_rejections(client, db, make_user):
    user = make_user()
    db.add(PasswordResetToken(token="e" * 64, user_id=user.id, expires=utcnow() - timedelta(seconds=1)))
    db.add(PasswordResetToken(token="v" * 64, user_id=user.id, expires=utcnow() + timedelta(hours=1)))
    db.commit()

    assert client.post("/api/auth/reset-password", json={"token": "nope", "password": NEW_PASSWORD}).status_code == 400
    assert client.post("/api/auth/reset-password", json={"token": "v" * 64, "password": "weak"}).status_code == 400

    resp = client.post("/api/auth/reset-password", json={"token": "e" * 64, "password": NEW_PASSWORD})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Reset token has expired"}

    db.expire_all()
    tokens = [t.token for t in db.exec(select(PasswordResetToken)).all()]
    assert tokens == ["v" * 64]


# -----------------------------
# GitHub
# -----------------------------
def test_link_github_account(client, make_user, auth_headers):
    user = make_user()
    headers = auth_headers(user)
    payload = {"providerAccountId": "gh-1", "accessToken": "gho_abc"}

    assert client.post("/api/auth/github/link", json=payload, headers=headers).status_code == 204
    assert client.post("/api/auth/github/link", json=payload, headers=headers).status_code == 204
    assert client.get("/api/auth/me", headers=headers).json()["githubLinked"] is True
