from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from blazehub.core.config import Settings
from blazehub.db.models.base import utcnow
from blazehub.db.models.projects import Project, ProjectCategory
from blazehub.db.models.users import User, UserRole
from blazehub.main import create_app
from blazehub.security.password import hash_password
from blazehub.security.tokens import create_session_token
from blazehub.storage.local import LocalStorage
from blazehub.utils.email import EmailDeliveryError, Mailer

PASSWORD = "Secret@123"


class RecordingMailer(Mailer):
    """Mailer de test : garde les e-mails au lieu de les envoyer."""

    def __init__(self):
        super().__init__(api_key="re_test", sender="BlazeHub <test@blazehub.dev>", app_url="http://front.test")
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    def send(self, *, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise EmailDeliveryError("provider down")
        self.sent.append({"to": to, "subject": subject, "html": html})


class GitHubStub:
    """Faux GitHub : réponses par chemin, requêtes enregistrées."""

    def __init__(self):
        self.routes: Dict[str, Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(request.url.path, (404, {"message": "Not Found"}))
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        ENV="test",
        LOG_LEVEL="WARNING",
        DATABASE_URL="sqlite://",
        JWT_SECRET_KEY="test-secret",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        MAX_UPLOAD_MB=1,
        RESEND_API_KEY="re_test",
        GITHUB_TOKEN="server-token",
        PAYMENTS_DEMO_MODE=True,
    )


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def github_stub() -> GitHubStub:
    return GitHubStub()


@pytest.fixture
def storage(settings) -> LocalStorage:
    return LocalStorage(settings.UPLOAD_DIR, max_bytes=settings.max_upload_bytes)


@pytest.fixture
def app(settings, storage, mailer, github_stub):
    return create_app(
        settings,
        storage=storage,
        mailer=mailer,
        github_transport=httpx.MockTransport(github_stub),
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    """Session directe sur la base de l'app (tables créées par le lifespan)."""
    with Session(app.state.engine) as session:
        yield session


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(
        *,
        email: Optional[str] = None,
        name: str = "Tester",
        role: UserRole = UserRole.USER,
        coin: int = 0,
        verified: bool = True,
        password: str = PASSWORD,
    ) -> User:
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            hashed_password=hash_password(password),
            role=role,
            coin=coin,
            email_verified=utcnow() if verified else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_project(db) -> Callable[..., Project]:
    def _make(owner: User, *, name: str = "Demo", category: ProjectCategory = ProjectCategory.FREE,
              price: Optional[int] = None, github_repo: Optional[str] = None) -> Project:
        project = Project(
            name=name,
            description=f"{name} description",
            category=category,
            price=price,
            github_repo=github_repo,
            owner_id=owner.id,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make


@pytest.fixture
def auth_headers(settings) -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_session_token(
            user_id=user.id, email=user.email, role=user.role.value, settings=settings.jwt
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
