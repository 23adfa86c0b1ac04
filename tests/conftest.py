import os
import sys
import tempfile
import threading
from pathlib import Path
from types import SimpleNamespace

# Configure the app before anything imports core.config
_test_tmp_dir = tempfile.mkdtemp(prefix="rolegate_test_")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_test_tmp_dir}/rolegate.db")
os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-do-not-use-in-production")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-do-not-use-in-production")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("SMTP_HOST", "")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")

ROOT = Path(__file__).resolve().parent.parent
BACKEND = ROOT / "backend"
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import models  # noqa: E402,F401
from auth.credentials import DEFAULT_ROLE_KEY  # noqa: E402
from core.security import create_access_token, hash_password  # noqa: E402
from database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from models.otp import OtpChallenge  # noqa: E402
from models.role import Defaults, Module, Permission, Role, module_slug, role_slug  # noqa: E402
from models.user import User  # noqa: E402
from models.visitor import Visitor  # noqa: E402
from notifications.mailer import outbox  # noqa: E402

KNOWN_VISITOR = "0b7e4a2c-6f1d-4c39-9a55-2f8d3e1c7a10"
STRANGE_VISITOR = "5d2c9e81-3b4a-4f67-8e12-9c0a7b6d4e53"
PASSWORD = "Secret1!"


class RecordingTransport:
    """Collects outbound mail instead of delivering it."""

    def __init__(self):
        self.sent = []
        self._lock = threading.Lock()

    def send(self, message):
        with self._lock:
            self.sent.append(message)

    def messages(self):
        outbox.join()
        with self._lock:
            return list(self.sent)

    def subjects(self):
        return [m.subject for m in self.messages()]


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def mail():
    previous = outbox.transport
    recorder = RecordingTransport()
    outbox.transport = recorder
    yield recorder
    outbox.join()
    outbox.transport = previous


@pytest.fixture(autouse=True)
def seed(schema):
    """System modules, an all-powerful Admin role, a bare Member default role, two visitors."""
    db = SessionLocal()
    try:
        modules = []
        for name in ("Users", "Roles", "Modules"):
            module = Module(name=name, slug=module_slug(name))
            db.add(module)
            modules.append(module)
        admin = Role(name="Admin", slug=role_slug("Admin"))
        member = Role(name="Member", slug=role_slug("Member"))
        db.add_all([admin, member])
        db.flush()

        for position, module in enumerate(modules):
            db.add(Permission(role_id=admin.id, module_id=module.id, position=position,
                              can_get=True, can_post=True, can_put=True, can_delete=True))
        db.add(Defaults(prior=DEFAULT_ROLE_KEY, role_id=member.id))
        db.add(Visitor(id=KNOWN_VISITOR, device="Firefox on Linux", city="Lisbon", country="Portugal"))
        db.add(Visitor(id=STRANGE_VISITOR, device="Chrome on Windows", city="Oslo", country="Norway"))
        db.commit()

        yield SimpleNamespace(
            admin_role_id=admin.id,
            admin_role_uid=admin.uid,
            member_role_id=member.id,
            member_role_uid=member.uid,
            module_ids={m.slug: m.id for m in modules},
        )
    finally:
        db.close()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Not entered as a context manager: the housekeeping loops stay off.
    return TestClient(app)


def make_user(email, *, password=PASSWORD, username="tester", role_id=None,
              active=True, suspend=False, visitors=(KNOWN_VISITOR,)):
    """Insert an account directly and return a detached snapshot of it."""
    db = SessionLocal()
    try:
        if role_id is None:
            role_id = db.query(Defaults).filter(Defaults.prior == DEFAULT_ROLE_KEY).one().role_id
        user = User(
            email=email,
            username=username,
            password_hash=hash_password(password),
            role_id=role_id,
            active=active,
            suspend=suspend,
        )
        for visitor_id in visitors:
            user.visitors.append(db.get(Visitor, visitor_id))
        db.add(user)
        db.commit()
        return SimpleNamespace(id=user.id, uid=user.uid, email=user.email, role_id=user.role_id)
    finally:
        db.close()


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role_id)}"}


def otp_code(otp_id):
    db = SessionLocal()
    try:
        return db.query(OtpChallenge).filter(OtpChallenge.otp_id == otp_id).one().otp_code
    finally:
        db.close()


def load_user(email):
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user is not None:
            db.expunge(user)
        return user
    finally:
        db.close()
