import pytest
from werkzeug.security import generate_password_hash

from app.backoffice import create_app
from app.backoffice import auth as auth_module
from app.backoffice.constants import Profile
from app.backoffice.db import session_scope
from app.backoffice.mailer import Mailer
from app.backoffice.models import Base, City, Customer, State
from app.backoffice.security import Principal, create_token
from app.backoffice.storage import Storage

ADMIN_ID = 1
MARIA_ID = 2
CITY_ID = 7


class RecordingStorage(Storage):
    def __init__(self) -> None:
        self.uploads: list[tuple[str, bytes, str | None]] = []

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        self.uploads.append((key, data, content_type))

    def url_for(self, key: str) -> str:
        return f"https://bucket.example/{key}"


class RecordingMailer(Mailer):
    def __init__(self) -> None:
        super().__init__(sender="test@example.com")
        self.sent = []

    def send(self, message) -> None:
        self.sent.append(message)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("JWT_SECRET", "test-jwt-secret-" + "0123456789abcdef" * 4)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("MAIL_BACKEND", "log")
    for k in ("S3_ENDPOINT", "S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"):
        monkeypatch.delenv(k, raising=False)
    auth_module._login_attempts.clear()

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    with session_scope(app) as s:
        mg = State(id=1, name="Minas Gerais")
        s.add(mg)
        s.add_all(
            [
                City(id=CITY_ID, name="Uberlândia", state_id=1),
                City(id=8, name="Belo Horizonte", state_id=1),
            ]
        )
        admin = Customer(id=ADMIN_ID, name="Administrator", email="admin@example.com", password_hash=generate_password_hash("pw"))
        admin.add_profile(Profile.CLIENT)
        admin.add_profile(Profile.ADMIN)
        maria = Customer(id=MARIA_ID, name="Maria Silva", email="maria@example.com", password_hash=generate_password_hash("pw"))
        maria.add_profile(Profile.CLIENT)
        s.add_all([admin, maria])

    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin_principal():
    return Principal(id=ADMIN_ID, email="admin@example.com", roles=frozenset({Profile.ADMIN, Profile.CLIENT}))


@pytest.fixture()
def maria_principal():
    return Principal(id=MARIA_ID, email="maria@example.com", roles=frozenset({Profile.CLIENT}))


def auth_headers(app, email: str) -> dict[str, str]:
    with app.app_context():
        return {"Authorization": f"Bearer {create_token(email)}"}


def registration_payload(**overrides) -> dict:
    payload = {
        "name": "Ana Souza",
        "email": "ana@x.com",
        "tax_id": "52998224725",
        "customer_type": 0,
        "password": "secret",
        "phone1": "111",
        "phone2": None,
        "phone3": None,
        "street": "Rua A",
        "number": "10",
        "complement": None,
        "district": "Centro",
        "postal_code": "38400000",
        "city_id": CITY_ID,
    }
    payload.update(overrides)
    return payload
