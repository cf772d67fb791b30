"""Pytest configuration: in-memory database, test settings and API client."""

import os
from datetime import datetime, timezone
from decimal import Decimal

# Set test environment BEFORE any imports from ipe
# so the engine and settings pick it up
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-ipe-tests"
os.environ["LOCALE"] = "pt_BR"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from ipe.api.deps import get_clock  # noqa: E402
from ipe.main import app  # noqa: E402
from ipe.models import Base, Installment, Party, PaymentStatus, Property, Role, User  # noqa: E402
from ipe.services import SessionLocal, engine, get_db  # noqa: E402
from ipe.services.auth_service import CallerContext, TokenService, hash_password  # noqa: E402
from ipe.services.config import Settings, get_settings  # noqa: E402
from ipe.services.file_store import FileStore, FileUpload  # noqa: E402
from ipe.services.payable_service import PayableService  # noqa: E402

FIXED_NOW = datetime(2025, 3, 10, 12, 30, tzinfo=timezone.utc)
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF\n"


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite:///:memory:",
        jwt_secret="test-secret-key-for-ipe-tests",
        upload_dir=str(tmp_path / "uploads"),
        log_file=str(tmp_path / "logs" / "server.log"),
    )


@pytest.fixture
def db_session():
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def file_store(db_session, test_settings) -> FileStore:
    return FileStore(db_session, test_settings.upload_dir)


@pytest.fixture
def owner_user(db_session) -> User:
    user = User(
        email="proprietario@teste.com",
        password_hash=hash_password("senha123"),
        name="Carlos Eduardo Silva",
        role=Role.OWNER,
        party=Party(
            kind=Role.OWNER,
            name="Carlos Eduardo Silva",
            email="proprietario@teste.com",
            cpf="123.456.789-00",
        ),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def buyer_user(db_session) -> User:
    user = User(
        email="comprador@teste.com",
        password_hash=hash_password("senha123"),
        name="Ana Paula Oliveira",
        role=Role.BUYER,
        party=Party(
            kind=Role.BUYER,
            name="Ana Paula Oliveira",
            email="comprador@teste.com",
            cpf="987.654.321-00",
        ),
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def owner(owner_user) -> CallerContext:
    return CallerContext(caller_id=owner_user.id, role=Role.OWNER, email=owner_user.email)


@pytest.fixture
def buyer(buyer_user) -> CallerContext:
    return CallerContext(caller_id=buyer_user.id, role=Role.BUYER, email=buyer_user.email)


@pytest.fixture
def sample_property(db_session) -> Property:
    prop = Property(
        name="Casa no Centro",
        address="Rua das Flores, 123 - Centro - São Paulo/SP",
        sale_value=Decimal("450000.00"),
        rent_value=Decimal("2500.00"),
    )
    db_session.add(prop)
    db_session.commit()
    return prop


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def payables(db_session, file_store) -> PayableService:
    return PayableService(db_session, file_store, clock=fixed_clock)


@pytest.fixture
def installment(db_session, sample_property) -> Installment:
    record = Installment(
        property_id=sample_property.id,
        number=1,
        due_date=datetime(2025, 3, 15).date(),
        amount=Decimal("5625.00"),
        status=PaymentStatus.PENDENTE,
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def pdf_upload() -> FileUpload:
    return FileUpload(filename="comprovante.pdf", content=PDF_BYTES, content_type="application/pdf")


@pytest.fixture
def client(db_session, test_settings):
    """TestClient bound to the test session, settings and fixed clock."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def token_service(test_settings) -> TokenService:
    return TokenService(test_settings)


@pytest.fixture
def owner_headers(owner_user, token_service) -> dict:
    return {"Authorization": f"Bearer {token_service.issue(owner_user)}"}


@pytest.fixture
def buyer_headers(buyer_user, token_service) -> dict:
    return {"Authorization": f"Bearer {token_service.issue(buyer_user)}"}
