"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# --- Default env for the test run
os.environ.setdefault("DATABASE_URL", "sqlite:///./gallery_admin_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("GALLERY_ENV", "test")

from gallery_admin.main import app  # noqa: E402
from gallery_admin.db import get_db  # noqa: E402
from gallery_admin.models import ActivityEvent, AuthSession, Category, Image, User, UserRole  # noqa: E402
from gallery_admin.utils.tokens import gen_token, hash_password  # noqa: E402

DB_PATH = Path("./gallery_admin_test.db")
TEST_PASSWORD = "correct-horse-battery"
# Minimum bcrypt cost keeps factories fast; checkpw reads the cost from the hash.
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD, rounds=4)


def _run_migrations() -> None:
    cfg = Config(str(Path(__file__).resolve().parents[1] / "alembic.ini"))
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "alembic"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Reset the file DB at session start
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    future=True,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False,
                                   future=True, expire_on_commit=False)

# --- (2) Build the schema through Alembic only
_run_migrations()


class FakeClock:
    """Injectable clock for window tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 14, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_session() -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session
    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(
        *,
        role: UserRole = UserRole.EDITOR,
        email: str | None = None,
        is_active: bool = True,
    ) -> User:
        user = User(
            email=email or f"{role.value.lower()}-{uuid4().hex[:8]}@example.com",
            name=f"{role.value.title()} User",
            role=role,
            is_active=is_active,
            password_hash=TEST_PASSWORD_HASH,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _factory


@pytest.fixture
def make_headers(db_session: Session) -> Callable[[User], dict[str, str]]:
    """Issue a live bearer session for ``user`` without going through /auth/login."""

    def _factory(user: User, *, expires_in: timedelta = timedelta(hours=1)) -> dict[str, str]:
        raw, prefix, token_hash = gen_token()
        db_session.add(
            AuthSession(
                prefix=prefix,
                token_hash=token_hash,
                user_id=user.id,
                expires_at=datetime.now(tz=UTC) + expires_in,
            )
        )
        db_session.commit()
        return {"Authorization": f"Bearer {raw}"}

    return _factory


@pytest.fixture
def admin_user(make_user: Callable[..., User]) -> User:
    return make_user(role=UserRole.ADMIN)


@pytest.fixture
def editor_user(make_user: Callable[..., User]) -> User:
    return make_user(role=UserRole.EDITOR)


@pytest.fixture
def admin_headers(make_headers, admin_user: User) -> dict[str, str]:
    return make_headers(admin_user)


@pytest.fixture
def editor_headers(make_headers, editor_user: User) -> dict[str, str]:
    return make_headers(editor_user)


@pytest.fixture
def make_category(db_session: Session) -> Callable[..., Category]:
    def _factory(name: str | None = None) -> Category:
        category = Category(name=name or f"category-{uuid4().hex[:8]}")
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _factory


@pytest.fixture
def make_image(db_session: Session, make_category) -> Callable[..., Image]:
    def _factory(uploader: User, *, title: str = "Sunset", category: Category | None = None) -> Image:
        category = category or make_category()
        key = uuid4().hex[:8]
        image = Image(
            title=title,
            category_id=category.id,
            uploaded_by_id=uploader.id,
            storage_key=f"test/{key}.jpg",
            thumbnail_url=f"https://img.example.com/{key}_thumb.jpg",
            original_url=f"https://img.example.com/{key}.jpg",
            file_size=1024,
        )
        db_session.add(image)
        db_session.commit()
        db_session.refresh(image)
        return image

    return _factory


@pytest.fixture
def make_event(db_session: Session) -> Callable[..., ActivityEvent]:
    """Insert an activity row directly, bypassing the recorder and its checks."""

    def _factory(
        actor: User,
        action: str,
        created_at: datetime,
        *,
        details: dict | None = None,
        subject: Image | None = None,
    ) -> ActivityEvent:
        event = ActivityEvent(
            action=action,
            details=details,
            actor_id=actor.id,
            subject_id=subject.id if subject is not None else None,
            created_at=created_at,
        )
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _factory
