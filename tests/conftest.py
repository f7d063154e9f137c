"""Shared fixtures.

API tests run the real application against a throwaway SQLite file; store
tests open their own async session on a separate file.
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.exceptions import EmailDeliveryError
from storefront.infrastructure.config import Settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.email_client import EmailMessage
from storefront.main import create_app

ADMIN_API_KEY = "test-admin-key"
ADMIN_EMAIL = "team@example.com"


class FakeEmailClient:
    """Records messages instead of calling the provider."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> str | None:
        if self.fail:
            raise EmailDeliveryError("provider unavailable", 503)
        self.sent.append(message)
        return f"<message-{len(self.sent)}@test>"


def sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a fresh SQLite database."""
    return Settings(
        database_url=sqlite_url(tmp_path / "api.db"),
        create_tables_on_startup=True,
        admin_api_key=ADMIN_API_KEY,
        brevo_api_key=None,
        brevo_admin_email=ADMIN_EMAIL,
        log_json=False,
    )


@pytest.fixture
def email_client() -> FakeEmailClient:
    """Recording email client."""
    return FakeEmailClient()


@pytest.fixture
def client(test_settings: Settings, email_client: FakeEmailClient) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running."""
    app = create_app(test_settings)
    app.state.email_client = email_client
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Get admin authentication headers."""
    return {"Authorization": f"Bearer {ADMIN_API_KEY}"}


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Database with every table created."""
    db = Database(sqlite_url(tmp_path / "store.db"))
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database."""
    async with database.session() as db_session:
        yield db_session
