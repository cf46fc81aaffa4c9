"""PostgreSQL container with the schema migrated to head."""

from collections.abc import AsyncGenerator, Iterator
from decimal import Decimal
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer

from collection_service.application import (
    AuditRecorder,
    MerchantService,
    RegisterMerchantCommand,
    RegisteredMerchant,
    UnitOfWork,
)
from collection_service.domain.models import Currency
from collection_service.infrastructure.database import Database


PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="module")
def database_url() -> Iterator[str]:
    """Start PostgreSQL and migrate it; runs outside the event loop since alembic's env starts its own."""
    with PostgresContainer("postgres:16-alpine", driver="asyncpg") as container:
        url = container.get_connection_url()
        config = Config(str(PROJECT_ROOT / "alembic.ini"))
        config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        config.set_main_option("sqlalchemy.url", url)
        command.upgrade(config, "head")
        yield url


@pytest.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    db = Database(database_url)
    yield db
    await db.close()


@pytest.fixture
def audit(database: Database) -> AuditRecorder:
    return AuditRecorder(database)


async def register_merchant(database: Database, first_name: str = "Ada") -> RegisteredMerchant:
    async with database.session() as session:
        return await MerchantService(UnitOfWork(session)).register(
            RegisterMerchantCommand(
                first_name=first_name,
                last_name="Obi",
                email=f"{first_name.lower()}@example.com",
                phone_number="+2348000000000",
            )
        )


async def set_available_balance(database: Database, merchant_id: str, currency: Currency, amount: Decimal) -> None:
    async with database.session() as session:
        await session.execute(
            text("""
                UPDATE merchant_balances SET available_balance = :amount
                WHERE merchant_id = :merchant_id AND currency = :currency
            """),
            {"amount": amount, "merchant_id": merchant_id, "currency": currency.value},
        )
        await session.commit()
