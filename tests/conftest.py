"""Test fixtures and configuration."""

import logging
import sys

import pytest
import pytest_asyncio
import structlog

from bankboeker.config import Settings
from bankboeker.database import create_engine, create_session_maker, init_db
from bankboeker.models import Account, AccountType

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# code, name, type, tax_category
CHART_OF_ACCOUNTS: list[tuple[str, str, AccountType, str | None]] = [
    ("1100", "Bank", AccountType.ASSET, None),
    ("1300", "Debiteuren", AccountType.ASSET, None),
    ("1310", "Tussenrekening ontvangsten", AccountType.ASSET, None),
    ("1450", "Te vorderen BTW", AccountType.ASSET, None),
    ("1530", "Af te dragen BTW", AccountType.LIABILITY, None),
    ("1600", "Crediteuren", AccountType.LIABILITY, None),
    ("2300", "Nog te ontvangen inkoopfacturen", AccountType.LIABILITY, None),
    ("1800", "Privé opnames", AccountType.EQUITY, None),
    ("4200", "Afschrijvingen inventaris", AccountType.EXPENSE, None),
    ("4300", "Reiskosten", AccountType.EXPENSE, None),
    ("4310", "Brandstofkosten", AccountType.EXPENSE, "Autokosten"),
    ("4360", "Representatiekosten", AccountType.EXPENSE, None),
    ("4520", "Telefoon en internet", AccountType.EXPENSE, None),
    ("4530", "Software en abonnementen", AccountType.EXPENSE, None),
    ("4600", "Verzekeringen", AccountType.EXPENSE, None),
    ("4610", "Bankkosten", AccountType.EXPENSE, None),
    ("4700", "Algemene kosten", AccountType.EXPENSE, None),
    ("4800", "Kleine investeringen", AccountType.EXPENSE, None),
    ("4900", "Interne doorbelasting", AccountType.EXPENSE, None),
    ("8000", "Omzet", AccountType.REVENUE, None),
]


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


@pytest.fixture
def test_settings() -> Settings:
    """Settings without provider credentials: enrichment runs in simulation mode."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        tavily_api_key="",
        openrouter_api_key="",
        enrichment_timeout_seconds=0.5,
    )


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(TEST_DATABASE_URL)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return create_session_maker(db_engine)


@pytest_asyncio.fixture
async def db(session_maker):
    """Session for arranging and asserting test data."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def chart(db) -> dict[str, Account]:
    """Seed a small Dutch chart of accounts, keyed by account code."""
    accounts = {
        code: Account(code=code, name=name, type=account_type, tax_category=tax_category, is_active=True)
        for code, name, account_type, tax_category in CHART_OF_ACCOUNTS
    }
    db.add_all(accounts.values())
    await db.commit()
    return accounts
