# File: tests/conftest.py
"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from salespilot.core.db import Base
from salespilot.core.events import ChangeNotifier
from salespilot.core.sql_store import SqlAlchemyStore

# Import all models so their tables are registered on Base.metadata
from salespilot.models.customer_fee_rate import CustomerFeeRate  # noqa: F401
from salespilot.models.enums import EventTopic
from salespilot.models.metric_override import MetricOverride  # noqa: F401
from salespilot.models.sales_document import SalesDocument  # noqa: F401
from salespilot.models.transfer import Transfer  # noqa: F401
from salespilot.reconciliation.documents import DocumentService, FeeRateService
from salespilot.reconciliation.overrides import OverrideService
from salespilot.reconciliation.service import MetricsService
from salespilot.reconciliation.transfers import TransferLedger, TransferPropagator
from tests.fakes import InMemoryStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def store() -> InMemoryStore:
    """Fresh in-memory store for each test."""
    return InMemoryStore()


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def events(notifier: ChangeNotifier) -> list:
    """Every event published during the test, in order."""
    received = []
    for topic in EventTopic:
        notifier.subscribe(topic, received.append)
    return received


@pytest.fixture
def propagator(store: InMemoryStore) -> TransferPropagator:
    return TransferPropagator(store)


@pytest.fixture
def override_service(store, notifier, propagator) -> OverrideService:
    return OverrideService(store, notifier, propagator)


@pytest.fixture
def document_service(store, notifier) -> DocumentService:
    return DocumentService(store, store, notifier)


@pytest.fixture
def fee_rate_service(store, notifier) -> FeeRateService:
    return FeeRateService(store, store, notifier)


@pytest.fixture
def metrics_service(store, override_service) -> MetricsService:
    return MetricsService(store, store, override_service)


@pytest.fixture
def ledger(store: InMemoryStore) -> TransferLedger:
    return TransferLedger(store)


@pytest_asyncio.fixture(scope="function")
async def sql_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(sql_engine) -> SqlAlchemyStore:
    """SqlAlchemyStore bound to the in-memory SQLite engine."""
    session_maker = async_sessionmaker(sql_engine, class_=AsyncSession, expire_on_commit=False)
    return SqlAlchemyStore(session_maker)
