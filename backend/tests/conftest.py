"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from app.database import Base
from app.dependencies import get_db, get_today
from app.main import app
from app.models import (
    Account,
    AccountType,
    AppSettings,
    Frequency,
    RecurringTransaction,
    RecurringTransfer,
    Transaction,
)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_account(db_session, name="Checking", initial_balance="1000.00", initial_balance_date=date(2024, 1, 1),
                 currency="USD", account_type=AccountType.checking):
    account = Account(
        id=str(uuid.uuid4()),
        name=name,
        account_type=account_type,
        currency=currency,
        initial_balance=Decimal(initial_balance),
        initial_balance_date=initial_balance_date,
        is_active=True,
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


def make_recurring(db_session, account, description="Rent", amount="-50.00", frequency=Frequency.monthly,
                   start_date=date(2024, 1, 1), **pattern):
    recurring = RecurringTransaction(
        id=str(uuid.uuid4()),
        account_id=account.id,
        description=description,
        amount=Decimal(amount),
        currency=account.currency,
        frequency=frequency,
        interval=pattern.pop("interval", 1),
        start_date=start_date,
        next_occurrence=start_date,
        is_active=True,
        **pattern,
    )
    db_session.add(recurring)
    db_session.commit()
    db_session.refresh(recurring)
    return recurring


def make_transaction(db_session, account, txn_date, amount, description="Coffee", **fields):
    txn = Transaction(
        id=str(uuid.uuid4()),
        account_id=account.id,
        date=txn_date,
        amount=Decimal(amount),
        currency=account.currency,
        description=description,
        **fields,
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn


@pytest.fixture
def sample_account(db_session):
    """Checking account opened Jan 1 2024 with 1000.00."""
    return make_account(db_session)


@pytest.fixture
def savings_account(db_session):
    return make_account(db_session, name="Savings", initial_balance="500.00", account_type=AccountType.savings)


@pytest.fixture
def monthly_series(db_session, sample_account):
    """-50.00 USD on the 1st of every month from Jan 1 2024."""
    return make_recurring(db_session, sample_account, day_of_month=1)


@pytest.fixture
def netflix_series(db_session, sample_account):
    """-15.99 USD Netflix charge on the 15th from Jan 15 2024."""
    return make_recurring(
        db_session, sample_account,
        description="Netflix",
        amount="-15.99",
        start_date=date(2024, 1, 15),
        day_of_month=15,
    )


@pytest.fixture
def monthly_transfer(db_session, sample_account, savings_account):
    """200.00 from checking to savings on the 10th from Jan 10 2024."""
    transfer = RecurringTransfer(
        id=str(uuid.uuid4()),
        source_account_id=sample_account.id,
        destination_account_id=savings_account.id,
        description="Savings sweep",
        amount=Decimal("200.00"),
        currency="USD",
        frequency=Frequency.monthly,
        interval=1,
        day_of_month=10,
        start_date=date(2024, 1, 10),
        next_occurrence=date(2024, 1, 10),
        is_active=True,
    )
    db_session.add(transfer)
    db_session.commit()
    db_session.refresh(transfer)
    return transfer


@pytest.fixture
def auto_realize_enabled(db_session):
    """Persisted settings with auto-realize on and a 30 day lookback."""
    app_settings = AppSettings(id=1, auto_realize_past_due_items=True, past_due_lookback_days=30)
    db_session.add(app_settings)
    db_session.commit()
    return app_settings


@pytest.fixture
def fixed_today(client):
    """Pin the API's notion of today to 2024-03-15."""
    today = date(2024, 3, 15)
    app.dependency_overrides[get_today] = lambda: today
    return today
