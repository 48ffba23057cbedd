"""Pytest fixtures for testing"""

import random
import pytest
from datetime import datetime
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sandbox_bank.api.main import create_app
from sandbox_bank.domain.models import AccountBalances
from sandbox_bank.domain.rules import derive_rules
from sandbox_bank.infrastructure.database.models import Base, DBAccount
from sandbox_bank.infrastructure.database.repositories import AccountRepository
from sandbox_bank.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so generated data is reproducible"""
    return random.Random(1234)


@pytest.fixture
def as_of() -> datetime:
    """Fixed generation time: mid-afternoon, mid-month"""
    return datetime(2024, 6, 15, 14, 30)


@pytest.fixture
def funded_account(db: Session) -> DBAccount:
    """Account with $1,000 checking and $500 savings"""
    account = AccountRepository(db).create_account(
        user_id="user_funded",
        first_name="Jane",
        last_name="Doe",
        balances=AccountBalances(checking=1000.0, savings=500.0, credit=0.0),
        rules=derive_rules(1500.0),
        creation_date=datetime(2024, 1, 1),
        include_transaction_history=False,
    )
    db.commit()
    return account
