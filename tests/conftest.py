import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import nodeauth.main as main_module
from nodeauth.database import Base, get_db, init_db
from nodeauth.dependencies import (
    get_hardware_inspector,
    get_health_oracle,
    get_signature_verifier,
    get_tier_oracle,
)
from nodeauth.main import app
from nodeauth.middleware.rate_limit import limiter
from nodeauth.services.signature_service import BitcoinMessageVerifier
from tests.test_utils import FakeHardwareInspector, FakeHealthOracle, FakeTierOracle


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def node():
    """Collaborators for a Cumulus node that meets its requirements, with a clean DOS state."""

    class Node:
        inspector = FakeHardwareInspector(cpu_threads=4, ram_gib=8)
        tier_oracle = FakeTierOracle(tier="basic", stake=1000)
        health_oracle = FakeHealthOracle()
        verifier = BitcoinMessageVerifier()

    return Node()


@pytest.fixture
def client(db_session, node):
    """Test client with the test database, fake node collaborators and no rate limiting."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_hardware_inspector] = lambda: node.inspector
    app.dependency_overrides[get_tier_oracle] = lambda: node.tier_oracle
    app.dependency_overrides[get_health_oracle] = lambda: node.health_oracle
    app.dependency_overrides[get_signature_verifier] = lambda: node.verifier

    limiter.enabled = False

    # Tables are created on the test database at startup, not the configured one
    original_engine = main_module.engine
    main_module.engine = db_session.get_bind()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.enabled = True
    main_module.engine = original_engine
