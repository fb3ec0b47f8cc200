from pathlib import Path

from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / ".env.test"
load_dotenv(env_file)

import uuid  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import propcomms.db.base  # noqa: E402, F401
from propcomms.db.session import Base  # noqa: E402
from tests.utils.factories import create_user_factory  # noqa: E402


@pytest.fixture
def memory_engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(memory_engine):
    session_factory = sessionmaker(bind=memory_engine, autocommit=False, autoflush=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def enqueue_mock():
    """Keep message posts from reaching a real Celery broker."""
    with patch("propcomms.notifications.tasks.dispatch_message_notifications") as mock_task:
        mock_task.delay.return_value = MagicMock(id="task-id")
        yield mock_task


@pytest.fixture
def organization_id():
    return uuid.uuid4()


@pytest.fixture
def tenant(db_session, organization_id):
    return create_user_factory(
        db_session, organization_id=organization_id, role="tenant", name="Tina Tenant"
    )


@pytest.fixture
def manager(db_session, organization_id):
    return create_user_factory(
        db_session, organization_id=organization_id, role="Property Manager", name="Mo Manager"
    )


@pytest.fixture
def owner(db_session, organization_id):
    return create_user_factory(
        db_session, organization_id=organization_id, role="landlord", name="Olga Owner"
    )


@pytest.fixture
def admin(db_session, organization_id):
    return create_user_factory(
        db_session, organization_id=organization_id, role="admin", name="Ada Admin"
    )
