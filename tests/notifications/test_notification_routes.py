"""
Route tests for the notification inbox.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from propcomms.auth.dependencies import get_current_caller
from propcomms.auth.identity import Caller
from propcomms.core.roles import Role
from propcomms.db.session import get_db
from propcomms.notifications.models.notification import NotificationChannel, NotificationStatus
from propcomms.notifications.repositories.notification_repository import NotificationRepository
from propcomms.notifications.routes.notifications import router
from tests.utils.factories import create_message_factory, create_thread_factory


@pytest.fixture
def manager_client(db_session, manager):
    caller = Caller(
        user_id=manager.id, organization_id=manager.organization_id, role=Role.MANAGER
    )
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_current_caller] = lambda: caller
    return TestClient(app)


@pytest.fixture
def inbox(db_session, tenant, manager):
    thread = create_thread_factory(db_session, [tenant, manager])
    repo = NotificationRepository(db_session)
    for body in ("first", "second"):
        message = create_message_factory(db_session, thread, tenant, body)
        repo.record(message.id, manager.id, NotificationChannel.IN_APP, NotificationStatus.UNREAD)
        repo.record(
            message.id, manager.id, NotificationChannel.EMAIL, NotificationStatus.FAILED, "down"
        )
    db_session.commit()


class TestNotificationRoutes:
    def test_lists_callers_notifications(self, manager_client, inbox):
        response = manager_client.get("/api/v1/notifications")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 4
        assert {n["channel"] for n in data["notifications"]} == {"in_app", "email"}

    def test_channel_filter(self, manager_client, inbox):
        response = manager_client.get("/api/v1/notifications?channel=email")

        data = response.json()
        assert data["total"] == 2
        assert all(n["status"] == "failed" for n in data["notifications"])

    def test_unread_count_without_redis(self, manager_client, inbox):
        with patch("propcomms.core.redis.redis_client", None):
            response = manager_client.get("/api/v1/notifications/unread-count")

        assert response.status_code == 200
        assert response.json() == {"unread_count": 2}

    def test_unread_count_served_from_cache(self, manager_client, inbox):
        redis = AsyncMock()
        redis.get.return_value = "7"

        with patch("propcomms.core.redis.redis_client", redis):
            response = manager_client.get("/api/v1/notifications/unread-count")

        assert response.json() == {"unread_count": 7}
        redis.setex.assert_not_awaited()

    def test_unread_count_populates_cache(self, manager_client, inbox, manager):
        redis = AsyncMock()
        redis.get.return_value = None

        with patch("propcomms.core.redis.redis_client", redis):
            response = manager_client.get("/api/v1/notifications/unread-count")

        assert response.json() == {"unread_count": 2}
        redis.setex.assert_awaited_once_with(f"notifications:unread:{manager.id}", 60, "2")

    def test_cache_failure_degrades_to_direct_count(self, manager_client, inbox):
        redis = AsyncMock()
        redis.get.side_effect = ConnectionError("redis down")
        redis.setex.side_effect = ConnectionError("redis down")

        with patch("propcomms.core.redis.redis_client", redis):
            response = manager_client.get("/api/v1/notifications/unread-count")

        assert response.json() == {"unread_count": 2}
