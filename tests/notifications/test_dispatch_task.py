"""
Tests for the dispatch_message_notifications Celery task, run eagerly.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.notifications.models.notification import Notification
from propcomms.notifications.services.dispatcher import NotificationDispatcher
from propcomms.notifications.tasks import dispatch_message_notifications
from tests.utils.factories import create_message_factory, create_thread_factory


@pytest.fixture
def task_session(db_session):
    with patch("propcomms.notifications.tasks.SessionLocal", return_value=db_session):
        yield db_session


class TestDispatchMessageNotificationsTask:
    def test_dispatches_to_thread_participants(self, task_session, tenant, manager, owner):
        thread = create_thread_factory(task_session, [tenant, manager, owner])
        message = create_message_factory(task_session, thread, tenant)
        message_id = message.id
        email_service = AsyncMock()
        email_service.send_email.return_value = True

        with patch(
            "propcomms.notifications.tasks.NotificationDispatcher.from_settings",
            side_effect=lambda db: NotificationDispatcher(
                db, email_service=email_service, sms_service=None
            ),
        ):
            summary = dispatch_message_notifications(str(message_id))

        assert summary == {"in_app": 2, "sent": 2, "failed": 0}
        assert task_session.query(Notification).filter_by(message_id=message_id).count() == 4

    def test_missing_message_is_skipped(self, task_session):
        summary = dispatch_message_notifications(str(uuid.uuid4()))

        assert summary == {"in_app": 0, "sent": 0, "failed": 0}

    def test_storage_fault_propagates_without_retry(self, task_session, tenant, manager):
        thread = create_thread_factory(task_session, [tenant, manager])
        message = create_message_factory(task_session, thread, tenant)

        with patch(
            "propcomms.notifications.tasks.NotificationDispatcher.from_settings",
            side_effect=RuntimeError("database unavailable"),
        ):
            with pytest.raises(RuntimeError, match="database unavailable"):
                dispatch_message_notifications(str(message.id))

    def test_participant_added_after_posting_is_not_notified(
        self, task_session, tenant, manager, admin
    ):
        thread = create_thread_factory(task_session, [tenant, manager])
        message = create_message_factory(task_session, thread, tenant)
        message_id = message.id
        ThreadRepository(task_session).add_participant(thread.id, admin.id, "admin")
        task_session.commit()

        with patch(
            "propcomms.notifications.tasks.NotificationDispatcher.from_settings",
            side_effect=lambda db: NotificationDispatcher(db, email_service=None, sms_service=None),
        ):
            summary = dispatch_message_notifications(str(message_id))

        assert summary == {"in_app": 1, "sent": 0, "failed": 0}
        recipients = {
            n.user_id for n in task_session.query(Notification).filter_by(message_id=message_id)
        }
        assert recipients == {manager.id}
