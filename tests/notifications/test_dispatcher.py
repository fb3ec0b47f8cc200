"""
Tests for NotificationDispatcher fan-out and per-channel bookkeeping.

Transports are replaced by AsyncMocks; rows are written to a real in-memory
database so the write-once guarantees are exercised.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.notifications.exceptions import ChannelDeliveryError
from propcomms.notifications.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
)
from propcomms.notifications.services.dispatcher import NotificationDispatcher
from tests.utils.factories import create_message_factory, create_thread_factory, create_user_factory


def rows_for(db_session, message):
    return {
        (n.user_id, n.channel): n
        for n in db_session.query(Notification).filter_by(message_id=message.id).all()
    }


@pytest.fixture
def email_service():
    service = AsyncMock()
    service.send_email.return_value = True
    return service


@pytest.fixture
def sms_service():
    service = AsyncMock()
    service.send_sms.return_value = True
    return service


def make_dispatcher(db_session, email_service=None, sms_service=None, **kwargs):
    return NotificationDispatcher(
        db_session, email_service=email_service, sms_service=sms_service, **kwargs
    )


class TestInAppChannel:
    async def test_every_other_participant_gets_unread_row(self, db_session, tenant, manager, owner):
        thread = create_thread_factory(db_session, [tenant, manager, owner])
        message = create_message_factory(db_session, thread, tenant, "pipe leak")
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = await make_dispatcher(db_session).dispatch_async(message, recipients)

        rows = rows_for(db_session, message)
        assert result.in_app == 2
        assert set(rows) == {
            (manager.id, NotificationChannel.IN_APP.value),
            (owner.id, NotificationChannel.IN_APP.value),
        }
        assert all(n.status == NotificationStatus.UNREAD.value for n in rows.values())

    async def test_sender_only_thread_produces_nothing(self, db_session, tenant):
        thread = create_thread_factory(db_session, [tenant])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = await make_dispatcher(db_session).dispatch_async(message, recipients)

        assert result.summary() == {"in_app": 0, "sent": 0, "failed": 0}
        assert db_session.query(Notification).count() == 0

    async def test_redispatch_does_not_duplicate_rows(
        self, db_session, tenant, manager, email_service
    ):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)
        dispatcher = make_dispatcher(db_session, email_service=email_service)

        await dispatcher.dispatch_async(message, recipients)
        await dispatcher.dispatch_async(message, recipients)

        assert db_session.query(Notification).filter_by(message_id=message.id).count() == 2


class TestExternalChannels:
    async def test_end_to_end_email_sent(self, db_session, tenant, manager, email_service):
        thread = create_thread_factory(db_session, [tenant, manager], subject="Leak")
        message = create_message_factory(db_session, thread, tenant, "pipe leak")
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = await make_dispatcher(db_session, email_service=email_service).dispatch_async(
            message, recipients
        )

        rows = rows_for(db_session, message)
        email_row = rows[(manager.id, NotificationChannel.EMAIL.value)]
        assert email_row.status == NotificationStatus.SENT.value
        assert email_row.sent_at is not None
        assert result.sent == 1
        sent = email_service.send_email.await_args.args[0]
        assert sent.to == manager.email
        assert sent.subject == "New message: Leak"
        assert "pipe leak" in sent.body_text

    async def test_up_to_two_extra_rows_per_recipient(
        self, db_session, tenant, manager, owner, email_service, sms_service
    ):
        thread = create_thread_factory(db_session, [manager, tenant, owner])
        message = create_message_factory(db_session, thread, manager)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = await make_dispatcher(
            db_session, email_service=email_service, sms_service=sms_service
        ).dispatch_async(message, recipients)

        assert result.summary() == {"in_app": 2, "sent": 4, "failed": 0}
        assert db_session.query(Notification).count() == 6

    async def test_missing_contact_skips_channel(
        self, db_session, organization_id, tenant, email_service, sms_service
    ):
        no_contact = create_user_factory(
            db_session, organization_id=organization_id, role="manager", email=None, phone="  "
        )
        thread = create_thread_factory(db_session, [tenant, no_contact])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        await make_dispatcher(
            db_session, email_service=email_service, sms_service=sms_service
        ).dispatch_async(message, recipients)

        assert set(rows_for(db_session, message)) == {
            (no_contact.id, NotificationChannel.IN_APP.value)
        }
        email_service.send_email.assert_not_awaited()
        sms_service.send_sms.assert_not_awaited()

    async def test_unconfigured_transports_are_never_attempted(self, db_session, tenant, manager):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = await make_dispatcher(db_session).dispatch_async(message, recipients)

        assert result.summary() == {"in_app": 1, "sent": 0, "failed": 0}

    async def test_sms_carries_truncated_preview(self, db_session, tenant, manager, sms_service):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant, "a" * 140)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        await make_dispatcher(db_session, sms_service=sms_service).dispatch_async(
            message, recipients
        )

        sent = sms_service.send_sms.await_args.args[0]
        assert sent.to == manager.phone
        assert sent.body == "a" * 100 + "..."


class TestFailureIsolation:
    async def test_one_failing_recipient_channel_does_not_block_others(
        self, db_session, tenant, manager, owner, email_service, sms_service
    ):
        thread = create_thread_factory(db_session, [manager, tenant, owner])
        message = create_message_factory(db_session, thread, manager)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        tenant_email = tenant.email

        async def flaky_send(email_msg):
            if email_msg.to == tenant_email:
                raise ChannelDeliveryError("email", "SMTP down")
            return True

        email_service.send_email.side_effect = flaky_send

        result = await make_dispatcher(
            db_session, email_service=email_service, sms_service=sms_service
        ).dispatch_async(message, recipients)

        rows = rows_for(db_session, message)
        failed = rows[(tenant.id, NotificationChannel.EMAIL.value)]
        assert failed.status == NotificationStatus.FAILED.value
        assert "SMTP down" in failed.error_message
        assert failed.sent_at is None
        assert rows[(owner.id, NotificationChannel.EMAIL.value)].status == "sent"
        assert rows[(tenant.id, NotificationChannel.SMS.value)].status == "sent"
        assert rows[(tenant.id, NotificationChannel.IN_APP.value)].status == "unread"
        assert result.summary() == {"in_app": 2, "sent": 3, "failed": 1}

    async def test_timeout_recorded_as_failed(self, db_session, tenant, manager, sms_service):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        async def hang(email_msg):
            await asyncio.sleep(5)
            return True

        slow_email = AsyncMock()
        slow_email.send_email.side_effect = hang

        result = await make_dispatcher(
            db_session, email_service=slow_email, sms_service=sms_service, email_timeout=0.05
        ).dispatch_async(message, recipients)

        rows = rows_for(db_session, message)
        email_row = rows[(manager.id, NotificationChannel.EMAIL.value)]
        assert email_row.status == NotificationStatus.FAILED.value
        assert "timed out" in email_row.error_message
        assert rows[(manager.id, NotificationChannel.SMS.value)].status == "sent"
        assert result.failed == 1

    async def test_false_return_recorded_as_failed(self, db_session, tenant, manager, email_service):
        email_service.send_email.return_value = False
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        await make_dispatcher(db_session, email_service=email_service).dispatch_async(
            message, recipients
        )

        row = rows_for(db_session, message)[(manager.id, NotificationChannel.EMAIL.value)]
        assert row.status == NotificationStatus.FAILED.value

    async def test_error_message_is_truncated(self, db_session, tenant, manager, email_service):
        email_service.send_email.side_effect = RuntimeError("x" * 2000)
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        await make_dispatcher(db_session, email_service=email_service).dispatch_async(
            message, recipients
        )

        row = rows_for(db_session, message)[(manager.id, NotificationChannel.EMAIL.value)]
        assert len(row.error_message) == 500


class TestSynchronousEntryPoint:
    def test_dispatch_runs_its_own_loop(self, db_session, tenant, manager, email_service):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)
        recipients = ThreadRepository(db_session).list_participants(thread.id)

        result = make_dispatcher(db_session, email_service=email_service).dispatch(
            message, recipients
        )

        assert result.summary() == {"in_app": 1, "sent": 1, "failed": 0}
