"""
Tests for MessageService: thread creation, posting and attachments.
"""

import uuid
from unittest.mock import patch

import pytest

from propcomms.auth.identity import Caller
from propcomms.core.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from propcomms.core.roles import Role
from propcomms.messaging.models import Message, MessageAttachment
from propcomms.messaging.repositories.thread_repository import ThreadRepository
from propcomms.messaging.schemas.thread import ThreadCreate
from propcomms.messaging.services.message_service import MessageService
from tests.utils.factories import (
    create_message_factory,
    create_thread_factory,
    create_user_factory,
)


def caller_for(user, role: Role) -> Caller:
    return Caller(user_id=user.id, organization_id=user.organization_id, role=role)


@pytest.fixture
def service(db_session):
    return MessageService(db_session)


# ─────────────────────────────────────────────────────────────────────────────
# create_thread
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateThread:
    def test_tenant_opens_thread_with_manager(self, service, db_session, tenant, manager):
        thread_id, first = service.create_thread(
            caller_for(tenant, Role.TENANT),
            ThreadCreate(subject="  Heating  ", participant_ids=[manager.id]),
        )

        repo = ThreadRepository(db_session)
        thread = repo.get_thread(thread_id)
        assert thread.subject == "Heating"
        assert thread.organization_id == tenant.organization_id
        assert first is None
        roles = {p.user_id: p.role for p in repo.list_participants(thread_id)}
        assert roles == {tenant.id: "tenant", manager.id: "manager"}

    def test_initial_message_goes_through_post_path(
        self, service, db_session, tenant, manager, enqueue_mock
    ):
        thread_id, first = service.create_thread(
            caller_for(tenant, Role.TENANT),
            ThreadCreate(subject="Leak", participant_ids=[manager.id], initial_message="pipe leak"),
        )

        assert first is not None
        assert first.thread_id == thread_id
        assert first.body == "pipe leak"
        enqueue_mock.delay.assert_called_once_with(str(first.id))

    def test_tenant_cannot_open_thread_with_admin(self, service, tenant, admin):
        with pytest.raises(ForbiddenError):
            service.create_thread(
                caller_for(tenant, Role.TENANT),
                ThreadCreate(subject="Help", participant_ids=[admin.id]),
            )

    def test_unknown_participant_raises_not_found(self, service, tenant):
        with pytest.raises(NotFoundError):
            service.create_thread(
                caller_for(tenant, Role.TENANT),
                ThreadCreate(subject="Help", participant_ids=[uuid.uuid4()]),
            )

    def test_participant_from_other_organization_forbidden(self, service, db_session, tenant):
        outsider = create_user_factory(db_session, role="manager")

        with pytest.raises(ForbiddenError):
            service.create_thread(
                caller_for(tenant, Role.TENANT),
                ThreadCreate(subject="Help", participant_ids=[outsider.id]),
            )

    def test_blank_subject_rejected(self, service, tenant, manager):
        with pytest.raises(InvalidArgumentError):
            service.create_thread(
                caller_for(tenant, Role.TENANT),
                ThreadCreate(subject="   ", participant_ids=[manager.id]),
            )

    def test_self_only_thread_rejected(self, service, tenant):
        with pytest.raises(InvalidArgumentError):
            service.create_thread(
                caller_for(tenant, Role.TENANT),
                ThreadCreate(subject="Notes", participant_ids=[tenant.id]),
            )


# ─────────────────────────────────────────────────────────────────────────────
# post_message
# ─────────────────────────────────────────────────────────────────────────────


class TestPostMessage:
    def test_persists_and_enqueues_after_commit(
        self, service, db_session, tenant, manager, enqueue_mock
    ):
        thread = create_thread_factory(db_session, [tenant, manager])

        message = service.post_message(thread.id, tenant.id, "  pipe leak  ")

        assert message.body == "pipe leak"
        assert db_session.query(Message).filter_by(thread_id=thread.id).count() == 1
        enqueue_mock.delay.assert_called_once_with(str(message.id))

    def test_non_participant_forbidden(self, service, db_session, tenant, manager, owner):
        thread = create_thread_factory(db_session, [tenant, manager])

        with pytest.raises(ForbiddenError):
            service.post_message(thread.id, owner.id, "hello")

        assert db_session.query(Message).count() == 0

    @pytest.mark.parametrize("body", ["", "   ", "\n\t"])
    def test_blank_body_rejected(self, service, db_session, tenant, manager, body):
        thread = create_thread_factory(db_session, [tenant, manager])

        with pytest.raises(InvalidArgumentError):
            service.post_message(thread.id, tenant.id, body)

    def test_missing_thread_raises(self, service, tenant):
        with pytest.raises(NotFoundError):
            service.post_message(uuid.uuid4(), tenant.id, "hello")

    def test_enqueue_failure_does_not_fail_post(
        self, service, db_session, tenant, manager, enqueue_mock
    ):
        enqueue_mock.delay.side_effect = ConnectionError("broker down")
        thread = create_thread_factory(db_session, [tenant, manager])

        message = service.post_message(thread.id, tenant.id, "still stored")

        assert db_session.get(Message, message.id) is not None

    def test_archived_thread_allows_posting_by_default(
        self, service, db_session, tenant, manager, admin
    ):
        thread = create_thread_factory(db_session, [tenant, manager])
        ThreadRepository(db_session).upsert_archive(thread.id, admin.id, None, thread.created_at)
        db_session.commit()

        message = service.post_message(thread.id, tenant.id, "after archive")

        assert message.id is not None

    def test_archived_thread_blocked_when_configured(
        self, service, db_session, tenant, manager, admin
    ):
        thread = create_thread_factory(db_session, [tenant, manager])
        ThreadRepository(db_session).upsert_archive(thread.id, admin.id, None, thread.created_at)
        db_session.commit()

        with patch(
            "propcomms.messaging.services.message_service.settings.BLOCK_POSTING_TO_ARCHIVED",
            True,
        ):
            with pytest.raises(ForbiddenError):
                service.post_message(thread.id, tenant.id, "after archive")


# ─────────────────────────────────────────────────────────────────────────────
# attach_file
# ─────────────────────────────────────────────────────────────────────────────


class TestAttachFile:
    def test_participant_attaches_storage_key(self, service, db_session, tenant, manager):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)

        attachment = service.attach_file(
            thread.id, message.id, manager.id, "threads/x/lease.pdf", "Application/PDF", "lease.pdf"
        )

        assert attachment.file_type == "application/pdf"
        assert db_session.query(MessageAttachment).count() == 1

    @pytest.mark.parametrize(
        "file_url,file_type",
        [
            ("https://cdn.example.com/a.png", "image/png"),
            ("HTTP://cdn.example.com/a.png", "image/png"),
            ("threads/x/a.png", "png"),
            ("   ", "image/png"),
        ],
    )
    def test_invalid_reference_or_type(self, service, db_session, tenant, manager, file_url, file_type):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)

        with pytest.raises(InvalidArgumentError):
            service.attach_file(thread.id, message.id, tenant.id, file_url, file_type, "a.png")

    def test_non_participant_forbidden(self, service, db_session, tenant, manager, owner):
        thread = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, thread, tenant)

        with pytest.raises(ForbiddenError):
            service.attach_file(thread.id, message.id, owner.id, "k/a.png", "image/png", "a.png")

    def test_message_from_another_thread_not_found(self, service, db_session, tenant, manager):
        thread = create_thread_factory(db_session, [tenant, manager])
        other = create_thread_factory(db_session, [tenant, manager])
        message = create_message_factory(db_session, other, tenant)

        with pytest.raises(NotFoundError):
            service.attach_file(thread.id, message.id, tenant.id, "k/a.png", "image/png", "a.png")
