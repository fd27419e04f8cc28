"""Unit tests for graph/models.py — MailMessage and select field lists."""

import dataclasses

import pytest

from mailbox_snapshot.graph.models import (
    FIELD_FLAG,
    FIELD_PARENT_FOLDER_ID,
    FOLDER_SELECT_FIELDS,
    MESSAGE_SELECT_FIELDS,
    MailMessage,
)


class TestMailMessage:
    def test_instantiation_with_all_fields(self) -> None:
        message = MailMessage(
            id="msg-001",
            parent_folder_id="folder-001",
            received_at="2024-03-01T09:30:00Z",
            subject="Quarterly report",
            flag_status="complete",
            completed_at="2024-03-02T10:00:00Z",
            is_read=True,
        )
        assert message.id == "msg-001"
        assert message.parent_folder_id == "folder-001"
        assert message.flag_status == "complete"
        assert message.completed_at == "2024-03-02T10:00:00Z"
        assert message.is_read is True

    def test_is_frozen(self) -> None:
        message = MailMessage(
            id="msg-001",
            parent_folder_id="folder-001",
            received_at="2024-03-01T09:30:00Z",
            subject="",
            flag_status="notFlagged",
            completed_at=None,
            is_read=False,
        )
        with pytest.raises(dataclasses.FrozenInstanceError):
            message.subject = "changed"  # type: ignore[misc]


class TestSelectFields:
    def test_folder_fields_include_parent_link(self) -> None:
        assert FIELD_PARENT_FOLDER_ID in FOLDER_SELECT_FIELDS

    def test_message_fields_include_flag_and_folder(self) -> None:
        assert FIELD_FLAG in MESSAGE_SELECT_FIELDS
        assert FIELD_PARENT_FOLDER_ID in MESSAGE_SELECT_FIELDS
