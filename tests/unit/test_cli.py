"""Unit tests for cli.py — exit codes and record output."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest

from mailbox_snapshot.cli import (
    EXIT_CONFIG_ERROR,
    EXIT_HIERARCHY_FAILED,
    EXIT_MESSAGES_FAILED,
    EXIT_OK,
    EXIT_UNRESOLVED_MESSAGES,
    main,
)
from mailbox_snapshot.orchestration.extractor import (
    ExtractionResult,
    HierarchyLoadError,
    MessageStreamError,
)

_REQUIRED_ENV = {
    "MS_CLIENT_ID": "cid",
    "MS_CLIENT_SECRET": "cs",
    "MS_TENANT_ID": "tid",
    "MS_MAILBOX_USER": "alice@contoso.com",
}


def _run(extractor: MagicMock, argv: list[str] | None = None) -> int:
    with (
        patch.dict(os.environ, _REQUIRED_ENV, clear=True),
        patch("mailbox_snapshot.cli.snapshot_extractor_from_config", return_value=extractor),
    ):
        return main(argv or ["--config", "does-not-exist.json"])


class TestMain:
    def test_writes_records_to_stdout_and_exits_zero(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        extractor = MagicMock()

        def run(write):  # type: ignore[no-untyped-def]
            write({"id": "m1", "folder": "Inbox"})
            return ExtractionResult(folder_count=1, message_count=1)

        extractor.run.side_effect = run

        assert _run(extractor) == EXIT_OK
        out = capsys.readouterr().out
        assert json.loads(out.strip()) == {"id": "m1", "folder": "Inbox"}

    def test_hierarchy_failure_exit_code(self) -> None:
        extractor = MagicMock()
        extractor.run.side_effect = HierarchyLoadError("folders unavailable")

        assert _run(extractor) == EXIT_HIERARCHY_FAILED

    def test_message_failure_exit_code(self) -> None:
        extractor = MagicMock()
        extractor.run.side_effect = MessageStreamError("page 3 failed")

        assert _run(extractor) == EXIT_MESSAGES_FAILED

    def test_unresolved_messages_exit_code(self) -> None:
        extractor = MagicMock()
        extractor.run.return_value = ExtractionResult(
            folder_count=1, message_count=5, unresolved_ids=["m9"]
        )

        assert _run(extractor) == EXIT_UNRESOLVED_MESSAGES

    def test_missing_setting_exit_code(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--config", "does-not-exist.json"]) == EXIT_CONFIG_ERROR

    def test_version_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "0.1.0" in capsys.readouterr().out
