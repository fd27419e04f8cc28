"""Application configuration loaded from environment variables and an optional JSON file."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_FILE = "config.json"


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if neither the environment nor the config file provides them. Domain
    constants have sensible defaults but can be overridden.
    """

    # Required: no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    tenant_id: str
    mailbox_user: str

    # Only needed when snapshots go to blob storage
    storage_connection_string: str = ""

    # Domain constants: defaults provided, overridable
    folder_class: str = "IPF.Note"
    folder_page_size: int = 100
    message_page_size: int = 1000
    max_retries: int = 3
    retry_initial_wait: float = 1.0
    exclude_folders: tuple[str, ...] = ()
    snapshot_container: str = "mailbox-snapshot"
    snapshot_blob_prefix: str = "snapshots/"


def _split_list(value: str | list[str] | None) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, list):
        return tuple(v.strip() for v in value if v.strip())
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _read_config_file(path: str | os.PathLike[str] | None) -> dict[str, Any]:
    """Read the JSON config file; a missing file yields no settings."""
    if path is None:
        return {}
    config_path = Path(path)
    if not config_path.is_file():
        return {}
    with config_path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")
    return data


def load_config(
    config_file: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Construct an AppConfig from environment variables and an optional JSON file.

    Environment variables win over keys of the config file. The file uses
    the AppConfig field names as keys (e.g. ``{"mailbox_user": "..."}``)
    and is skipped when it does not exist.

    Required environment variables (or file keys):
        MS_CLIENT_ID (client_id): Azure AD application (client) ID.
        MS_CLIENT_SECRET (client_secret): Azure AD application client secret.
        MS_TENANT_ID (tenant_id): Azure AD tenant ID.
        MS_MAILBOX_USER (mailbox_user): UPN or object ID of the mailbox to export.

    Optional environment variables (with defaults):
        AzureWebJobsStorage: Azure Storage connection string for blob snapshots.
        MS_FOLDER_CLASS: Container class of exported folders (default: IPF.Note).
        MS_FOLDER_PAGE_SIZE: Folders per page (default: 100).
        MS_MESSAGE_PAGE_SIZE: Messages per page (default: 1000).
        MS_MAX_RETRIES: Retries of a page after a transient failure (default: 3).
        MS_RETRY_INITIAL_WAIT: Seconds before the first retry (default: 1.0).
        MS_EXCLUDE_FOLDERS: Comma-separated folder paths to skip (default: none).
        MS_SNAPSHOT_CONTAINER: Blob container for snapshots (default: mailbox-snapshot).
        MS_SNAPSHOT_BLOB_PREFIX: Blob path prefix for snapshots (default: snapshots/).

    Args:
        config_file: Path of the JSON config file, or None to use only the environment.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Configured AppConfig instance.

    Raises:
        KeyError: If a required setting is missing.
    """
    env = os.environ if environ is None else environ
    file_settings = _read_config_file(config_file)

    def setting(env_name: str, key: str, default: Any = None) -> Any:
        if env_name in env:
            return env[env_name]
        if key in file_settings:
            return file_settings[key]
        if default is None:
            raise KeyError(env_name)
        return default

    return AppConfig(
        client_id=setting("MS_CLIENT_ID", "client_id"),
        client_secret=setting("MS_CLIENT_SECRET", "client_secret"),
        tenant_id=setting("MS_TENANT_ID", "tenant_id"),
        mailbox_user=setting("MS_MAILBOX_USER", "mailbox_user"),
        storage_connection_string=setting(
            "AzureWebJobsStorage", "storage_connection_string", ""  # noqa: SIM112
        ),
        folder_class=setting("MS_FOLDER_CLASS", "folder_class", "IPF.Note"),
        folder_page_size=int(setting("MS_FOLDER_PAGE_SIZE", "folder_page_size", 100)),
        message_page_size=int(setting("MS_MESSAGE_PAGE_SIZE", "message_page_size", 1000)),
        max_retries=int(setting("MS_MAX_RETRIES", "max_retries", 3)),
        retry_initial_wait=float(setting("MS_RETRY_INITIAL_WAIT", "retry_initial_wait", 1.0)),
        exclude_folders=_split_list(setting("MS_EXCLUDE_FOLDERS", "exclude_folders", "")),
        snapshot_container=setting(
            "MS_SNAPSHOT_CONTAINER", "snapshot_container", "mailbox-snapshot"
        ),
        snapshot_blob_prefix=setting(
            "MS_SNAPSHOT_BLOB_PREFIX", "snapshot_blob_prefix", "snapshots/"
        ),
    )
