"""Mailbox snapshot — folder hierarchy and message export for Microsoft 365 mailboxes."""

__version__ = "0.1.0"
