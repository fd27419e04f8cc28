"""Microsoft Graph API access for mailbox folders and messages."""
