"""Profile Sync CLI commands."""
