"""Profile Sync test suite."""
