"""
Custom exceptions for Profile Sync.

A missing profile is never an error; lookups return None instead.
"""

from typing import Optional

from .types import RepairResult


class ProfileSyncError(Exception):
    """Base exception for Profile Sync."""
    pass


class StoreError(ProfileSyncError):
    """Exception raised when a store operation fails."""
    pass


class StoreUnavailableError(StoreError):
    """Exception raised when the store cannot be reached or initialized."""
    pass


class RepairError(ProfileSyncError):
    """Exception raised when a reference repair batch fails."""

    def __init__(self, message: str, result: Optional[RepairResult] = None):
        """
        Initialize repair error.

        Args:
            message: Error message
            result: Partial repair progress at the time of failure
        """
        super().__init__(message)
        self.result = result
