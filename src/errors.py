"""Exception types shared across greenmap.

Most recoverable failures are converted to neutral values at the I/O
boundary (empty lists, ``NOT_FOUND``, empty address strings).  These
exceptions cover the few cases that must travel further.
"""

from __future__ import annotations


class GreenmapError(Exception):
    """Base class for all greenmap errors."""


class StoreError(GreenmapError):
    """The record backend could not be read or written."""

    def __init__(self, message: str, table: str = "") -> None:
        super().__init__(message)
        self.table = table


class AuthorizationError(GreenmapError):
    """An admin-only operation was attempted without admin rights."""

    def __init__(self, message: str, reason: str = "") -> None:
        super().__init__(message)
        self.reason = reason or message


class ImageUploadError(GreenmapError):
    """Image storage rejected an upload."""
