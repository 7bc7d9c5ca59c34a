# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the offline domain.

This module defines the exception hierarchy for offline cache and sync
queue operations:
- OfflineSyncError: Base exception for offline domain errors
- UnknownSyncKindError: Mutation kind outside the supported set
- InvalidSyncPayloadError: Payload failed validation for its kind
- CachedRecordNotFoundError: Cached student or lesson not present

Storage failures are reported as
lluminata.infrastructure.database.StorageUnavailableError and remote
failures as lluminata.infrastructure.remote.RemoteAuthorityError
subclasses.
"""


class OfflineSyncError(Exception):
    """Base exception for all offline domain errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize offline sync error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class UnknownSyncKindError(OfflineSyncError):
    """Raised when a mutation kind is not one of the supported kinds.

    Attributes:
        kind: The rejected kind.
    """

    def __init__(self, kind: object):
        """Initialize unknown kind error.

        Args:
            kind: The rejected kind value.
        """
        self.kind = kind
        super().__init__(f"Unknown sync kind: {kind!r}")


class InvalidSyncPayloadError(OfflineSyncError):
    """Raised when a mutation payload fails validation for its kind.

    Attributes:
        kind: Kind the payload was validated against.
        validation_errors: Individual validation messages.
    """

    def __init__(self, kind: str, validation_errors: list[str] | None = None):
        """Initialize invalid payload error.

        Args:
            kind: Kind the payload was validated against.
            validation_errors: Individual validation messages.
        """
        self.kind = kind
        self.validation_errors = validation_errors or []
        super().__init__(f"Invalid payload for sync kind '{kind}'")

    def __str__(self) -> str:
        """Return string representation with validation errors."""
        if self.validation_errors:
            return f"{self.message} - Errors: {'; '.join(self.validation_errors)}"
        return self.message


class CachedRecordNotFoundError(OfflineSyncError):
    """Raised when a cached student or lesson is not in the local store.

    Attributes:
        entity: Entity type ("student" or "lesson").
        uuid: UUID that was looked up.
    """

    def __init__(self, entity: str, uuid: str):
        """Initialize not found error.

        Args:
            entity: Entity type ("student" or "lesson").
            uuid: UUID that was looked up.
        """
        self.entity = entity
        self.uuid = uuid
        super().__init__(f"Cached {entity} not found: {uuid}")
