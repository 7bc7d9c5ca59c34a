# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Custom exceptions for the remote authority.

This module defines the exception hierarchy for remote calls:
- RemoteAuthorityError: Base exception for all remote failures
- RemoteRejectedError: The remote authority refused the request
- RemoteUnreachableError: Transient network or server failure
"""


class RemoteAuthorityError(Exception):
    """Base exception for all remote authority errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict | None = None):
        """Initialize remote authority error.

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


class RemoteRejectedError(RemoteAuthorityError):
    """The remote authority explicitly refused the request.

    Retrying the same request is unlikely to succeed without a change on
    either side (e.g. a validation failure).

    Attributes:
        status_code: HTTP status code from the response.
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        """Initialize rejected error.

        Args:
            message: Human-readable error description.
            status_code: HTTP status code from the response.
            response_body: Raw response body if available.
            details: Optional dictionary with additional error context.
        """
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = self.message
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base


class RemoteUnreachableError(RemoteAuthorityError):
    """Transient failure reaching the remote authority.

    Raised for connection errors, timeouts and 5xx responses. The request
    may succeed on a later attempt.
    """
