# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote authority integration.

Example:
    from lluminata.infrastructure.remote import HTTPRemoteAuthority

    authority = HTTPRemoteAuthority(settings.remote)
    await authority.submit(SyncKind.ASSESSMENT, payload)
"""

from lluminata.infrastructure.remote.client import (
    WIRE_TYPES,
    HTTPRemoteAuthority,
    RemoteAuthority,
    to_wire_item,
)
from lluminata.infrastructure.remote.exceptions import (
    RemoteAuthorityError,
    RemoteRejectedError,
    RemoteUnreachableError,
)

__all__ = [
    "WIRE_TYPES",
    "HTTPRemoteAuthority",
    "RemoteAuthority",
    "to_wire_item",
    "RemoteAuthorityError",
    "RemoteRejectedError",
    "RemoteUnreachableError",
]
