# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for LLuminata Offline.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime and epoch-millisecond operations
"""

from lluminata.utils.datetime import (
    days_ago_millis,
    epoch_millis,
    format_iso,
    from_epoch_millis,
    to_epoch_millis,
    utc_now,
)
from lluminata.utils.logging import bound_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bound_context",
    # Datetime
    "utc_now",
    "epoch_millis",
    "to_epoch_millis",
    "from_epoch_millis",
    "days_ago_millis",
    "format_iso",
]
