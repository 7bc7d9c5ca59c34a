# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for LLuminata Offline.

Example:
    >>> from lluminata.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.local_store.url
    'sqlite+aiosqlite:///lluminata_offline.db'
"""

from lluminata.core.config.settings import (
    CORSSettings,
    LocalStoreSettings,
    RemoteAuthoritySettings,
    Settings,
    SyncSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "LocalStoreSettings",
    "RemoteAuthoritySettings",
    "SyncSettings",
    "CORSSettings",
]
