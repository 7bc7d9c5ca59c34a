"""LLuminata Offline.

Offline content cache and sync queue for the LLuminata learning platform:
students keep learning while disconnected and their progress reaches the
platform once connectivity returns.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
