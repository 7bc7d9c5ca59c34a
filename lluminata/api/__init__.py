# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API Layer for the offline sync service.

This module provides the FastAPI application and its HTTP endpoints.
"""

from lluminata.api.app import create_app

__all__ = ["create_app"]
