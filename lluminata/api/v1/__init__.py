# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    offline: Local cache, sync queue, reconciliation and retention endpoints.
"""

from fastapi import APIRouter

from lluminata.api.v1 import offline

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(offline.router, prefix="/offline", tags=["Offline"])

__all__ = ["router"]
