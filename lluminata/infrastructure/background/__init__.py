# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background scheduling for offline maintenance jobs."""

from lluminata.infrastructure.background.scheduler import (
    OfflineScheduler,
    ScheduledTask,
    build_offline_scheduler,
)

__all__ = [
    "OfflineScheduler",
    "ScheduledTask",
    "build_offline_scheduler",
]
