# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging helpers."""

import structlog

from lluminata.utils.logging import bound_context


class TestBoundContext:
    """Tests for bound_context."""

    def test_binds_inside_block_only(self):
        """Test that keys are bound inside the block and removed after."""
        structlog.contextvars.clear_contextvars()

        with bound_context(pass_id="abc123"):
            assert structlog.contextvars.get_contextvars() == {"pass_id": "abc123"}

        assert structlog.contextvars.get_contextvars() == {}

    def test_restores_previous_values(self):
        """Test that outer bindings are kept and overridden keys restored."""
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(device_id="tablet-7", pass_id="outer")
        try:
            with bound_context(pass_id="inner"):
                assert structlog.contextvars.get_contextvars()["pass_id"] == "inner"

            assert structlog.contextvars.get_contextvars() == {
                "device_id": "tablet-7",
                "pass_id": "outer",
            }
        finally:
            structlog.contextvars.clear_contextvars()
