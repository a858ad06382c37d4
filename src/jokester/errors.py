# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised at startup when the process cannot run safely (e.g. no signing secret)."""


class StoreError(RuntimeError):
    """The record store could not be read or written."""
