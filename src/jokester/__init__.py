# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Jokester: jokes behind a signed-cookie login."""

__version__ = "0.1.0"
