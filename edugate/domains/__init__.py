# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for edugate.

Domains:
    access_control: Grade and subscription based feature gating.
    auth: Bearer token validation.
"""
