# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    access: Plan-based feature access, lesson unlocks and download quotas.
"""

from fastapi import APIRouter

from edugate.api.v1 import access

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(access.router, prefix="/access", tags=["Access Control"])

__all__ = ["router"]
