# ================================
# API PACKAGE INITIALIZATION (api/__init__.py)
# ================================

"""
API Package

Root package für alle API-Routen
"""

from fastapi import APIRouter

# Version Info
API_VERSION = "1.0.0"
API_TITLE = "Group Stay Claims API"
API_DESCRIPTION = """
Competitive claims for group stays

## Features
- Admin-controlled claims windows with deadline and offer constraints
- Owner claims with eligibility checks (capability, type, geography, discount, hotel stars)
- Three-way shortlist (highest, mid, lowest) for admin review
- Automatic window expiry (lazy and scheduled)
- Append-only audit trail for every window transition

## Authentication
- JWT bearer tokens (sub = user id)

## Authorization
- ADMIN: claims windows, review, acceptance, direct assignment
- OWNER: browsing open group stays, submitting and withdrawing claims
"""

from groupstays.api.v1 import v1_router

# Basis Router für die gesamte API
api_router = APIRouter(prefix="/api")
api_router.include_router(v1_router)

__all__ = ["api_router", "API_VERSION", "API_TITLE", "API_DESCRIPTION"]
