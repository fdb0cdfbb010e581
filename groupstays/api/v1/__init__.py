# ================================
# API V1 INITIALIZATION (api/v1/__init__.py)
# ================================

"""
API Version 1

Admin- und Owner-Routen für Group Stays
"""

from fastapi import APIRouter

from groupstays.api.v1 import admin_group_stays, owner_group_stays
from groupstays.schemas.base import ErrorResponse

# Create V1 router
v1_router = APIRouter(prefix="/v1")

v1_router.include_router(
    admin_group_stays.router,
    prefix="/admin/group-stays",
    tags=["Admin Group Stays"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request or state transition"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Admin access required"},
        404: {"model": ErrorResponse, "description": "Group stay or claim not found"},
        409: {"model": ErrorResponse, "description": "Conflicts with the current claims window state"}
    }
)

v1_router.include_router(
    owner_group_stays.router,
    prefix="/owner/group-stays",
    tags=["Owner Group Stays"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request or ineligible offer"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Owner access required"},
        404: {"model": ErrorResponse, "description": "Group stay, claim or property not found"},
        409: {"model": ErrorResponse, "description": "Claims window closed or duplicate claim"}
    }
)

__all__ = ["v1_router"]
