"""
API Router
"""

from fastapi import APIRouter

from lscs_core.api.endpoints import api_keys, auth, directory, members, roles
from lscs_core.schemas.base import ErrorResponse

api_router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        403: {"model": ErrorResponse, "description": "Authenticated but not allowed"},
    }
)

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(members.router, prefix="/auth/members", tags=["members"])
api_router.include_router(roles.router, prefix="/auth/members", tags=["roles"])
api_router.include_router(api_keys.router, tags=["api-keys"])
api_router.include_router(directory.router, tags=["directory"])
