from __future__ import annotations

from fastapi import APIRouter

from skillforge.api.v1.endpoints import ai, auth, contents, plans, users

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(contents.router)
api_router.include_router(ai.router)
api_router.include_router(plans.router)
