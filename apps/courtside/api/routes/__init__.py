"""
API routes - combined router from all domain modules.
"""

from fastapi import APIRouter

from courtside.api.routes.teams import router as teams_router
from courtside.api.routes.invitations import router as invitations_router
from courtside.api.routes.admin import router as admin_router

router = APIRouter()
router.include_router(teams_router)
router.include_router(invitations_router)
router.include_router(admin_router)
