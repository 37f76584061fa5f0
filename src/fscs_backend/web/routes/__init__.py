from __future__ import annotations

from fastapi import APIRouter

from fscs_backend.web.routes.antraege import router as antraege_router
from fscs_backend.web.routes.auth import router as auth_router
from fscs_backend.web.routes.calendar import router as calendar_router
from fscs_backend.web.routes.door_state import router as door_state_router
from fscs_backend.web.routes.legislative_periods import router as legislative_periods_router
from fscs_backend.web.routes.persons import router as persons_router
from fscs_backend.web.routes.roles import router as roles_router
from fscs_backend.web.routes.sitzungen import router as sitzungen_router
from fscs_backend.web.routes.templates import router as templates_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(sitzungen_router)
router.include_router(antraege_router)
router.include_router(persons_router)
router.include_router(roles_router)
router.include_router(legislative_periods_router)
router.include_router(door_state_router)
router.include_router(calendar_router)
router.include_router(templates_router)
