"""API router setup."""
from fastapi import APIRouter

from app.api.v1 import (
    agendas,
    appointments,
    calendar,
    occurrences,
    overrides,
    templates,
    waitlist,
)

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(agendas.router)
api_router.include_router(templates.router)
api_router.include_router(overrides.router)
api_router.include_router(appointments.router)
api_router.include_router(occurrences.router)
api_router.include_router(calendar.router)
api_router.include_router(waitlist.router)
