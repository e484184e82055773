from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.deps import get_current_user, get_today
from app.models.user import User
from app.schemas.calendar import (
    AgendaSlots,
    CalendarDays,
    CalendarMonth,
    RealtimeAvailability,
)
from app.services import resolver

router = APIRouter(tags=["calendar"])


@router.get("/calendar/{agenda_id}", response_model=CalendarMonth)
def month_calendar(
    agenda_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1970, le=9999),
):
    """Grade mensal: um snapshot completo por chamada (polling é seguro)."""
    return resolver.resolve_month(
        db, agenda_id, year or today.year, month or today.month, today=today
    )


@router.get("/calendar/{agenda_id}/days", response_model=CalendarDays)
def days_calendar(
    agenda_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    dates: list[date] = Query(..., min_length=1, max_length=62),
):
    return resolver.resolve_dates(db, agenda_id, dates, today=today)


@router.get("/calendar/{agenda_id}/week", response_model=CalendarDays)
def week_calendar(
    agenda_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    reference: date | None = Query(None, alias="date"),
):
    return resolver.resolve_week(db, agenda_id, reference or today, today=today)


@router.get("/calendar/{agenda_id}/slots", response_model=AgendaSlots)
def agenda_slots(
    agenda_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    day: date | None = Query(None, alias="date"),
):
    return resolver.agenda_slots(db, agenda_id, day or today, today=today)


@router.get("/availability/realtime", response_model=RealtimeAvailability)
def realtime_availability(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    day: date | None = Query(None, alias="date"),
):
    return resolver.realtime_availability(db, day or today, today=today)
