from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.responses import mutation_response
from app.db import get_db
from app.deps import get_current_user, get_orchestrator
from app.models.appointment import AppointmentStatus
from app.models.user import User
from app.schemas.appointments import AppointmentIn, AppointmentOut, AppointmentUpdateIn
from app.services import appointments as appointment_store
from app.services.orchestrator import Orchestrator

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=list[AppointmentOut])
def list_appointments(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    agenda_id: int | None = Query(None, ge=1),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    status: AppointmentStatus | None = Query(None),
):
    return appointment_store.list_appointments(
        db, agenda_id=agenda_id, date_from=date_from, date_to=date_to, status=status
    )


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(
    appointment_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    return appointment_store.get_appointment(db, appointment_id)


@router.post("", status_code=201)
def create_appointment(
    payload: AppointmentIn,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    fields = payload.model_dump(exclude={"agenda_id", "template_id", "date"})
    result = orchestrator.book(
        agenda_id=payload.agenda_id,
        template_id=payload.template_id,
        day=payload.date,
        **fields,
    )
    return mutation_response(result, success_status=201)


@router.put("/{appointment_id}")
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdateIn,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    result = orchestrator.change_appointment(
        appointment_id, payload.model_dump(exclude_unset=True)
    )
    return mutation_response(result)


@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: int,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    # remoção física; para liberar mantendo histórico use status=CANCELLED
    return mutation_response(orchestrator.remove_appointment(appointment_id))
