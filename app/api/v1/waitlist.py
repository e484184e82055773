from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.responses import mutation_response
from app.audit.helpers import record_audit
from app.db import get_db
from app.deps import get_current_user, get_orchestrator, get_today
from app.models.user import User
from app.schemas.waitlist import WaitlistBookIn, WaitlistIn, WaitlistOut, WaitlistUpdateIn
from app.services import waitlist as waitlist_store
from app.services.orchestrator import Orchestrator

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.get("", response_model=list[WaitlistOut])
def list_waitlist(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    today: Annotated[date, Depends(get_today)],
    day: date | None = Query(None, alias="date"),
):
    return waitlist_store.list_entries(db, day or today)


@router.post("", response_model=WaitlistOut, status_code=201)
def create_waitlist_entry(
    payload: WaitlistIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    row = waitlist_store.create_entry(db, **payload.model_dump())
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="CREATE",
        entity="waitlist_entry",
        entity_id=row.id,
    )
    db.commit()
    db.refresh(row)
    return row


@router.put("/{entry_id}", response_model=WaitlistOut)
def update_waitlist_entry(
    entry_id: int,
    payload: WaitlistUpdateIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    row = waitlist_store.update_entry(db, entry_id, payload.model_dump(exclude_unset=True))
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="UPDATE",
        entity="waitlist_entry",
        entity_id=row.id,
    )
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{entry_id}", status_code=204)
def delete_waitlist_entry(
    entry_id: int,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    waitlist_store.delete_entry(db, entry_id)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="DELETE",
        entity="waitlist_entry",
        entity_id=entry_id,
    )
    db.commit()
    return


@router.post("/{entry_id}/book", status_code=201)
def book_from_waitlist(
    entry_id: int,
    payload: WaitlistBookIn,
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
):
    result = orchestrator.promote_waitlist(
        entry_id, agenda_id=payload.agenda_id, template_id=payload.template_id
    )
    return mutation_response(result, success_status=201)
