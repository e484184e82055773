from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.audit.helpers import changed_fields, record_audit
from app.db import get_db
from app.deps import get_current_user
from app.models.user import User
from app.schemas.schedule import OccurrenceFieldsIn, OverrideIn, OverrideOut
from app.services import overrides as override_store

router = APIRouter(prefix="/overrides", tags=["overrides"])


@router.get("", response_model=list[OverrideOut])
def list_overrides(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    agenda_id: int = Query(..., ge=1),
    date_from: date | None = Query(None, description="YYYY-MM-DD"),
    date_to: date | None = Query(None, description="YYYY-MM-DD (inclusivo)"),
):
    return override_store.list_overrides(db, agenda_id, date_from, date_to)


@router.post("", response_model=OverrideOut, status_code=201)
def create_override(
    payload: OverrideIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    fields = payload.model_dump(exclude={"template_id", "date"}, exclude_none=True)
    row = override_store.create_override(db, payload.template_id, payload.date, fields)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="CREATE",
        entity="schedule_override",
        entity_id=row.id,
        occurrence_date=payload.date,
    )
    db.commit()
    db.refresh(row)
    return row


@router.put("/{override_id}", response_model=OverrideOut)
def update_override(
    override_id: int,
    payload: OccurrenceFieldsIn,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    fields = payload.model_dump(exclude_unset=True)
    row = override_store.update_override(db, override_id, fields)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="UPDATE",
        entity="schedule_override",
        entity_id=row.id,
        occurrence_date=row.date,
        details=changed_fields(fields),
    )
    db.commit()
    db.refresh(row)
    return row


@router.delete("/{override_id}", status_code=204)
def delete_override(
    override_id: int,
    request: Request,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    override_store.delete_override(db, override_id)
    record_audit(
        db,
        request=request,
        user_id=current_user.id,
        action="DELETE",
        entity="schedule_override",
        entity_id=override_id,
    )
    db.commit()
    return
