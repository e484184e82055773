from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.appointment import AppointmentStatus
from app.utils.time import format_time


class AppointmentIn(BaseModel):
    agenda_id: int = Field(..., ge=1)
    template_id: int = Field(..., ge=1, description="Horário base da ocorrência")
    date: dt.date
    client_name: str = Field(..., min_length=1, max_length=160)
    client_phone: str | None = Field(None, max_length=40)
    client_email: str | None = Field(None, max_length=320)
    service: str = Field(..., min_length=1, max_length=160)
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: str | None = None


class AppointmentUpdateIn(BaseModel):
    client_name: str | None = Field(None, min_length=1, max_length=160)
    client_phone: str | None = Field(None, max_length=40)
    client_email: str | None = Field(None, max_length=320)
    service: str | None = Field(None, min_length=1, max_length=160)
    status: AppointmentStatus | None = None
    notes: str | None = None


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agenda_id: int
    template_id: int
    override_id: int | None = None
    client_name: str
    client_phone: str | None = None
    client_email: str | None = None
    service: str
    date: dt.date
    starts_at: dt.time
    ends_at: dt.time
    status: AppointmentStatus
    notes: str | None = None
    created_by: int | None = None

    @field_serializer("starts_at", "ends_at")
    def _ser_time(self, t: dt.time) -> str:
        return format_time(t)
