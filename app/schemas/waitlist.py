from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class WaitlistIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    service: str = Field(..., min_length=1, max_length=160)
    phone: str | None = Field(None, max_length=40)
    notes: str | None = None
    date: dt.date


class WaitlistUpdateIn(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=160)
    service: str | None = Field(None, min_length=1, max_length=160)
    phone: str | None = Field(None, max_length=40)
    notes: str | None = None
    date: dt.date | None = None


class WaitlistOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    service: str
    phone: str | None = None
    notes: str | None = None
    date: dt.date
    created_at: dt.datetime


class WaitlistBookIn(BaseModel):
    """Sem agenda/horário: usa o primeiro horário livre da data."""

    agenda_id: int | None = Field(None, ge=1)
    template_id: int | None = Field(None, ge=1)
