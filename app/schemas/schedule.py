from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, constr, field_serializer, field_validator

from app.core.exceptions import SchedulingError
from app.utils.time import format_time, parse_time

# "HH:MM" ou "HH:MM:SS"; normalizado para HH:MM:SS
TimeStr = constr(pattern=r"^\d{1,2}:\d{2}(:\d{2})?$")


def _normalize_time(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return format_time(parse_time(value))
    except SchedulingError as e:
        raise ValueError(e.message) from None


class TemplateIn(BaseModel):
    agenda_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=120)
    weekday: int = Field(..., ge=0, le=6, description="0=segunda ... 6=domingo")
    starts_at: TimeStr  # type: ignore
    ends_at: TimeStr  # type: ignore
    color: str | None = Field(None, max_length=16)
    notes: str | None = None
    is_active: bool = True

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_times(cls, v: str | None) -> str | None:
        return _normalize_time(v)


class TemplateUpdateIn(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=120)
    weekday: int | None = Field(None, ge=0, le=6)
    starts_at: TimeStr | None = None  # type: ignore
    ends_at: TimeStr | None = None  # type: ignore
    color: str | None = Field(None, max_length=16)
    notes: str | None = None
    is_active: bool | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_times(cls, v: str | None) -> str | None:
        return _normalize_time(v)


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    agenda_id: int
    title: str
    weekday: int
    starts_at: dt.time
    ends_at: dt.time
    color: str
    notes: str | None = None
    is_active: bool

    @field_serializer("starts_at", "ends_at")
    def _ser_time(self, t: dt.time) -> str:
        return format_time(t)


class OccurrenceFieldsIn(BaseModel):
    """Campos de uma exceção por data; ausentes = copiados do horário base."""

    title: str | None = Field(None, min_length=1, max_length=120)
    starts_at: TimeStr | None = None  # type: ignore
    ends_at: TimeStr | None = None  # type: ignore
    color: str | None = Field(None, max_length=16)
    notes: str | None = None
    is_active: bool | None = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_times(cls, v: str | None) -> str | None:
        return _normalize_time(v)


class OverrideIn(OccurrenceFieldsIn):
    template_id: int = Field(..., ge=1)
    date: dt.date


class OverrideOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    template_id: int
    date: dt.date
    title: str
    starts_at: dt.time
    ends_at: dt.time
    color: str
    notes: str | None = None
    is_active: bool

    @field_serializer("starts_at", "ends_at")
    def _ser_time(self, t: dt.time) -> str:
        return format_time(t)
