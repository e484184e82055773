"""
Ocorrência = horário base materializado numa data.

    Occurrence = BaseOccurrence(template) | OverriddenOccurrence(template, override)

A precedência exceção > horário base é decidida aqui, uma única vez, antes
de qualquer verificação de disponibilidade.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.orm import Session

from app.models.schedule import ScheduleOverride, ScheduleTemplate


@dataclass(frozen=True)
class BaseOccurrence:
    template: ScheduleTemplate
    date: date

    is_override = False

    @property
    def template_id(self) -> int:
        return self.template.id

    @property
    def override_id(self) -> int | None:
        return None

    @property
    def id(self) -> int:
        return self.template.id

    @property
    def visible(self) -> bool:
        return bool(self.template.is_active)

    @property
    def source(self) -> ScheduleTemplate:
        return self.template


@dataclass(frozen=True)
class OverriddenOccurrence:
    template: ScheduleTemplate
    override: ScheduleOverride
    date: date

    is_override = True

    @property
    def template_id(self) -> int:
        return self.template.id

    @property
    def override_id(self) -> int:
        return self.override.id

    @property
    def id(self) -> int:
        return self.override.id

    @property
    def visible(self) -> bool:
        # a exceção decide a existência, mesmo com o base desativado
        return bool(self.override.is_active)

    @property
    def source(self) -> ScheduleOverride:
        return self.override


Occurrence = BaseOccurrence | OverriddenOccurrence


def occurrence_for(
    template: ScheduleTemplate, day: date, override: ScheduleOverride | None
) -> Occurrence:
    if override is not None:
        return OverriddenOccurrence(template=template, override=override, date=day)
    return BaseOccurrence(template=template, date=day)


def _sort_key(occ: Occurrence) -> tuple[time, int]:
    return occ.source.starts_at, occ.template_id


def materialize(
    templates: Iterable[ScheduleTemplate],
    overrides: dict[tuple[int, date], ScheduleOverride],
    day: date,
) -> list[Occurrence]:
    """
    Ocorrências visíveis em `day`. Horários duplicados (mesmo dia/hora) são
    tratados como ocorrências independentes.
    """
    out: list[Occurrence] = []
    for tpl in templates:
        if tpl.weekday != day.weekday():
            continue
        occ = occurrence_for(tpl, day, overrides.get((tpl.id, day)))
        if occ.visible:
            out.append(occ)
    out.sort(key=_sort_key)
    return out


def load_occurrence(db: Session, template_id: int, day: date) -> Occurrence | None:
    """Ocorrência (visível ou não) de um horário base numa data; None se o base não existe."""
    tpl = db.get(ScheduleTemplate, template_id)
    if tpl is None or tpl.weekday != day.weekday():
        return None
    override = (
        db.query(ScheduleOverride)
        .filter(
            ScheduleOverride.template_id == template_id,
            ScheduleOverride.date == day,
        )
        .one_or_none()
    )
    return occurrence_for(tpl, day, override)
