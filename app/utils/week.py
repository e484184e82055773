from __future__ import annotations

import calendar
from datetime import date, timedelta

WEEKDAY_NAMES = (
    "segunda",
    "terça",
    "quarta",
    "quinta",
    "sexta",
    "sábado",
    "domingo",
)

MONTH_NAMES = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def weekday_name(d: date) -> str:
    return WEEKDAY_NAMES[d.weekday()]


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def month_days(year: int, month: int) -> list[date]:
    _, last = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, last + 1)]


def sunday_week(d: date) -> list[date]:
    """Semana domingo→sábado que contém d (visão semanal do calendário)."""
    start = d - timedelta(days=(d.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range(7)]
