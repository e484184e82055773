from __future__ import annotations

import re
from datetime import date, time

from app.core.exceptions import ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time(value: str | time) -> time:
    """
    Normaliza "H:MM", "HH:MM" ou "HH:MM:SS" para time com segundos.
    Qualquer outro formato é entrada inválida.
    """
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    m = _TIME_RE.match((value or "").strip())
    if not m:
        raise ValidationError(f"Hora inválida: {value!r} (use HH:MM:SS)")
    h, mi, s = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if h > 23 or mi > 59 or s > 59:
        raise ValidationError(f"Hora fora do intervalo: {value!r}")
    return time(h, mi, s)


def format_time(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}:{t.second:02d}"


def parse_date(value: str | date) -> date:
    """Datas cruzam a fronteira como YYYY-MM-DD (calendário local, sem TZ)."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except ValueError:
        raise ValidationError(f"Data inválida: {value!r} (use YYYY-MM-DD)") from None


def ensure_time_order(starts_at: time, ends_at: time) -> None:
    if starts_at >= ends_at:
        raise ValidationError("A hora de início deve ser anterior à hora de fim.")
