from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.core.settings import settings

LOCAL_TZ = ZoneInfo(settings.APP_TIMEZONE)


def now_local(tz: ZoneInfo | None = None) -> datetime:
    return datetime.now(tz or LOCAL_TZ)


def today_local(tz: ZoneInfo | None = None) -> date:
    """
    "Hoje" no locale de operação. Só as rotas leem o relógio; o resolvedor
    recebe a data já calculada.
    """
    return now_local(tz).date()
