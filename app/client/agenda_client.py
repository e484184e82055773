"""
Cliente assíncrono do painel para a API de agenda.

Cada chamada é uma ida e volta aguardada. Erros HTTP conhecidos voltam a ser
as exceções de domínio (app.core.exceptions) na fronteira, então quem usa o
cliente trata ConflictError/AuthorizationError igual ao lado do servidor.
"""
from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import date, time
from typing import Any

import httpx

from app.core.exceptions import (
    ERRORS_BY_STATUS,
    AuthorizationError,
    ConflictError,
    SchedulingError,
    ValidationError,
)
from app.core.logging import get_logger
from app.core.settings import settings
from app.schemas.calendar import (
    AgendaSlots,
    CalendarDays,
    CalendarMonth,
    RealtimeAvailability,
)
from app.schemas.mutations import MutationResult, Outcome
from app.utils.time import ensure_time_order, format_time, parse_date, parse_time

log = get_logger(component="agenda_client")


def _error_from_response(resp: httpx.Response) -> SchedulingError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    if resp.status_code == 422 or not isinstance(detail, str):
        # 422 do FastAPI traz uma lista de erros por campo
        detail = detail and str(detail) or resp.reason_phrase
    error_cls = ERRORS_BY_STATUS.get(resp.status_code, ValidationError)
    return error_cls(detail)


def _times(starts_at: str | time, ends_at: str | time) -> tuple[str, str]:
    """Valida a ordem localmente antes de ir ao servidor."""
    start, end = parse_time(starts_at), parse_time(ends_at)
    ensure_time_order(start, end)
    return format_time(start), format_time(end)


def _iso(value: str | date) -> str:
    return parse_date(value).isoformat()


class AgendaClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            headers=headers,
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> AgendaClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = await self._http.request(method, path, **kwargs)
        if resp.status_code in ERRORS_BY_STATUS or resp.status_code == 422:
            err = _error_from_response(resp)
            log.info(
                "client.rejected",
                method=method,
                path=path,
                status_code=resp.status_code,
                error=err.kind,
            )
            raise err
        resp.raise_for_status()
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ---------- calendário ----------

    async def month(self, agenda_id: int, *, month: int, year: int) -> CalendarMonth:
        data = await self._request(
            "GET", f"/calendar/{agenda_id}", params={"month": month, "year": year}
        )
        return CalendarMonth.model_validate(data)

    async def days(self, agenda_id: int, dates: Iterable[str | date]) -> CalendarDays:
        data = await self._request(
            "GET",
            f"/calendar/{agenda_id}/days",
            params=[("dates", _iso(d)) for d in dates],
        )
        return CalendarDays.model_validate(data)

    async def week(self, agenda_id: int, reference: str | date) -> CalendarDays:
        data = await self._request(
            "GET", f"/calendar/{agenda_id}/week", params={"date": _iso(reference)}
        )
        return CalendarDays.model_validate(data)

    async def slots(self, agenda_id: int, day: str | date) -> AgendaSlots:
        data = await self._request(
            "GET", f"/calendar/{agenda_id}/slots", params={"date": _iso(day)}
        )
        return AgendaSlots.model_validate(data)

    async def realtime(self, day: str | date) -> RealtimeAvailability:
        data = await self._request(
            "GET", "/availability/realtime", params={"date": _iso(day)}
        )
        return RealtimeAvailability.model_validate(data)

    # ---------- agendas / horários base ----------

    async def list_agendas(self, *, only_active: bool = True) -> list[dict]:
        return await self._request(
            "GET", "/agendas", params={"only_active": str(only_active).lower()}
        )

    async def list_templates(
        self, agenda_id: int, *, weekday: int | None = None
    ) -> list[dict]:
        params: dict[str, Any] = {"agenda_id": agenda_id}
        if weekday is not None:
            params["weekday"] = weekday
        return await self._request("GET", "/templates", params=params)

    async def create_template(
        self,
        agenda_id: int,
        *,
        title: str,
        weekday: int,
        starts_at: str | time,
        ends_at: str | time,
        color: str | None = None,
        notes: str | None = None,
        is_active: bool = True,
    ) -> dict:
        start, end = _times(starts_at, ends_at)
        payload: dict[str, Any] = {
            "agenda_id": agenda_id,
            "title": title,
            "weekday": weekday,
            "starts_at": start,
            "ends_at": end,
            "notes": notes,
            "is_active": is_active,
        }
        if color:
            payload["color"] = color
        return await self._request("POST", "/templates", json=payload)

    async def update_template(self, template_id: int, **fields: Any) -> dict:
        if "starts_at" in fields and "ends_at" in fields:
            fields["starts_at"], fields["ends_at"] = _times(
                fields["starts_at"], fields["ends_at"]
            )
        return await self._request("PUT", f"/templates/{template_id}", json=fields)

    async def delete_template(self, template_id: int) -> None:
        await self._request("DELETE", f"/templates/{template_id}")

    # ---------- ocorrências ----------

    async def edit_occurrence(
        self, template_id: int, day: str | date, **fields: Any
    ) -> MutationResult:
        if "starts_at" in fields and "ends_at" in fields:
            fields["starts_at"], fields["ends_at"] = _times(
                fields["starts_at"], fields["ends_at"]
            )
        data = await self._request(
            "PUT", f"/occurrences/{template_id}/{_iso(day)}", json=fields
        )
        return MutationResult.model_validate(data)

    async def disable_occurrence(self, template_id: int, day: str | date) -> MutationResult:
        data = await self._request(
            "POST", f"/occurrences/{template_id}/{_iso(day)}/disable"
        )
        return MutationResult.model_validate(data)

    async def restore_occurrence(self, template_id: int, day: str | date) -> MutationResult:
        data = await self._request(
            "POST", f"/occurrences/{template_id}/{_iso(day)}/restore"
        )
        return MutationResult.model_validate(data)

    # ---------- agendamentos ----------

    async def book(
        self,
        *,
        agenda_id: int,
        template_id: int,
        day: str | date,
        client_name: str,
        service: str,
        **fields: Any,
    ) -> MutationResult:
        payload = {
            "agenda_id": agenda_id,
            "template_id": template_id,
            "date": _iso(day),
            "client_name": client_name,
            "service": service,
            **fields,
        }
        data = await self._request("POST", "/appointments", json=payload)
        return MutationResult.model_validate(data)

    async def update_appointment(self, appointment_id: int, **fields: Any) -> MutationResult:
        data = await self._request("PUT", f"/appointments/{appointment_id}", json=fields)
        return MutationResult.model_validate(data)

    async def delete_appointment(self, appointment_id: int) -> MutationResult:
        data = await self._request("DELETE", f"/appointments/{appointment_id}")
        return MutationResult.model_validate(data)

    # ---------- lista de espera ----------

    async def list_waitlist(self, day: str | date) -> list[dict]:
        return await self._request("GET", "/waitlist", params={"date": _iso(day)})

    async def add_to_waitlist(
        self, *, name: str, service: str, day: str | date, **fields: Any
    ) -> dict:
        payload = {"name": name, "service": service, "date": _iso(day), **fields}
        return await self._request("POST", "/waitlist", json=payload)

    async def book_from_waitlist(
        self,
        entry_id: int,
        *,
        agenda_id: int | None = None,
        template_id: int | None = None,
    ) -> MutationResult:
        data = await self._request(
            "POST",
            f"/waitlist/{entry_id}/book",
            json={"agenda_id": agenda_id, "template_id": template_id},
        )
        return MutationResult.model_validate(data)


class CalendarView:
    """
    Snapshot do mês de uma agenda no painel.

    Cada load() abre uma nova geração e cancela o load anterior ainda em voo;
    resposta de geração antiga é descartada, então o snapshot nunca regride.
    """

    def __init__(self, client: AgendaClient, agenda_id: int) -> None:
        self.client = client
        self.agenda_id = agenda_id
        self.snapshot: CalendarMonth | None = None
        self.period: tuple[int, int] | None = None  # (ano, mês)
        self._generation = 0
        self._inflight: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    async def load(self, *, year: int, month: int) -> CalendarMonth | None:
        self._generation += 1
        generation = self._generation
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

        task = asyncio.ensure_future(
            self.client.month(self.agenda_id, month=month, year=year)
        )
        self._inflight = task
        try:
            data = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return None
            raise

        if generation != self._generation:
            log.debug("calendar.stale_discarded", generation=generation)
            return None
        self.snapshot = data
        self.period = (year, month)
        return data

    async def reload(self) -> CalendarMonth | None:
        if self.period is None:
            return None
        year, month = self.period
        return await self.load(year=year, month=month)

    async def book(
        self,
        *,
        template_id: int,
        day: str | date,
        client_name: str,
        service: str,
        **fields: Any,
    ) -> MutationResult:
        """Conflito e falta de permissão voltam como resultado, com o mês recarregado."""
        try:
            result = await self.client.book(
                agenda_id=self.agenda_id,
                template_id=template_id,
                day=day,
                client_name=client_name,
                service=service,
                **fields,
            )
        except ConflictError as e:
            await self.reload()
            return MutationResult(outcome=Outcome.CONFLICT, message=e.message)
        except AuthorizationError as e:
            await self.reload()
            return MutationResult(outcome=Outcome.FORBIDDEN, message=e.message)

        await self.reload()
        return result
