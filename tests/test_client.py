import asyncio
import json

import httpx
import pytest

from app.client.agenda_client import AgendaClient, CalendarView
from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.schemas.mutations import Outcome

BASE_URL = "http://agenda.test/api/v1"


def _month(month: int, year: int = 2024) -> dict:
    return {
        "agenda": {"id": 1, "name": "Consultório 1", "is_active": True, "operator_id": 1},
        "month": month,
        "year": year,
        "month_name": "x",
        "days": [],
    }


def _client(handler) -> AgendaClient:
    return AgendaClient(BASE_URL, token="tok", transport=httpx.MockTransport(handler))


def test_sends_bearer_token_and_parses_month():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=_month(6))

    async def run():
        async with _client(handler) as c:
            return await c.month(1, month=6, year=2024)

    result = asyncio.run(run())
    assert result.month == 6
    assert seen == {
        "auth": "Bearer tok",
        "path": "/api/v1/calendar/1",
        "params": {"month": "6", "year": "2024"},
    }


@pytest.mark.parametrize(
    "code,error",
    [
        (400, ValidationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (409, ConflictError),
        (422, ValidationError),
    ],
)
def test_http_errors_become_domain_errors(code, error):
    def handler(request):
        return httpx.Response(code, json={"detail": "falhou"})

    async def run():
        async with _client(handler) as c:
            await c.slots(1, "2024-06-04")

    with pytest.raises(error):
        asyncio.run(run())


def test_time_order_is_checked_before_the_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={})

    async def run():
        async with _client(handler) as c:
            await c.create_template(1, title="X", weekday=1, starts_at="10:00", ends_at="09:00")

    with pytest.raises(ValidationError):
        asyncio.run(run())
    assert calls == []


def test_create_template_sends_normalized_times():
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content))
        return httpx.Response(201, json={"id": 7})

    async def run():
        async with _client(handler) as c:
            return await c.create_template(1, title="X", weekday=1, starts_at="9:00", ends_at="10:00")

    assert asyncio.run(run()) == {"id": 7}
    assert (sent["starts_at"], sent["ends_at"]) == ("09:00:00", "10:00:00")


def test_stale_calendar_response_is_discarded():
    async def handler(request):
        month = int(request.url.params["month"])
        if month == 5:
            # resposta lenta da navegação anterior
            await asyncio.sleep(0.2)
        return httpx.Response(200, json=_month(month))

    async def run():
        async with _client(handler) as c:
            view = CalendarView(c, agenda_id=1)
            slow = asyncio.create_task(view.load(year=2024, month=5))
            await asyncio.sleep(0.01)
            current = await view.load(year=2024, month=6)
            return view, await slow, current

    view, stale, current = asyncio.run(run())
    assert stale is None
    assert current.month == 6
    assert view.snapshot.month == 6
    assert view.period == (2024, 6)
    assert view.generation == 2


def test_calendar_view_book_conflict_is_an_outcome():
    calls = []

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            return httpx.Response(409, json={"detail": "Horário indisponível", "outcome": "conflict"})
        return httpx.Response(200, json=_month(6))

    async def run():
        async with _client(handler) as c:
            view = CalendarView(c, agenda_id=1)
            await view.load(year=2024, month=6)
            return await view.book(
                template_id=3, day="2024-06-04", client_name="B", service="Consulta"
            )

    result = asyncio.run(run())
    assert result.outcome is Outcome.CONFLICT
    assert result.message == "Horário indisponível"
    # load inicial, POST, recarga após o conflito
    assert calls == [
        ("GET", "/api/v1/calendar/1"),
        ("POST", "/api/v1/appointments"),
        ("GET", "/api/v1/calendar/1"),
    ]


def test_calendar_view_book_applied():
    def handler(request):
        if request.method == "POST":
            body = json.loads(request.content)
            assert body["date"] == "2024-06-04"
            return httpx.Response(201, json={"outcome": "applied", "target_id": 10, "day": None})
        return httpx.Response(200, json=_month(6))

    async def run():
        async with _client(handler) as c:
            view = CalendarView(c, agenda_id=1)
            await view.load(year=2024, month=6)
            return await view.book(
                template_id=3, day="2024-06-04", client_name="A", service="Consulta"
            )

    result = asyncio.run(run())
    assert result.applied
    assert result.target_id == 10
