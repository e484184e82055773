"""
Concurrency test for appointment creation.

- Uses a bearer token (see scripts/seed.py)
- Finds the first free occurrence via /api/v1/calendar/{agenda}/slots
- Fires N concurrent POST /api/v1/appointments for the same occurrence
- Prints the status codes (expect 201 for a single winner, 409 for others)
"""

from __future__ import annotations

import argparse
import asyncio
import datetime as dt

import httpx


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser()
    p.add_argument("--base", default="http://localhost:8000")
    p.add_argument("--token", required=True)
    p.add_argument("--agenda-id", type=int, default=1)
    p.add_argument("--days", type=int, default=14, help="how far ahead to look")
    p.add_argument("--n", type=int, default=5, help="number of concurrent requests")
    return p.parse_args()


async def find_free_occurrence(
    client: httpx.AsyncClient,
    base: str,
    agenda_id: int,
    days: int,
    headers: dict[str, str],
) -> tuple[str, int] | None:
    """Returns (date, template_id) of the first available occurrence."""
    today = dt.date.today()
    for offset in range(days):
        d = (today + dt.timedelta(days=offset)).isoformat()
        r = await client.get(
            f"{base}/api/v1/calendar/{agenda_id}/slots",
            params={"date": d},
            headers=headers,
        )
        if r.status_code != 200:
            continue
        for occ in r.json().get("occurrences") or []:
            if occ["available"]:
                return d, occ["template_id"]
    return None


async def run():
    args = parse_args()
    auth_headers = {"Authorization": f"Bearer {args.token}"}

    async with httpx.AsyncClient(timeout=10) as c:
        found = await find_free_occurrence(
            c, args.base, args.agenda_id, args.days, auth_headers
        )
        if not found:
            raise RuntimeError(f"Could not find a free occurrence in the next {args.days} days.")
        day, template_id = found

        payload = {
            "agenda_id": args.agenda_id,
            "template_id": template_id,
            "date": day,
            "client_name": "Teste de concorrência",
            "service": "Consulta",
        }

        async def hit(i: int):
            resp = await c.post(
                f"{args.base}/api/v1/appointments", json=payload, headers=auth_headers
            )
            return i, resp.status_code, resp.json().get("detail")

        results = await asyncio.gather(*(hit(i) for i in range(args.n)))
        print("payload:", payload)
        for i, code, detail in results:
            print(f"req#{i}: {code} {detail}")


if __name__ == "__main__":
    asyncio.run(run())
