import pytest
from fastapi import status

from app.core.exceptions import NotFoundError, ValidationError
from app.services import waitlist as waitlist_store

from .conftest import NEXT_TUESDAY, TUESDAY


def test_entries_are_listed_per_date_in_arrival_order(db_session):
    a = waitlist_store.create_entry(db_session, name="Ana", service="Consulta", date=TUESDAY)
    b = waitlist_store.create_entry(
        db_session, name="Bia", service="Retorno", date="2024-06-04", notes="manhã"
    )
    waitlist_store.create_entry(db_session, name="Caio", service="Consulta", date=NEXT_TUESDAY)
    db_session.commit()

    assert [e.id for e in waitlist_store.list_entries(db_session, TUESDAY)] == [a.id, b.id]


def test_entry_validation(db_session):
    with pytest.raises(ValidationError):
        waitlist_store.create_entry(db_session, name=" ", service="Consulta", date=TUESDAY)
    with pytest.raises(ValidationError):
        waitlist_store.create_entry(db_session, name="Ana", service="Consulta", date="amanhã")


def test_update_moves_entry_to_another_day(db_session):
    entry = waitlist_store.create_entry(db_session, name="Ana", service="Consulta", date=TUESDAY)
    db_session.commit()

    waitlist_store.update_entry(db_session, entry.id, {"date": NEXT_TUESDAY, "phone": "999"})
    db_session.commit()

    assert waitlist_store.list_entries(db_session, TUESDAY) == []
    [moved] = waitlist_store.list_entries(db_session, NEXT_TUESDAY)
    assert moved.phone == "999"


def test_delete_entry(db_session):
    entry = waitlist_store.create_entry(db_session, name="Ana", service="Consulta", date=TUESDAY)
    db_session.commit()

    waitlist_store.delete_entry(db_session, entry.id)
    db_session.commit()
    with pytest.raises(NotFoundError):
        waitlist_store.get_entry(db_session, entry.id)


def test_waitlist_api_flow(client, auth_headers, operator_user, tuesday_template):
    headers = auth_headers(operator_user)

    r = client.post(
        "/api/v1/waitlist",
        json={"name": "Carla", "service": "Retorno", "date": "2024-06-04"},
        headers=headers,
    )
    assert r.status_code == status.HTTP_201_CREATED
    entry_id = r.json()["id"]

    r = client.get("/api/v1/waitlist", params={"date": "2024-06-04"}, headers=headers)
    assert [e["name"] for e in r.json()] == ["Carla"]

    r = client.post(f"/api/v1/waitlist/{entry_id}/book", json={}, headers=headers)
    assert r.status_code == status.HTTP_201_CREATED
    body = r.json()
    assert body["outcome"] == "applied"
    assert body["day"]["occurrences"][0]["appointment"]["client_name"] == "Carla"

    r = client.get("/api/v1/waitlist", params={"date": "2024-06-04"}, headers=headers)
    assert r.json() == []


def test_waitlist_book_without_free_slot(client, auth_headers, operator_user, tuesday_template):
    headers = auth_headers(operator_user)
    client.post(
        "/api/v1/appointments",
        json={
            "agenda_id": tuesday_template.agenda_id,
            "template_id": tuesday_template.id,
            "date": "2024-06-04",
            "client_name": "A",
            "service": "Consulta",
        },
        headers=headers,
    )
    entry_id = client.post(
        "/api/v1/waitlist",
        json={"name": "Carla", "service": "Retorno", "date": "2024-06-04"},
        headers=headers,
    ).json()["id"]

    r = client.post(f"/api/v1/waitlist/{entry_id}/book", json={}, headers=headers)
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json()["outcome"] == "conflict"


def test_waitlist_unknown_entry(client, auth_headers, operator_user):
    r = client.delete("/api/v1/waitlist/999", headers=auth_headers(operator_user))
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["error"] == "not_found"
