"""API tests for back-office reservation management"""

import pytest
from httpx import AsyncClient

from resto_booking.models.table import Table, TableZone

from conftest import booking_day, create_restaurant, make_reservation


def reservation_payload(day, hour="20:00", guests_count=2, **extra):
    payload = {
        "first_name": "Jeanne",
        "last_name": "Durand",
        "phone": "0601020304",
        "email": "jeanne@example.com",
        "date_time_start": f"{day.isoformat()}T{hour}:00",
        "service_type": "SOIR",
        "guests_count": guests_count,
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_manual_reservation_lifecycle(staff_client: AsyncClient, test_restaurant, test_tables):
    base = f"/restaurants/{test_restaurant.id}/reservations"
    t1, t2 = test_tables[0], test_tables[1]

    response = await staff_client.post(base, json=reservation_payload(booking_day(), status="pending"))
    assert response.status_code == 201
    created = response.json()
    assert created["status"] == "pending"
    assert created["reference"].startswith("M")
    assert created["source"] == "manual"
    assert created["table_ids"] == []
    rid = created["id"]

    response = await staff_client.post(f"{base}/{rid}/assign", json={"version": created["version"]})
    assert response.status_code == 200
    assigned = response.json()
    assert assigned["ok"] is True
    assert assigned["table_ids"] == [str(t1.id)]

    response = await staff_client.post(f"{base}/{rid}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    confirmed = response.json()
    assert confirmed["status"] == "confirmed"

    response = await staff_client.put(
        f"{base}/{rid}/tables",
        json={"table_ids": [str(t2.id)], "version": confirmed["version"]},
    )
    assert response.status_code == 200
    assert response.json()["reservation"]["table_ids"] == [str(t2.id)]

    response = await staff_client.post(f"{base}/{rid}/status", json={"status": "canceled"})
    assert response.status_code == 200
    canceled = response.json()
    assert canceled["table_ids"] == []
    assert canceled["released_table_ids"] == [str(t2.id)]


@pytest.mark.asyncio
async def test_restore_after_table_deactivated(authenticated_client: AsyncClient, store, test_restaurant, test_tables):
    t2 = test_tables[1]
    reservation = await make_reservation(store, test_restaurant, booking_day(), guests_count=4, table_ids=[t2.id])
    base = f"/restaurants/{test_restaurant.id}"

    response = await authenticated_client.post(f"{base}/reservations/{reservation.id}/status", json={"status": "canceled"})
    assert response.status_code == 200

    response = await authenticated_client.put(f"{base}/tables/{t2.id}", json={"is_active": False})
    assert response.status_code == 200

    response = await authenticated_client.post(f"{base}/reservations/{reservation.id}/status", json={"status": "confirmed"})

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "invalid_table"
    assert data["details"]["table_id"] == str(t2.id)

    detail = await authenticated_client.get(f"{base}/reservations/{reservation.id}")
    assert detail.json()["status"] == "canceled"


@pytest.mark.asyncio
async def test_manual_reservation_with_auto_assign(staff_client: AsyncClient, test_restaurant, test_tables):
    response = await staff_client.post(
        f"/restaurants/{test_restaurant.id}/reservations",
        json=reservation_payload(booking_day(), guests_count=3, auto_assign=True),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "confirmed"
    assert data["table_ids"] == [str(test_tables[1].id)]


@pytest.mark.asyncio
async def test_manual_reservation_on_busy_table(staff_client: AsyncClient, store, test_restaurant, test_tables):
    t2 = test_tables[1]
    day = booking_day()
    await make_reservation(store, test_restaurant, day, guests_count=4, table_ids=[t2.id])

    response = await staff_client.post(
        f"/restaurants/{test_restaurant.id}/reservations",
        json=reservation_payload(day, table_ids=[str(t2.id)]),
    )

    assert response.status_code == 409
    assert response.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_illegal_transition_is_rejected(staff_client: AsyncClient, store, test_restaurant):
    reservation = await make_reservation(store, test_restaurant, booking_day(), status="completed")

    response = await staff_client.post(
        f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}/status",
        json={"status": "pending"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "invalid_transition"


@pytest.mark.asyncio
async def test_stale_version_is_rejected(staff_client: AsyncClient, store, test_restaurant):
    reservation = await make_reservation(store, test_restaurant, booking_day(), status="pending")

    response = await staff_client.post(
        f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}/status",
        json={"status": "confirmed", "version": reservation.version + 5},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "stale_write"


@pytest.mark.asyncio
async def test_reassign_to_foreign_table(staff_client: AsyncClient, test_db, store, test_restaurant):
    other = await create_restaurant(test_db, name="Other Place")
    foreign = await store.create(Table, restaurant_id=other.id, name="X", capacity=4, zone=TableZone.SALLE)
    reservation = await make_reservation(store, test_restaurant, booking_day())

    response = await staff_client.put(
        f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}/tables",
        json={"table_ids": [str(foreign.id)]},
    )

    assert response.status_code == 422
    data = response.json()
    assert data["ok"] is False
    assert data["reason"] == "invalid_table"


@pytest.mark.asyncio
async def test_reassign_below_capacity_warns(staff_client: AsyncClient, store, test_restaurant, test_tables):
    reservation = await make_reservation(store, test_restaurant, booking_day(), guests_count=6)

    response = await staff_client.put(
        f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}/tables",
        json={"table_ids": [str(test_tables[0].id)]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["warnings"] == ["insufficient_capacity"]


@pytest.mark.asyncio
async def test_edit_reservation(staff_client: AsyncClient, store, test_restaurant):
    reservation = await make_reservation(store, test_restaurant, booking_day())
    read_version = reservation.version

    response = await staff_client.put(
        f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}",
        json={"guests_count": 5, "comment": "High chair", "version": read_version},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["guests_count"] == 5
    assert data["comment"] == "High chair"
    assert data["version"] == read_version + 1


@pytest.mark.asyncio
async def test_list_filters_and_pagination(staff_client: AsyncClient, store, test_restaurant):
    day = booking_day()
    await make_reservation(store, test_restaurant, day, status="pending", last_name="Martin")
    await make_reservation(store, test_restaurant, day, last_name="Bernard")
    await make_reservation(store, test_restaurant, booking_day(9), last_name="Morel")

    base = f"/restaurants/{test_restaurant.id}/reservations"
    response = await staff_client.get(base, params={"page_size": 2})
    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 2

    response = await staff_client.get(base, params={"status": "pending"})
    assert [r["last_name"] for r in response.json()["items"]] == ["Martin"]

    response = await staff_client.get(base, params={"from_date": day.isoformat(), "to_date": day.isoformat()})
    assert response.json()["total"] == 2

    response = await staff_client.get(base, params={"search": "mor"})
    assert [r["last_name"] for r in response.json()["items"]] == ["Morel"]


@pytest.mark.asyncio
async def test_delete_requires_admin(client: AsyncClient, test_staff_user, test_user, store, test_restaurant):
    from conftest import authenticate

    reservation = await make_reservation(store, test_restaurant, booking_day())
    url = f"/restaurants/{test_restaurant.id}/reservations/{reservation.id}"

    response = await authenticate(client, test_staff_user).delete(url)
    assert response.status_code == 403

    response = await authenticate(client, test_user).delete(url)
    assert response.status_code == 204

    response = await client.get(url)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_back_office_availability(staff_client: AsyncClient, store, test_restaurant, test_tables):
    day = booking_day()
    await make_reservation(store, test_restaurant, day, guests_count=4, table_ids=[test_tables[1].id])

    response = await staff_client.get(
        f"/restaurants/{test_restaurant.id}/availability",
        params={"date": day.isoformat(), "service_type": "SOIR", "guests_count": 2},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["accepted"] is True
    assert data["remaining_seats"] == 16
    assert data["free_tables"] == 3


@pytest.mark.asyncio
async def test_month_calendar_and_day_views(staff_client: AsyncClient, store, test_restaurant, test_tables):
    day = booking_day()
    await make_reservation(store, test_restaurant, day, "MIDI", guests_count=3, table_ids=[test_tables[1].id])
    await make_reservation(store, test_restaurant, day, guests_count=2, last_name="Martin")
    await make_reservation(store, test_restaurant, day, guests_count=6, status="canceled", last_name="Roux")
    base = f"/restaurants/{test_restaurant.id}"

    response = await staff_client.get(f"{base}/calendar", params={"year": day.year, "month": day.month})
    assert response.status_code == 200
    counts = response.json()["days"][day.isoformat()]
    assert counts == {"midi": 1, "soir": 2, "total": 3}

    response = await staff_client.get(
        f"{base}/calendar", params={"year": day.year, "month": day.month, "include_canceled": False}
    )
    assert response.json()["days"][day.isoformat()]["soir"] == 1

    response = await staff_client.get(f"{base}/calendar/day", params={"date": day.isoformat()})
    detail = response.json()
    assert len(detail["items"]) == 3
    assert detail["total_guests"] == 5

    response = await staff_client.get(
        f"{base}/calendar/day/export", params={"date": day.isoformat(), "service_type": "MIDI"}
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert len(lines) == 2
    assert '"T2"' in lines[1]


@pytest.mark.asyncio
async def test_table_management(authenticated_client: AsyncClient, store, test_restaurant, test_tables):
    base = f"/restaurants/{test_restaurant.id}/tables"
    t2 = test_tables[1]
    await make_reservation(store, test_restaurant, booking_day(), guests_count=4, table_ids=[t2.id])

    response = await authenticated_client.post(base, json={"name": "T9", "capacity": 6, "zone": "terrasse"})
    assert response.status_code == 201
    new_table = response.json()

    response = await authenticated_client.get(base)
    assert len(response.json()) == 5

    response = await authenticated_client.put(f"{base}/{t2.id}", json={"capacity": 2})
    assert response.status_code == 409

    response = await authenticated_client.put(f"{base}/{new_table['id']}", json={"is_active": False})
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await authenticated_client.delete(f"{base}/{t2.id}")
    assert response.status_code == 409

    response = await authenticated_client.delete(f"{base}/{new_table['id']}")
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_schedule_bulk_update(authenticated_client: AsyncClient, test_restaurant):
    base = f"/restaurants/{test_restaurant.id}/schedules"

    response = await authenticated_client.put(base, json={"entries": [
        {"day_of_week": 0, "service_type": "SOIR", "is_open": False},
        {"day_of_week": 1, "service_type": "MIDI", "is_open": True,
         "start_time": "11:45:00", "end_time": "14:00:00", "max_covers": 30},
    ]})
    assert response.status_code == 200

    schedules = (await authenticated_client.get(base)).json()
    assert len(schedules) == 14
    monday_dinner = next(s for s in schedules if s["day_of_week"] == 0 and s["service_type"] == "SOIR")
    tuesday_lunch = next(s for s in schedules if s["day_of_week"] == 1 and s["service_type"] == "MIDI")
    assert monday_dinner["is_open"] is False
    assert tuesday_lunch["max_covers"] == 30

    response = await authenticated_client.put(base, json={"entries": [
        {"day_of_week": 2, "service_type": "SOIR", "is_open": True, "start_time": "22:00:00", "end_time": "19:00:00"},
    ]})
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_blocks_close_a_service(authenticated_client: AsyncClient, test_restaurant, test_tables):
    day = booking_day()
    base = f"/restaurants/{test_restaurant.id}"

    response = await authenticated_client.post(
        f"{base}/blocks", json={"date": day.isoformat(), "service_type": "SOIR", "reason": "Staff party"}
    )
    assert response.status_code == 201
    block_id = response.json()["id"]

    response = await authenticated_client.get(
        f"{base}/availability", params={"date": day.isoformat(), "service_type": "SOIR", "guests_count": 2}
    )
    assert response.json()["reason"] == "closed"

    response = await authenticated_client.delete(f"{base}/blocks/{block_id}")
    assert response.status_code == 204

    response = await authenticated_client.get(
        f"{base}/availability", params={"date": day.isoformat(), "service_type": "SOIR", "guests_count": 2}
    )
    assert response.json()["accepted"] is True
