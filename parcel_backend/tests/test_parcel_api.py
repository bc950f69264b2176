"""
Integration tests for parcel, lifecycle, rider account and tracking endpoints.
"""

import pytest
from decimal import Decimal

from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User
from parcel_backend.app.models.parcel_enums import DeliveryStatus, CashoutStatus


def booking(**overrides) -> dict:
    data = {
        "title": "Documents",
        "parcel_type": "document",
        "created_by": "Sender@Mail.com",
        "sender_name": "Sender",
        "sender_region": "Dhaka",
        "sender_district": "Dhaka",
        "receiver_name": "Receiver",
        "receiver_region": "Chattogram",
        "receiver_district": "Cumilla",
        "cost": 150,
    }
    data.update(overrides)
    return data


# Booking and listing

@pytest.mark.asyncio
async def test_create_parcel(client):
    response = await client.post("/v1/parcels", json=booking())

    assert response.status_code == 201
    data = response.json()
    assert data["tracking_id"].startswith("TRK-")
    assert data["created_by"] == "sender@mail.com"
    assert data["delivery_status"] == "created"
    assert data["payment_status"] == "unpaid"
    assert data["cashout_status"] == "not_cashed"
    assert data["assigned_rider"] is False
    assert Decimal(data["cost"]) == Decimal("150")


@pytest.mark.asyncio
async def test_duplicate_tracking_id_conflicts(client):
    first = await client.post("/v1/parcels", json=booking(tracking_id="TRK-FIXED"))
    second = await client.post("/v1/parcels", json=booking(tracking_id="TRK-FIXED"))

    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_negative_cost_rejected(client):
    response = await client.post("/v1/parcels", json=booking(cost=-5))
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_list_parcels_filters_and_search(client, make_parcel):
    await make_parcel(title="Laptop", created_by="a@mail.com")
    await make_parcel(title="Books", created_by="a@mail.com", delivery_status=DeliveryStatus.IN_TRANSIT)
    await make_parcel(title="Laptop charger", created_by="b@mail.com")

    response = await client.get("/v1/parcels", params={"email": "A@mail.com"})
    assert response.json()["total"] == 2

    response = await client.get("/v1/parcels", params={"search": "laptop"})
    titles = {p["title"] for p in response.json()["parcels"]}
    assert titles == {"Laptop", "Laptop charger"}

    response = await client.get("/v1/parcels", params={"delivery_status": "in-transit"})
    assert [p["title"] for p in response.json()["parcels"]] == ["Books"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(client, make_parcel):
    await make_parcel(title="100% cotton")
    await make_parcel(title="Shoes")

    response = await client.get("/v1/parcels", params={"search": "%"})
    assert [p["title"] for p in response.json()["parcels"]] == ["100% cotton"]


@pytest.mark.asyncio
async def test_get_parcel_not_found(client):
    response = await client.get("/v1/parcels/999")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_parcel_owner_only(client, make_parcel, auth):
    parcel = await make_parcel(created_by="owner@mail.com")

    response = await client.delete(f"/v1/parcels/{parcel.id}", headers=auth("intruder@mail.com"))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"

    response = await client.delete(f"/v1/parcels/{parcel.id}", headers=auth("owner@mail.com"))
    assert response.status_code == 200
    assert response.json()["deleted"] is True

    response = await client.get(f"/v1/parcels/{parcel.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client, make_parcel):
    parcel = await make_parcel()
    response = await client.delete(
        f"/v1/parcels/{parcel.id}", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"
    assert response.headers["WWW-Authenticate"] == "Bearer"


# Lifecycle

@pytest.mark.asyncio
async def test_assign_toggle_cashout_flow(client, make_parcel, rider, admin_headers, rider_headers):
    parcel = await make_parcel(cost=Decimal("100"), sender_region="Dhaka", receiver_region="Dhaka")

    response = await client.patch(
        f"/v1/parcels/{parcel.id}/assign-rider",
        json={"riderId": rider.id, "riderName": rider.name, "riderEmail": rider.email},
        headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["rider_synced"] is True
    assert data["parcel"]["delivery_status"] == "in-transit"
    assert data["parcel"]["rider_status"] == "rider_assigned"

    response = await client.get("/v1/riders/query", params={"status": "accepted", "rider_status": "rider_assigned"})
    assert [r["email"] for r in response.json()] == ["rider@mail.com"]

    response = await client.patch(f"/v1/parcels/{parcel.id}/toggle-delivery", headers=rider_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["previous_status"] == "in-transit"
    assert data["new_status"] == "delivered"
    assert data["changed"] is True
    assert data["parcel"]["delivered_at"] is not None

    response = await client.patch(f"/v1/parcels/{parcel.id}/cashout", headers=rider_headers)
    assert response.status_code == 200
    assert response.json()["parcel"]["cashout_status"] == "cashed_out"

    response = await client.patch(f"/v1/parcels/{parcel.id}/cashout", headers=rider_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_INVALID_STATE"
    assert body["details"]["reason"] == "AlreadyCashedOut"


@pytest.mark.asyncio
async def test_assign_requires_admin(client, make_parcel, rider, rider_headers):
    parcel = await make_parcel()
    response = await client.patch(
        f"/v1/parcels/{parcel.id}/assign-rider",
        json={"riderId": rider.id, "riderName": rider.name, "riderEmail": rider.email},
        headers=rider_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_assign_with_missing_rider_data(client, make_parcel, rider, admin_headers):
    parcel = await make_parcel()
    response = await client.patch(
        f"/v1/parcels/{parcel.id}/assign-rider",
        json={"riderId": rider.id, "riderName": rider.name},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["details"]["reason"] == "MissingRiderData"

    response = await client.get(f"/v1/parcels/{parcel.id}")
    assert response.json()["assigned_rider"] is False


@pytest.mark.asyncio
async def test_assign_with_email_of_another_person(client, make_parcel, rider, admin_headers):
    parcel = await make_parcel()
    response = await client.patch(
        f"/v1/parcels/{parcel.id}/assign-rider",
        json={"riderId": rider.id, "riderName": "Someone", "riderEmail": "stranger@mail.com"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_INPUT"
    assert response.json()["details"]["reason"] == "RiderMismatch"

    response = await client.get("/v1/parcels/rider", params={"rider_email": "stranger@mail.com"}, headers=admin_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_assign_unknown_parcel(client, rider, admin_headers):
    response = await client.patch(
        "/v1/parcels/404/assign-rider",
        json={"riderId": rider.id, "riderName": rider.name, "riderEmail": rider.email},
        headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_toggle_without_rider(client, make_parcel, admin_headers):
    parcel = await make_parcel()
    response = await client.patch(f"/v1/parcels/{parcel.id}/toggle-delivery", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["details"]["reason"] == "RiderNotAssigned"


@pytest.mark.asyncio
async def test_explicit_target(client, make_parcel, rider, on_rider, rider_headers):
    parcel = await make_parcel(**on_rider(rider))

    response = await client.patch(
        f"/v1/parcels/{parcel.id}/toggle-delivery", json={"target": "delivered"}, headers=rider_headers
    )
    assert response.json()["changed"] is True

    response = await client.patch(
        f"/v1/parcels/{parcel.id}/toggle-delivery", json={"target": "delivered"}, headers=rider_headers
    )
    assert response.status_code == 200
    assert response.json()["changed"] is False

    response = await client.patch(
        f"/v1/parcels/{parcel.id}/toggle-delivery", json={"target": "created"}, headers=rider_headers
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_INPUT"


@pytest.mark.asyncio
async def test_rider_cannot_toggle_someone_elses_parcel(client, db_session, make_parcel, rider, on_rider, auth):
    db_session.add(User(email="other.rider@mail.com", role=UserRole.RIDER))
    await db_session.commit()
    parcel = await make_parcel(**on_rider(rider))

    response = await client.patch(
        f"/v1/parcels/{parcel.id}/toggle-delivery", headers=auth("other.rider@mail.com")
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_plain_user_cannot_toggle(client, make_parcel, rider, on_rider, auth):
    parcel = await make_parcel(**on_rider(rider))
    response = await client.patch(f"/v1/parcels/{parcel.id}/toggle-delivery", headers=auth("user@mail.com"))
    assert response.status_code == 403


# Rider account

@pytest.mark.asyncio
async def test_rider_parcels_and_earnings(client, make_parcel, rider, on_rider, rider_headers):
    await make_parcel(**on_rider(rider, cost=Decimal("100"), delivery_status=DeliveryStatus.DELIVERED))
    await make_parcel(**on_rider(
        rider, cost=Decimal("200"), receiver_region="Khulna",
        delivery_status=DeliveryStatus.DELIVERED, cashout_status=CashoutStatus.CASHED_OUT
    ))
    await make_parcel(**on_rider(rider, cost=Decimal("50")))

    response = await client.get("/v1/parcels/rider", params={"rider_email": rider.email}, headers=rider_headers)
    assert response.json()["total"] == 3

    response = await client.get("/v1/rider/completed-parcels", params={"email": rider.email}, headers=rider_headers)
    assert response.status_code == 200
    earnings = sorted(Decimal(p["rider_earning"]) for p in response.json())
    assert earnings == [Decimal("40"), Decimal("60"), Decimal("80")]

    response = await client.get(
        "/v1/rider/completed-parcels",
        params={"email": rider.email, "delivered_only": "true"},
        headers=rider_headers
    )
    assert len(response.json()) == 2

    response = await client.get("/v1/rider/earnings", params={"email": rider.email}, headers=rider_headers)
    summary = response.json()
    assert summary["parcel_count"] == 2
    assert Decimal(summary["total_earning"]) == Decimal("140")
    assert Decimal(summary["cashed_out"]) == Decimal("60")
    assert Decimal(summary["pending"]) == Decimal("80")


@pytest.mark.asyncio
async def test_cashout_all_endpoint(client, make_parcel, rider, on_rider, rider_headers):
    for _ in range(3):
        await make_parcel(**on_rider(rider, delivery_status=DeliveryStatus.DELIVERED))
    for _ in range(2):
        await make_parcel(**on_rider(
            rider, delivery_status=DeliveryStatus.DELIVERED, cashout_status=CashoutStatus.CASHED_OUT
        ))

    response = await client.patch(f"/v1/rider/{rider.email}/cashout-all", headers=rider_headers)
    assert response.status_code == 200
    assert response.json()["modified_count"] == 3

    response = await client.patch(f"/v1/rider/{rider.email}/cashout-all", headers=rider_headers)
    assert response.json()["modified_count"] == 0


@pytest.mark.asyncio
async def test_rider_cannot_read_other_riders_earnings(client, rider, rider_headers):
    response = await client.get("/v1/rider/earnings", params={"email": "else@mail.com"}, headers=rider_headers)
    assert response.status_code == 403


# Tracking

@pytest.mark.asyncio
async def test_tracking_events_do_not_change_delivery_status(client, make_parcel):
    parcel = await make_parcel()

    response = await client.post("/v1/tracking", json={
        "parcelId": parcel.tracking_id,
        "status": "Picked up from sender",
        "location": "Dhaka hub",
        "updatedBy": "rider@mail.com"
    })
    assert response.status_code == 201
    assert response.json()["location"] == "Dhaka hub"

    await client.post("/v1/tracking", json={"parcelId": parcel.tracking_id, "status": "At sorting centre"})

    response = await client.get(f"/v1/tracking/{parcel.tracking_id}")
    events = response.json()["events"]
    assert [e["status"] for e in events] == ["Picked up from sender", "At sorting centre"]
    assert events[1]["location"] == "Unknown"
    assert events[1]["updated_by"] == "System"

    response = await client.get(f"/v1/parcels/{parcel.id}")
    data = response.json()
    assert data["delivery_status"] == "created"
    assert data["last_tracking_status"] == "At sorting centre"


@pytest.mark.asyncio
async def test_tracking_unknown_parcel(client):
    response = await client.post("/v1/tracking", json={"parcelId": "TRK-NOPE", "status": "Lost"})
    assert response.status_code == 404

