from datetime import date, timedelta

from conftest import INTERNAL_HEADERS


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def register(client, email, user_type, name=None):
    resp = await client.post(
        "/auth/register",
        json={"email": email, "password": "secret123", "name": name, "user_type": user_type},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["access_token"]


async def create_schedule(client, token, capacity=5):
    resp = await client.post(
        "/schedules/",
        json={
            "from_location": "Boston, MA",
            "to_location": "Amherst, MA",
            "departure_date": (date.today() + timedelta(days=2)).isoformat(),
            "departure_time": "09:30:00",
            "capacity": capacity,
        },
        headers=bearer(token),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


async def test_register_login_me_logout(client):
    token = await register(client, "alex@collegebites.com", "parent", name="Alex")

    resp = await client.get("/auth/me", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alex"
    assert resp.json()["user_type"] == "parent"

    resp = await client.post("/auth/login", json={"email": "alex@collegebites.com", "password": "wrong-pass"})
    assert resp.status_code == 401

    resp = await client.post("/auth/login", json={"email": "alex@collegebites.com", "password": "secret123"})
    assert resp.status_code == 200
    second = resp.json()["access_token"]

    resp = await client.post("/auth/logout", headers=bearer(second))
    assert resp.status_code == 204
    resp = await client.get("/auth/me", headers=bearer(second))
    assert resp.status_code == 401

    # The first token is still live
    resp = await client.get("/auth/me", headers=bearer(token))
    assert resp.status_code == 200


async def test_duplicate_registration_conflicts(client):
    await register(client, "dup@collegebites.com", "student")
    resp = await client.post(
        "/auth/register",
        json={"email": "dup@collegebites.com", "password": "secret123", "user_type": "student"},
    )
    assert resp.status_code == 409


async def test_endpoints_require_a_token(client):
    resp = await client.get("/schedules/upcoming")
    assert resp.status_code == 401


async def test_booking_over_http(client):
    driver = await register(client, "drive@collegebites.com", "driver", name="Dana Driver")
    parent = await register(client, "mom@collegebites.com", "parent")
    schedule = await create_schedule(client, driver, capacity=5)

    resp = await client.get("/schedules/upcoming", headers=bearer(parent))
    assert [s["id"] for s in resp.json()] == [schedule["id"]]
    assert resp.json()[0]["driver_name"] == "Dana Driver"

    resp = await client.post(
        "/orders/",
        json={"schedule_id": schedule["id"], "quantity": 2, "description": "Lasagna"},
        headers=bearer(parent),
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["amount"] == 2000

    resp = await client.post("/orders/confirm", json={"payment_handle": created["payment_handle"]})
    assert resp.status_code == 403

    resp = await client.post(
        "/orders/confirm", json={"payment_handle": created["payment_handle"]}, headers=INTERNAL_HEADERS
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"

    resp = await client.post(
        "/orders/confirm", json={"payment_handle": created["payment_handle"]}, headers=INTERNAL_HEADERS
    )
    assert resp.status_code == 409

    resp = await client.get(f"/schedules/{schedule['id']}", headers=bearer(parent))
    assert resp.json()["available_capacity"] == 3

    resp = await client.get(f"/orders/{created['order_id']}", headers=bearer(parent))
    assert resp.json()["total_cents"] == 2000


async def test_capacity_conflict_reports_remaining_spots(client):
    driver = await register(client, "drive@collegebites.com", "driver")
    parent = await register(client, "dad@collegebites.com", "parent")
    schedule = await create_schedule(client, driver, capacity=2)

    resp = await client.post(
        "/orders/",
        json={"schedule_id": schedule["id"], "quantity": 3, "description": "Stew"},
        headers=bearer(parent),
    )
    assert resp.status_code == 409
    assert resp.json()["available"] == 2

    resp = await client.post(
        "/checkout",
        json={
            "schedule_id": schedule["id"],
            "quantity": 2,
            "description": "Stew",
            "card": {"number": "4242424242424242", "cvv": "123"},
        },
        headers=bearer(parent),
    )
    assert resp.status_code == 201
    assert resp.json()["order"]["status"] == "confirmed"

    other = await register(client, "aunt@collegebites.com", "parent")
    resp = await client.post(
        "/orders/",
        json={"schedule_id": schedule["id"], "quantity": 1, "description": "Stew"},
        headers=bearer(other),
    )
    assert resp.status_code == 409
    assert resp.json()["available"] == 0
    assert "Only 0 spots left" in resp.json()["detail"]


async def test_declined_checkout_is_payment_required(client):
    driver = await register(client, "drive@collegebites.com", "driver")
    student = await register(client, "kid@collegebites.com", "student")
    schedule = await create_schedule(client, driver)

    resp = await client.post(
        "/checkout",
        json={
            "schedule_id": schedule["id"],
            "quantity": 1,
            "description": "Cookies",
            "card": {"number": "4000 0000 0000 0002", "cvv": "999"},
        },
        headers=bearer(student),
    )
    assert resp.status_code == 402

    resp = await client.get("/orders/", headers=bearer(student))
    assert [o["status"] for o in resp.json()] == ["cancelled"]


async def test_pay_existing_order_and_list_payments(client):
    driver = await register(client, "drive@collegebites.com", "driver")
    parent = await register(client, "mom@collegebites.com", "parent")
    schedule = await create_schedule(client, driver)
    resp = await client.post(
        "/orders/",
        json={"schedule_id": schedule["id"], "quantity": 1, "description": "Pasta"},
        headers=bearer(parent),
    )
    order_id = resp.json()["order_id"]

    resp = await client.post(
        f"/payments/orders/{order_id}",
        json={"card": {"number": "4242424242424242", "cvv": "123"}},
        headers=bearer(parent),
    )
    assert resp.status_code == 200
    assert resp.json()["order"]["status"] == "confirmed"

    resp = await client.get(f"/payments/orders/{order_id}", headers=bearer(parent))
    assert [p["status"] for p in resp.json()] == ["succeeded"]


async def test_driver_dashboard_and_tracking(client):
    driver = await register(client, "drive@collegebites.com", "driver")
    parent = await register(client, "mom@collegebites.com", "parent")
    schedule = await create_schedule(client, driver)
    resp = await client.post(
        "/checkout",
        json={
            "schedule_id": schedule["id"],
            "quantity": 1,
            "description": "Pasta",
            "card": {"number": "4242424242424242", "cvv": "123"},
        },
        headers=bearer(parent),
    )
    order_id = resp.json()["order"]["id"]

    resp = await client.get("/schedules/driver/overview", headers=bearer(driver))
    assert resp.json()["stats"] == {"upcoming_drives": 1, "active_orders": 1, "past_drives": 0}

    resp = await client.get("/schedules/driver/overview", headers=bearer(parent))
    assert resp.status_code == 403

    resp = await client.post(
        f"/tracking/orders/{order_id}/locations",
        json={"latitude": 42.37, "longitude": -72.52, "note": "Leaving campus"},
        headers=bearer(driver),
    )
    assert resp.status_code == 201

    resp = await client.post(
        f"/tracking/orders/{order_id}/locations", json={"note": "nowhere"}, headers=bearer(driver)
    )
    assert resp.status_code == 422

    resp = await client.get(f"/tracking/orders/{order_id}/locations", headers=bearer(parent))
    assert [u["note"] for u in resp.json()] == ["Leaving campus"]

    resp = await client.get(f"/tracking/orders/{order_id}", headers=bearer(parent))
    assert resp.json()["delivery_status"]["status"] == "In Transit"

    resp = await client.patch(
        f"/orders/{order_id}/status", json={"status": "completed"}, headers=bearer(driver)
    )
    assert resp.json()["status"] == "completed"
