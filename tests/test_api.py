import pytest
from conftest import SLOT

BOOKING_TIME = SLOT.isoformat()


@pytest.fixture
def customer(auth_headers, seed):
    return auth_headers(seed.customer_id)


@pytest.fixture
def admin(auth_headers, seed):
    return auth_headers(seed.admin_id)


def create(client, seed, headers, booking_date=BOOKING_TIME, vehicle_id=None):
    return client.post(
        "/bookings",
        json={
            "vehicleId": vehicle_id or seed.vehicle_id,
            "serviceId": seed.service_id,
            "locationId": seed.location_id,
            "bookingDate": booking_date,
        },
        headers=headers,
    )


class TestBookingEndpoints:
    def test_create_booking(self, client, seed, customer):
        response = create(client, seed, customer)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Booking created successfully!"
        data = body["data"]
        assert data["status"] == "BOOKED"
        assert data["paymentStatus"] == "PENDING"
        assert data["queueNumber"] == 1
        assert data["bookingNumber"] == f"TC-{seed.location_id}-2811202501"
        assert data["totalPrice"] == 50000
        assert data["vehicle"]["plate"] == "B 1234 ABC"
        assert data["service"]["name"] == "Quick Wash"
        assert data["qrCode"].startswith("data:image/png;base64,")

    def test_outside_operating_hours(self, client, seed, customer):
        response = create(client, seed, customer, booking_date="2025-11-29T07:45:00Z")

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidTimeWindow"
        assert client.get("/bookings", headers=customer).json()["data"] == []

    def test_full_slot(self, client, seed, customer):
        for _ in range(3):
            assert create(client, seed, customer).status_code == 201

        response = create(client, seed, customer)

        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "SlotFull"
        assert body["details"]["capacity"] == 3

    def test_vehicle_of_another_user(self, client, seed, customer):
        response = create(client, seed, customer, vehicle_id=seed.other_vehicle_id)

        assert response.status_code == 403
        assert response.json()["code"] == "NotOwner"

    def test_malformed_body(self, client, seed, customer):
        response = client.post("/bookings", json={"vehicleId": 0}, headers=customer)
        assert response.status_code == 422

    def test_requires_authentication(self, client, seed):
        response = create(client, seed, {})
        assert response.status_code in (401, 403)

    def test_rejects_garbage_token(self, client, seed):
        response = create(client, seed, {"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_list_and_detail(self, client, seed, customer, auth_headers):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        listed = client.get("/bookings", headers=customer).json()["data"]
        assert [b["id"] for b in listed] == [booking_id]

        detail = client.get(f"/bookings/{booking_id}", headers=customer)
        assert detail.status_code == 200
        assert detail.json()["data"]["qrCode"].startswith("data:image/png;base64,")

        hidden = client.get(f"/bookings/{booking_id}", headers=auth_headers(seed.other_id))
        assert hidden.status_code == 404

    def test_timeline_round_trip(self, client, seed, customer, auth_headers):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        response = client.get(f"/bookings/{booking_id}/timeline", headers=customer)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["plate"] == "B 1234 ABC"
        assert data["vehicleModel"] == "Toyota Avanza"
        assert [(e["status"], e["notes"]) for e in data["timeline"]] == [
            ("BOOKED", "Booking created successfully")
        ]

        other = client.get(f"/bookings/{booking_id}/timeline", headers=auth_headers(seed.other_id))
        missing = client.get("/bookings/999/timeline", headers=customer)
        assert other.status_code == missing.status_code == 404
        assert other.json()["code"] == missing.json()["code"] == "NotFound"


class TestStatusEndpoint:
    def test_admin_moves_booking_along(self, client, seed, customer, admin):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        response = client.patch(
            f"/bookings/{booking_id}/status", json={"status": "DICUCI", "notes": " Bay 2 "}, headers=admin
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "DICUCI"

        timeline = client.get(f"/bookings/{booking_id}/timeline", headers=customer).json()["data"]["timeline"]
        assert [e["status"] for e in timeline] == ["BOOKED", "DICUCI"]
        assert timeline[-1]["notes"] == "Bay 2"

    def test_customer_cannot_change_status(self, client, seed, customer):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        response = client.patch(f"/bookings/{booking_id}/status", json={"status": "SELESAI"}, headers=customer)

        assert response.status_code == 403

    def test_admin_of_other_location(self, client, seed, customer, auth_headers):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        response = client.patch(
            f"/bookings/{booking_id}/status",
            json={"status": "DITERIMA"},
            headers=auth_headers(seed.branch_admin_id),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "Forbidden"

    def test_unknown_status(self, client, seed, customer, admin):
        booking_id = create(client, seed, customer).json()["data"]["id"]

        response = client.patch(f"/bookings/{booking_id}/status", json={"status": "SHINY"}, headers=admin)

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidStatus"

    def test_unknown_booking(self, client, seed, admin):
        response = client.patch("/bookings/999/status", json={"status": "DICUCI"}, headers=admin)

        assert response.status_code == 404
        assert response.json()["code"] == "UnknownBooking"


class TestSlotsAndTransactions:
    def test_availability_grid(self, client, seed, customer):
        create(client, seed, customer)

        response = client.get(
            "/slots/availability", params={"locationId": seed.location_id, "date": "2025-11-29"}, headers=customer
        )

        assert response.status_code == 200
        slots = response.json()["data"]
        assert len(slots) == 60
        assert slots[0]["queueNumber"] == 1
        assert slots[0]["status"] == "BOOKED"
        assert slots[1]["status"] == "AVAILABLE"

    def test_availability_bad_date(self, client, seed, customer):
        response = client.get(
            "/slots/availability", params={"locationId": seed.location_id, "date": "29/11/2025"}, headers=customer
        )

        assert response.status_code == 400
        assert response.json()["code"] == "InvalidDate"

    def test_availability_unknown_location(self, client, seed, customer):
        response = client.get(
            "/slots/availability", params={"locationId": 999, "date": "2025-11-29"}, headers=customer
        )

        assert response.status_code == 404
        assert response.json()["code"] == "UnknownLocation"

    def test_transactions_for_admin(self, client, seed, customer, admin):
        create(client, seed, customer)

        response = client.get("/transactions", params={"date": "2025-11-29"}, headers=admin)

        assert response.status_code == 200
        transactions = response.json()["data"]["transactions"]
        assert len(transactions) == 1
        assert transactions[0]["time"] == {"bookingTime": "08:00", "estimateFinish": "08:30"}
        assert transactions[0]["customer"]["name"] == "Budi Santoso"

    def test_transactions_staff_only(self, client, seed, customer):
        assert client.get("/transactions", headers=customer).status_code == 403


class TestNotificationEndpoints:
    def test_list_and_mark_read(self, client, seed, customer, admin, auth_headers):
        booking_id = create(client, seed, customer).json()["data"]["id"]
        client.patch(f"/bookings/{booking_id}/status", json={"status": "SIAP_DIAMBIL"}, headers=admin)

        notifications = client.get("/notifications", headers=customer).json()["data"]
        assert len(notifications) == 1
        assert notifications[0]["title"] == "Ready For Pickup"
        assert notifications[0]["isRead"] is False
        notification_id = notifications[0]["id"]

        stolen = client.patch(f"/notifications/{notification_id}/read", headers=auth_headers(seed.other_id))
        assert stolen.status_code == 404

        marked = client.patch(f"/notifications/{notification_id}/read", headers=customer)
        assert marked.status_code == 200
        assert client.get("/notifications", headers=customer).json()["data"][0]["isRead"] is True


def test_health_and_security_headers(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert client.get("/health").json() == {"status": "healthy"}
