"""
Tests for /api/inspections

- Link generation reuses a valid token
- Public by-token view: 404 unknown, 410 expired, 404 for inactive bookings
- Recording an inspection refreshes the unsigned contract
"""

from datetime import datetime, timedelta

from app.models import Contract, InspectionLink, BookingStatus


class TestGenerateLink:

    def test_requires_token(self, client, make_booking):
        booking = make_booking()
        response = client.post("/api/inspections/generate-link", json={"booking_id": booking.id})
        assert response.status_code == 401

    def test_link_is_reused_while_valid(self, client, auth_headers, db, make_booking):
        booking = make_booking()

        first = client.post("/api/inspections/generate-link", json={"booking_id": booking.id}, headers=auth_headers)
        second = client.post("/api/inspections/generate-link", json={"booking_id": booking.id}, headers=auth_headers)

        assert first.status_code == 200
        assert first.json()["success"] is True
        assert second.json()["token"] == first.json()["token"]
        assert second.json()["url"].endswith(f"/inspeccion/{first.json()['token']}")
        assert db.query(InspectionLink).count() == 1

    def test_unknown_booking(self, client, auth_headers):
        response = client.post("/api/inspections/generate-link", json={"booking_id": 999}, headers=auth_headers)
        assert response.status_code == 404

    def test_lookup_without_minting(self, client, auth_headers, make_booking):
        booking = make_booking()

        missing = client.get(f"/api/inspections/generate-link?booking_id={booking.id}", headers=auth_headers)
        assert missing.status_code == 404

        issued = client.post("/api/inspections/generate-link", json={"booking_id": booking.id}, headers=auth_headers)
        found = client.get(f"/api/inspections/generate-link?booking_id={booking.id}", headers=auth_headers)
        assert found.json()["token"] == issued.json()["token"]


class TestPublicView:

    def test_valid_token_lists_inspections_without_auth(self, client, auth_headers, make_booking, make_inspection):
        booking = make_booking()
        make_inspection(booking, inspection_type="delivery", odometer_reading=12000)
        token = client.post(
            "/api/inspections/generate-link", json={"booking_id": booking.id}, headers=auth_headers
        ).json()["token"]

        response = client.get(f"/api/inspections/by-token/{token}")

        assert response.status_code == 200
        body = response.json()
        assert body["booking"]["id"] == booking.id
        assert body["booking"]["customer_name"] == "Laura Martín"
        assert len(body["inspections"]) == 1
        assert body["inspections"][0]["vehicle_registration"] == "1234ABC"
        assert body["inspections"][0]["photos"] == {}

    def test_unknown_token(self, client):
        response = client.get("/api/inspections/by-token/nope")
        assert response.status_code == 404

    def test_expired_token(self, client, db, make_booking):
        booking = make_booking()
        db.add(InspectionLink(booking_id=booking.id, token="old", expires_at=datetime.utcnow() - timedelta(days=1)))
        db.commit()

        response = client.get("/api/inspections/by-token/old")

        assert response.status_code == 410

    def test_cancelled_booking_is_not_visible(self, client, db, make_booking):
        booking = make_booking(status=BookingStatus.CANCELLED.value)
        db.add(InspectionLink(booking_id=booking.id, token="abc", expires_at=datetime.utcnow() + timedelta(days=1)))
        db.commit()

        response = client.get("/api/inspections/by-token/abc")

        assert response.status_code == 404


class TestCreateInspection:

    def test_new_inspection_refreshes_unsigned_contract(self, client, auth_headers, db, make_booking):
        booking = make_booking()
        client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)

        response = client.post("/api/inspections", json={
            "booking_id": booking.id,
            "vehicle_id": booking.car_id,
            "inspection_type": "delivery",
            "odometer_reading": 4321,
            "fuel_level": " full ",
        }, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["fuel_level"] == "full"
        contract = db.query(Contract).filter(Contract.booking_id == booking.id).one()
        db.refresh(contract)
        assert contract.version == 2
        assert "4321" in contract.contract_text

    def test_inspection_without_contract_does_not_create_one(self, client, auth_headers, db, make_booking):
        booking = make_booking()

        response = client.post("/api/inspections", json={
            "booking_id": booking.id,
            "vehicle_id": booking.car_id,
            "inspection_type": "return",
        }, headers=auth_headers)

        assert response.status_code == 201
        assert db.query(Contract).count() == 0

    def test_unknown_vehicle(self, client, auth_headers, make_booking):
        booking = make_booking()
        response = client.post("/api/inspections", json={
            "booking_id": booking.id,
            "vehicle_id": 999,
            "inspection_type": "delivery",
        }, headers=auth_headers)
        assert response.status_code == 404
