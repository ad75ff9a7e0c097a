"""
Tests for /api/contracts

1. Authentication and input validation (401 / 400 / 404)
2. Lazy creation and unsigned regeneration through GET
3. Signing through POST (IP from X-Forwarded-For, 409 on re-sign)
4. History and printable HTML
"""

from datetime import datetime

from app.models import Contract

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


class TestContractAuth:

    def test_requires_token(self, client, make_booking):
        booking = make_booking()
        response = client.get(f"/api/contracts?bookingId={booking.id}")
        assert response.status_code == 401

    def test_rejects_invalid_token(self, client, make_booking):
        booking = make_booking()
        response = client.get(
            f"/api/contracts?bookingId={booking.id}",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401


class TestGetContract:

    def test_booking_id_is_required(self, client, auth_headers):
        response = client.get("/api/contracts", headers=auth_headers)
        assert response.status_code == 400

    def test_unknown_booking(self, client, auth_headers):
        response = client.get("/api/contracts?bookingId=999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Reserva no encontrada"

    def test_booking_without_customer(self, client, auth_headers, make_booking):
        booking = make_booking(customer=None)
        response = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)
        assert response.status_code == 400

    def test_booking_without_pickup_date(self, client, auth_headers, make_booking):
        booking = make_booking(pickup=None)
        response = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)
        assert response.status_code == 400

    def test_existing_contract_whose_booking_lost_its_pickup_date(self, client, auth_headers, db, make_booking):
        booking = make_booking()
        client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)
        booking.pickup_date = None
        db.commit()

        response = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "La reserva no tiene fecha de recogida"
        contract = db.query(Contract).filter(Contract.booking_id == booking.id).one()
        assert contract.version == 1

    def test_first_read_creates_contract(self, client, auth_headers, make_booking):
        booking = make_booking(pickup=datetime(2025, 11, 15, 10, 0))

        response = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["booking_id"] == booking.id
        assert body["contract_number"] == "202511150001"
        assert body["version"] == 1
        assert body["signed_at"] is None
        assert body["booking"]["customer"]["first_name"] == "Laura"

    def test_second_read_of_unsigned_contract_bumps_version(self, client, auth_headers, make_booking):
        booking = make_booking()
        client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)

        response = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)

        assert response.json()["version"] == 2


class TestCreateOrSign:

    def test_create_without_signature(self, client, auth_headers, db, make_booking):
        booking = make_booking()

        response = client.post("/api/contracts", json={"bookingId": booking.id}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["signed_at"] is None
        assert db.query(Contract).count() == 1

    def test_sign_records_forwarded_ip_and_user_agent(self, client, auth_headers, make_booking):
        booking = make_booking()
        client.post("/api/contracts", json={"bookingId": booking.id}, headers=auth_headers)

        response = client.post(
            "/api/contracts",
            json={"bookingId": booking.id, "signatureData": SIGNATURE},
            headers={**auth_headers, "X-Forwarded-For": "203.0.113.7, 10.0.0.1", "User-Agent": "Tablet/1.0"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["version"] == 2
        assert body["signed_at"] is not None
        assert body["ip_address"] == "203.0.113.7"
        assert body["user_agent"] == "Tablet/1.0"
        assert SIGNATURE in body["contract_text"]

    def test_re_signing_is_a_conflict(self, client, auth_headers, make_booking):
        booking = make_booking()
        client.post("/api/contracts", json={"bookingId": booking.id, "signatureData": SIGNATURE}, headers=auth_headers)

        response = client.post(
            "/api/contracts",
            json={"bookingId": booking.id, "signatureData": SIGNATURE},
            headers=auth_headers,
        )

        assert response.status_code == 409

    def test_invalid_body(self, client, auth_headers):
        response = client.post("/api/contracts", json={"signatureData": SIGNATURE}, headers=auth_headers)
        assert response.status_code == 422

    def test_language_override(self, client, auth_headers, make_booking):
        booking = make_booking()
        response = client.post(
            "/api/contracts",
            json={"bookingId": booking.id, "language": "en"},
            headers=auth_headers,
        )
        assert "Rental agreement" in response.json()["contract_text"]


class TestHistoryAndHtml:

    def test_history_lists_superseded_versions(self, client, auth_headers, make_booking):
        booking = make_booking()
        client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers)
        contract = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers).json()

        response = client.get(f"/api/contracts/{contract['id']}/history", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["current_version"] == 2
        assert [item["version"] for item in body["items"]] == [1]
        assert body["items"][0]["created_by"] == "recepcion"

    def test_history_of_unknown_contract(self, client, auth_headers):
        response = client.get("/api/contracts/999/history", headers=auth_headers)
        assert response.status_code == 404

    def test_html_is_served_as_is(self, client, auth_headers, make_booking):
        booking = make_booking()
        contract = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers).json()

        response = client.get(f"/api/contracts/{contract['id']}/html", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert response.text == contract["contract_text"]

    def test_html_of_empty_contract(self, client, auth_headers, db, make_booking):
        booking = make_booking()
        contract = Contract(booking_id=booking.id, contract_number="202511150001", contract_text="")
        db.add(contract)
        db.commit()

        response = client.get(f"/api/contracts/{contract.id}/html", headers=auth_headers)

        assert response.status_code == 400
