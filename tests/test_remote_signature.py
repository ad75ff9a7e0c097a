"""
Tests for remote signature links

1. Issuing: unsigned contracts only, new token invalidates the previous one
2. Public view by token: 404 unknown, 410 expired, 400 already signed
3. Signing by token: same signing path as at the desk, token is spent
"""

import pytest
from datetime import datetime, timedelta

from app.models import Contract, Notification, NotificationType
from app.services.contract_data import CompanyBranding
from app.services.contract_errors import (
    ContractNotFoundError, RemoteSignatureClosedError,
    RemoteSignatureExpiredError, RemoteSignatureNotFoundError
)
from app.services.contract_service import ContractService

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def service(db):
    return ContractService(db, branding=CompanyBranding(company_name="Alquilo"))


@pytest.fixture
def unsigned_contract(service, make_booking):
    booking = make_booking()
    return service.create_or_sign(booking.id)


class TestIssuing:

    def test_token_is_stored_with_thirty_day_expiry(self, db, service, unsigned_contract):
        before = datetime.utcnow()

        issued = service.issue_remote_signature(unsigned_contract.id, sent_to="laura@example.com", actor="ana")

        db.refresh(unsigned_contract)
        assert len(issued.token) == 64
        assert issued.url.endswith(f"/firma/{issued.token}")
        assert unsigned_contract.remote_signature_token == issued.token
        assert unsigned_contract.remote_signature_sent_to == "laura@example.com"
        assert before + timedelta(days=30) <= issued.expires_at <= datetime.utcnow() + timedelta(days=30)
        assert unsigned_contract.remote_signature_active()

    def test_link_is_delivered_as_notification(self, db, service, unsigned_contract):
        issued = service.issue_remote_signature(unsigned_contract.id, sent_to="600111222")

        notification = db.query(Notification).one()
        assert notification.type == NotificationType.REMOTE_SIGNATURE_SENT.value
        assert notification.entity_id == str(unsigned_contract.id)
        assert issued.url in notification.message
        assert "600111222" in notification.message

    def test_new_token_replaces_previous(self, service, unsigned_contract):
        first = service.issue_remote_signature(unsigned_contract.id)
        second = service.issue_remote_signature(unsigned_contract.id)

        assert first.token != second.token
        with pytest.raises(RemoteSignatureNotFoundError):
            service.get_contract_by_remote_token(first.token)

    def test_signed_contract_is_rejected(self, service, make_booking):
        booking = make_booking()
        contract = service.create_or_sign(booking.id, signature_data=SIGNATURE)

        with pytest.raises(RemoteSignatureClosedError) as exc:
            service.issue_remote_signature(contract.id)
        assert exc.value.status_code == 400

    def test_unknown_contract(self, service):
        with pytest.raises(ContractNotFoundError):
            service.issue_remote_signature(999)


class TestSigningByToken:

    def test_signature_bumps_version_and_spends_token(self, db, service, unsigned_contract):
        issued = service.issue_remote_signature(unsigned_contract.id)
        version = unsigned_contract.version

        signed = service.sign_remotely(issued.token, SIGNATURE, ip_address="203.0.113.7", user_agent="Phone/1.0")

        assert signed.version == version + 1
        assert signed.signed_at is not None
        assert signed.ip_address == "203.0.113.7"
        assert signed.user_agent == "Phone/1.0"
        assert SIGNATURE in signed.contract_text
        assert signed.remote_signature_token is None
        with pytest.raises(RemoteSignatureNotFoundError):
            service.sign_remotely(issued.token, SIGNATURE)

    def test_expired_token(self, db, service, unsigned_contract):
        issued = service.issue_remote_signature(unsigned_contract.id)
        unsigned_contract.remote_signature_expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.commit()

        with pytest.raises(RemoteSignatureExpiredError):
            service.sign_remotely(issued.token, SIGNATURE)
        db.refresh(unsigned_contract)
        assert unsigned_contract.signed_at is None

    def test_contract_signed_at_the_desk_meanwhile(self, service, unsigned_contract):
        issued = service.issue_remote_signature(unsigned_contract.id)
        service.create_or_sign(unsigned_contract.booking_id, signature_data=SIGNATURE)

        with pytest.raises(RemoteSignatureClosedError):
            service.sign_remotely(issued.token, SIGNATURE)

    def test_empty_token(self, service):
        with pytest.raises(RemoteSignatureNotFoundError):
            service.get_contract_by_remote_token("")


class TestRemoteSignatureApi:

    def test_issue_requires_auth(self, client):
        response = client.post("/api/contracts/1/remote-signature", json={})
        assert response.status_code == 401

    def test_issue_and_status(self, client, auth_headers, make_booking):
        booking = make_booking()
        contract = client.post("/api/contracts", json={"bookingId": booking.id}, headers=auth_headers).json()

        issued = client.post(
            f"/api/contracts/{contract['id']}/remote-signature",
            json={"sendTo": "laura@example.com"},
            headers=auth_headers,
        )
        assert issued.status_code == 200
        assert issued.json()["sent_to"] == "laura@example.com"

        state = client.get(f"/api/contracts/{contract['id']}/remote-signature", headers=auth_headers).json()
        assert state["has_active_token"] is True
        assert state["is_signed"] is False

    def test_issue_for_signed_contract(self, client, auth_headers, make_booking):
        booking = make_booking()
        contract = client.post(
            "/api/contracts", json={"bookingId": booking.id, "signatureData": SIGNATURE}, headers=auth_headers
        ).json()

        response = client.post(f"/api/contracts/{contract['id']}/remote-signature", headers=auth_headers)

        assert response.status_code == 400

    def test_public_view_and_signature(self, client, auth_headers, db, make_booking):
        booking = make_booking()
        contract = client.post("/api/contracts", json={"bookingId": booking.id}, headers=auth_headers).json()
        token = client.post(f"/api/contracts/{contract['id']}/remote-signature", headers=auth_headers).json()["token"]

        view = client.get(f"/api/contracts/remote-sign?token={token}")
        assert view.status_code == 200
        assert view.json()["contract_number"] == contract["contract_number"]
        assert view.json()["customer_first_name"] == "Laura"

        signed = client.post(
            "/api/contracts/remote-sign",
            json={"token": token, "signatureData": SIGNATURE},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )
        assert signed.status_code == 200
        assert signed.json()["success"] is True

        stored = db.query(Contract).filter(Contract.id == contract["id"]).one()
        db.refresh(stored)
        assert stored.signed_at is not None
        assert stored.ip_address == "203.0.113.7"
        assert stored.version == contract["version"] + 1

        assert client.get(f"/api/contracts/remote-sign?token={token}").status_code == 404

    def test_public_view_errors(self, client, auth_headers, db, make_booking):
        assert client.get("/api/contracts/remote-sign").status_code == 400
        assert client.get("/api/contracts/remote-sign?token=nope").status_code == 404

        booking = make_booking()
        contract = client.post("/api/contracts", json={"bookingId": booking.id}, headers=auth_headers).json()
        token = client.post(f"/api/contracts/{contract['id']}/remote-signature", headers=auth_headers).json()["token"]

        stored = db.query(Contract).filter(Contract.id == contract["id"]).one()
        stored.remote_signature_expires_at = datetime.utcnow() - timedelta(days=1)
        db.commit()
        assert client.get(f"/api/contracts/remote-sign?token={token}").status_code == 410

        stored.remote_signature_expires_at = datetime.utcnow() + timedelta(days=1)
        db.commit()
        client.post("/api/contracts", json={"bookingId": booking.id, "signatureData": SIGNATURE}, headers=auth_headers)
        assert client.get(f"/api/contracts/remote-sign?token={token}").status_code == 400

    def test_signature_body_is_validated(self, client):
        response = client.post("/api/contracts/remote-sign", json={"token": "abc"})
        assert response.status_code == 422
