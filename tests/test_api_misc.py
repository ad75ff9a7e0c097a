"""
Tests for authentication, company branding, notifications and health probes
"""

from app.models import Notification, NotificationType


class TestAuth:

    def test_login_returns_bearer_token(self, client, user):
        response = client.post("/api/auth/login", data={"username": "recepcion", "password": "Secreta123!"})

        assert response.status_code == 200
        token = response.json()["access_token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["username"] == "recepcion"

    def test_wrong_password(self, client, user):
        response = client.post("/api/auth/login", data={"username": "recepcion", "password": "nope"})
        assert response.status_code == 401

    def test_inactive_user(self, client, db, user):
        user.is_active = False
        db.commit()
        response = client.post("/api/auth/login", data={"username": "recepcion", "password": "Secreta123!"})
        assert response.status_code == 403


class TestCompanyConfig:

    def test_missing_config(self, client, auth_headers):
        assert client.get("/api/company-config", headers=auth_headers).status_code == 404

    def test_save_and_read_branding(self, client, auth_headers):
        saved = client.put("/api/company-config", json={
            "company_name": "Alquilo Motos",
            "logo_path": "branding/logo.png",
            "logo_storage": "object_storage",
            "primary_color": "#ff6600",
        }, headers=auth_headers)

        assert saved.status_code == 200
        body = client.get("/api/company-config", headers=auth_headers).json()
        assert body["company_name"] == "Alquilo Motos"
        assert body["logo_storage"] == "object_storage"
        assert body["primary_color"] == "#ff6600"

    def test_invalid_color(self, client, auth_headers):
        response = client.put("/api/company-config", json={"primary_color": "orange"}, headers=auth_headers)
        assert response.status_code == 422

    def test_branding_is_printed_on_contracts(self, client, auth_headers, make_booking):
        client.put("/api/company-config", json={"company_name": "Alquilo Motos", "primary_color": "#ff6600"},
                   headers=auth_headers)
        booking = make_booking()

        text = client.get(f"/api/contracts?bookingId={booking.id}", headers=auth_headers).json()["contract_text"]

        assert "Alquilo Motos" in text
        assert "#ff6600" in text


class TestNotifications:

    def test_list_and_mark_read(self, client, auth_headers, db):
        notification = Notification(type=NotificationType.CONTRACT_SIGNED.value, title="Contrato firmado")
        db.add(notification)
        db.commit()

        listed = client.get("/api/notifications", headers=auth_headers).json()
        assert listed["total"] == 1
        assert listed["unread_count"] == 1

        response = client.put(f"/api/notifications/{notification.id}/read", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/notifications", headers=auth_headers).json()["unread_count"] == 0

    def test_filter_by_type_and_read_all(self, client, auth_headers, db):
        db.add_all([
            Notification(type=NotificationType.CONTRACT_SIGNED.value, title="Contrato firmado"),
            Notification(type=NotificationType.SYSTEM_ALERT.value, title="Aviso"),
        ])
        db.commit()

        signed = client.get("/api/notifications?type=contract_signed", headers=auth_headers).json()
        assert [n["title"] for n in signed["notifications"]] == ["Contrato firmado"]
        assert signed["notifications"][0]["type_label"] == "Contrato firmado"

        assert client.put("/api/notifications/read-all", headers=auth_headers).json()["updated"] == 2
        assert client.get("/api/notifications", headers=auth_headers).json()["unread_count"] == 0

    def test_notifications_of_other_users_are_hidden(self, client, auth_headers, db):
        db.add(Notification(user_id="someone-else", type=NotificationType.SYSTEM_ALERT.value, title="Privado"))
        db.commit()
        assert client.get("/api/notifications", headers=auth_headers).json()["total"] == 0


class TestHealth:

    def test_liveness(self, client):
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness(self, client):
        assert client.get("/health/ready").json()["status"] == "ready"

    def test_detailed_requires_auth(self, client):
        assert client.get("/health/detailed").status_code == 401

    def test_detailed(self, client, auth_headers):
        body = client.get("/health/detailed", headers=auth_headers).json()
        assert body["checks"]["database"]["status"] == "up"
        assert "object_storage" in body["checks"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"
