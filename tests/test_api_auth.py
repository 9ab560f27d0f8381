# Tests for the auth and departments routers.
# Created: 2026-09-08


class TestRegister:
    def test_register(self, client):
        resp = client.post(
            "/api/auth/register",
            json={
                "email": "  Grace@Example.com ",
                "password": "s3cret",
                "departmentName": "Ask Anything",
            },
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["token"].count(":") == 2
        assert body["user"]["email"] == "grace@example.com"
        assert body["user"]["departmentName"] == "Ask Anything"
        assert "passwordHash" not in body["user"]

    def test_duplicate_email(self, client, register):
        register(email="dup@example.com")
        resp = client.post(
            "/api/auth/register",
            json={"email": "DUP@example.com", "password": "x", "departmentName": "Ask Anything"},
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"

    def test_unknown_department(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"email": "a@example.com", "password": "x", "departmentName": "Nowhere"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] is True

    def test_missing_fields(self, client):
        resp = client.post(
            "/api/auth/register",
            json={"email": "", "password": "", "departmentName": "Ask Anything"},
        )
        assert resp.status_code == 400


class TestLogin:
    def test_login(self, client, register):
        register(email="lin@example.com", password="pw-123")
        resp = client.post(
            "/api/auth/login", json={"email": "LIN@example.com", "password": "pw-123"}
        )
        assert resp.status_code == 200
        token = resp.json()["token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "lin@example.com"

    def test_wrong_password(self, client, register):
        register(email="lin@example.com", password="pw-123")
        resp = client.post(
            "/api/auth/login", json={"email": "lin@example.com", "password": "nope"}
        )
        assert resp.status_code == 401
        assert resp.json() == {
            "error": True,
            "code": "UNAUTHORIZED",
            "message": "Invalid email or password.",
        }

    def test_unknown_email(self, client):
        resp = client.post(
            "/api/auth/login", json={"email": "ghost@example.com", "password": "x"}
        )
        assert resp.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401


class TestDepartments:
    def test_codes_are_hidden(self, client):
        resp = client.get("/api/departments")
        assert resp.status_code == 200
        departments = {d["name"]: d for d in resp.json()["departments"]}

        assert len(departments) == 7
        assert departments["Gen. AI Team"]["requiresAccessCode"] is True
        assert departments["Content Writer Team"]["requiresAccessCode"] is True
        assert departments["Ask Anything"]["requiresAccessCode"] is False
        assert all("accessCode" not in d for d in departments.values())
