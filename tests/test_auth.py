def test_register_creates_profile(client, db):
    response = client.post("/api/v1/auth/register", json={
        "email": "amy@acme-signs.com", "password": "secret-pass", "full_name": "Amy Lee",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "user"
    profiles = db.rows("profiles")
    assert [(p["id"], p["full_name"]) for p in profiles] == [(body["user_id"], "Amy Lee")]


def test_duplicate_registration_conflicts(client):
    body = {"email": "amy@acme-signs.com", "password": "secret-pass"}
    assert client.post("/api/v1/auth/register", json=body).status_code == 201
    assert client.post("/api/v1/auth/register", json=body).status_code == 409


def test_invalid_email_is_rejected(client):
    response = client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422


def test_login_with_wrong_password(client, signup):
    signup("amy@acme-signs.com")
    response = client.post("/api/v1/auth/login", json={"email": "amy@acme-signs.com", "password": "wrong"})
    assert response.status_code == 401


def test_login_bootstraps_missing_profile(client, db):
    db.auth.create_user("legacy@acme-signs.com", "secret-pass", "Legacy User")
    response = client.post("/api/v1/auth/login", json={"email": "legacy@acme-signs.com", "password": "secret-pass"})
    assert response.status_code == 200
    assert response.json()["role"] == "user"
    assert db.rows("profiles")[0]["full_name"] == "Legacy User"


def test_me_returns_profile_and_policy_matrix(client, signup):
    headers, user_id = signup("boss@acme-signs.com", full_name="The Boss")
    response = client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == user_id
    assert body["role"] == "admin"
    assert body["profile"]["full_name"] == "The Boss"
    rules = {(p["table"], p["operation"]): p["rule"] for p in body["policies"]}
    assert rules[("jobs", "update")] == "owner"
    assert rules[("project_templates", "select")] == "public_or_owner"


def test_token_lookups_are_cached(client, signup, db):
    headers, _ = signup("amy@acme-signs.com")
    client.get("/api/v1/auth/me", headers=headers)
    calls = db.auth.get_user_calls
    client.get("/api/v1/profiles/me", headers=headers)
    assert db.auth.get_user_calls == calls


def test_logout(client, signup):
    headers, _ = signup("amy@acme-signs.com")
    response = client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    assert client.post("/api/v1/auth/logout").status_code == 401


def test_health_endpoints_and_security_headers(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy"}
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/").json()["status"] == "healthy"
