"""Health check, service worker and CORS tests."""


def test_health(client, db_session):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"
    assert resp.json["checks"]["database"]["status"] == "healthy"


def test_service_worker_served_from_root(client):
    resp = client.get("/sw.js")

    assert resp.status_code == 200
    assert resp.mimetype == "application/javascript"
    assert resp.headers["Service-Worker-Allowed"] == "/"
    assert b"notificationclick" in resp.data
    assert b"client.url === targetUrl" in resp.data
    assert b"new URL(target, self.location.origin)" in resp.data
    resp.close()


def test_cors_allows_configured_origin(client, db_session):
    resp = client.get("/api/brands", headers={"Origin": "http://localhost:3000"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"


def test_cors_ignores_unknown_origin(client, db_session):
    resp = client.get("/api/brands", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers
