"""
API tests for the health and status endpoints.
"""


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_reports_capable_search(client):
    client.get("/api/search")

    body = client.get("/status").json()

    assert body["status"] == "healthy"
    assert body["components"]["database"]["status"] == "healthy"
    assert "password" not in body["components"]["database"]["url"]
    assert body["components"]["search"] == {"mode": "capable"}
    assert body["components"]["rate_limiter"]["backend"] == "memory"
    assert body["performance"]["request_count"] >= 1


def test_status_reports_degraded_search(client, store):
    store.similarity_enabled = False

    body = client.get("/status").json()

    assert body["status"] == "degraded"
    assert body["components"]["search"] == {"mode": "degraded"}


def test_status_reports_unreachable_database(client, store):
    store.available = False

    body = client.get("/status").json()

    assert body["status"] == "degraded"
    assert body["components"]["database"]["status"] == "unhealthy"
    assert body["components"]["search"] == {"mode": "degraded"}


def test_root_lists_endpoints(client):
    assert client.get("/").json()["endpoints"]["search"] == "/api/search"
