"""Health probes — liveness and readiness."""


async def test_liveness(client):
    response = await client.get("/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness(client):
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"database": "healthy", "storage": "healthy"},
    }


async def test_readiness_without_database(client, monkeypatch):
    import app.infrastructure.database as db_module

    monkeypatch.setattr(db_module, "db_manager", None)

    response = await client.get("/health/ready")

    assert response.status_code == 503
    assert response.json()["reason"] == "database_unavailable"
