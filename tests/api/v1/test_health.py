from fastapi.testclient import TestClient


def test_health_check(client: TestClient):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_status"] == "healthy"
    assert data["environment"] == "test"


def test_health_check_reports_unreachable_database(client: TestClient, fake_session):
    async def execute(statement):
        raise ConnectionRefusedError("database is down")

    fake_session.execute = execute

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["database_status"] == "unhealthy"


def test_health_check_is_public(client: TestClient):
    response = client.get("/api/v1/health", headers={"Authorization": ""})

    assert response.status_code == 200
