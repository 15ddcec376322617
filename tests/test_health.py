# tests/test_health.py
from folio.core.settings import settings


def test_ping(client):
    r = client.get(f"{settings.API_V1_STR}/health/ping")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["app"] == settings.APP_NAME


def test_db_check(client):
    r = client.get(f"{settings.API_V1_STR}/health/db")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
