from fastapi.testclient import TestClient

from verifund.main import app


def test_health():
    with TestClient(app) as c:
        r = c.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}
        assert r.headers["X-Request-ID"]


def test_startup_seeds_php_rate():
    from verifund.storage.base import get_record_store
    with TestClient(app):
        store = get_record_store()
    active = [r for r in store.rates if r.from_currency == "PHP" and r.to_currency == "PHP" and r.is_active]
    assert len(active) == 1
    assert active[0].source == "system"


def test_request_id_is_echoed():
    with TestClient(app) as c:
        r = c.get("/health", headers={"X-Request-ID": "req-123"})
        assert r.headers["X-Request-ID"] == "req-123"
