"""Integration tests for the /api/model-configs routes."""
import httpx

from veritas.adapters.postgres.models import Message, ModelConfig
from veritas.dependencies import get_connectivity_prober, get_db
from veritas.domain.model_configs.probe import ConnectivityProber

SECRET = "sk-test-abcdefghijklmnop"


def _payload(name="Primary", **overrides):
    body = {
        "name": name,
        "provider": "openai",
        "baseUrl": "https://api.openai.com/v1",
        "modelId": "gpt-4o-mini",
        "apiKey": SECRET,
        "isDefault": False,
    }
    body.update(overrides)
    return body


def _assert_masked(response, db=None):
    text = response.text
    assert "apiKey" not in text
    assert "api_key" not in text
    assert SECRET not in text
    if db is not None:
        for row in db.query(ModelConfig).all():
            if row.api_key:
                assert row.api_key not in text


class TestModelConfigCrud:
    def test_create_and_get(self, client, db):
        response = client.post("/api/model-configs", json=_payload())
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Primary"
        assert data["modelId"] == "gpt-4o-mini"
        assert data["isDefault"] is False
        assert "createdAt" in data and "updatedAt" in data
        _assert_masked(response, db)

        response = client.get(f"/api/model-configs/{data['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == data["id"]
        _assert_masked(response, db)

    def test_list(self, client, db):
        client.post("/api/model-configs", json=_payload("A"))
        client.post("/api/model-configs", json=_payload("B", isDefault=True))
        response = client.get("/api/model-configs")
        assert response.status_code == 200
        names = {c["name"]: c["isDefault"] for c in response.json()}
        assert names == {"A": False, "B": True}
        _assert_masked(response, db)

    def test_duplicate_name(self, client):
        client.post("/api/model-configs", json=_payload())
        response = client.post("/api/model-configs", json=_payload())
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_NAME"

    def test_missing_api_key(self, client):
        response = client.post("/api/model-configs", json=_payload(apiKey=""))
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_get_missing(self, client):
        response = client.get("/api/model-configs/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_update_moves_default(self, client):
        a = client.post("/api/model-configs", json=_payload("A", isDefault=True)).json()
        b = client.post("/api/model-configs", json=_payload("B")).json()

        response = client.put(f"/api/model-configs/{b['id']}", json=_payload("B", isDefault=True))
        assert response.status_code == 200
        assert response.json()["isDefault"] is True
        _assert_masked(response)

        assert client.get(f"/api/model-configs/{a['id']}").json()["isDefault"] is False

    def test_update_missing(self, client):
        response = client.put("/api/model-configs/nope", json=_payload())
        assert response.status_code == 404

    def test_delete(self, client):
        created = client.post("/api/model-configs", json=_payload()).json()
        response = client.delete(f"/api/model-configs/{created['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "Configuration deleted successfully"}
        assert client.get(f"/api/model-configs/{created['id']}").status_code == 404

    def test_delete_in_use(self, client, db):
        created = client.post("/api/model-configs", json=_payload()).json()
        db.add(Message(conversation_id="c1", model_config_id=created["id"], role="user", content="hi"))
        db.commit()

        response = client.delete(f"/api/model-configs/{created['id']}")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "IN_USE"


class TestModelConfigConnectionTest:
    def _override_prober(self, app, context, handler):
        prober = ConnectivityProber(timeout=5.0, transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_connectivity_prober] = lambda: prober

    def test_success(self, app, client, context, db):
        self._override_prober(app, context, lambda request: httpx.Response(200, json={"choices": []}))

        response = client.post("/api/model-configs/test", json={
            "baseUrl": "https://llm.example.com/v1", "modelId": "gpt-4o-mini", "apiKey": SECRET,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Connection successful"
        assert data["details"]["modelAvailable"] == "true"
        assert data["details"]["responseTime"].endswith("ms")
        assert "errorDetails" not in data
        assert db.query(ModelConfig).count() == 0

    def test_auth_failure_is_200(self, app, client, context):
        self._override_prober(app, context, lambda request: httpx.Response(401, json={"error": "unauthorized"}))

        response = client.post("/api/model-configs/test", json={
            "baseUrl": "", "modelId": "gpt-4o-mini", "apiKey": SECRET,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Authentication failed"
        assert data["errorDetails"] == "Invalid API key"
        assert SECRET not in response.text

    def test_does_not_open_a_session(self, app, client, context):
        self._override_prober(app, context, lambda request: httpx.Response(200, json={"choices": []}))

        def no_database():
            raise AssertionError("database session opened")

        app.dependency_overrides[get_db] = no_database

        response = client.post("/api/model-configs/test", json={
            "baseUrl": "", "modelId": "gpt-4o-mini", "apiKey": SECRET,
        })
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_header_unsafe_key_rejected(self, client):
        response = client.post("/api/model-configs/test", json={
            "baseUrl": "", "modelId": "gpt-4o-mini", "apiKey": "abc\ndef-secretpart",
        })
        assert response.status_code == 422
        assert "secretpart" not in response.text
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        response = client.post("/api/model-configs", json=_payload(apiKey="tok\u0000secretpart"))
        assert response.status_code == 422
        assert "secretpart" not in response.text


class TestHealth:
    def test_live(self, client):
        assert client.get("/health/live").json()["status"] == "ok"

    def test_ready(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "ok"
