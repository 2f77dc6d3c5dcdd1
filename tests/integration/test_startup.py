"""Application startup behavior."""
import base64

import pytest
from fastapi.testclient import TestClient

from veritas.core.config import Settings
from veritas.main import create_app, lifespan


def _settings(encryption_key):
    return Settings(DATABASE_URL="sqlite://", ENCRYPTION_KEY=encryption_key, OPENAI_API_KEY=None, _env_file=None)


@pytest.mark.asyncio
@pytest.mark.parametrize("encryption_key", [
    None,
    "not base64!!",
    base64.b64encode(b"too-short").decode(),
])
async def test_invalid_key_stops_startup(encryption_key, capsys):
    app = create_app(settings=_settings(encryption_key))

    with pytest.raises(SystemExit) as exc_info:
        async with lifespan(app):
            pytest.fail("application started without a valid encryption key")

    assert exc_info.value.code == 1
    assert "CRITICAL STARTUP ERROR" in capsys.readouterr().out
    assert getattr(app.state, "context", None) is None


def test_valid_key_builds_context_and_serves():
    key = base64.b64encode(b"k" * 32).decode()
    app = create_app(settings=_settings(key))

    with TestClient(app) as client:
        assert client.get("/health/ready").status_code == 200
        assert client.get("/api/model-configs").json() == []
        assert app.state.context.settings.ENCRYPTION_KEY == key
