from datetime import datetime, timezone

from veritas.adapters.postgres.models import ModelConfig
from veritas.domain.model_configs.masking import to_masked_view
from veritas.domain.secrets.envelope import seal_credential


def test_masked_view_has_no_credential(master_key):
    envelope = seal_credential("sk-test-123", master_key)
    now = datetime.now(timezone.utc)
    config = ModelConfig(
        id="cfg-1",
        name="Default",
        provider="openai",
        base_url="https://api.openai.com/v1",
        model_id="gpt-4o-mini",
        api_key=envelope,
        is_default=True,
        created_at=now,
        updated_at=now,
    )

    view = to_masked_view(config)
    body = view.model_dump(by_alias=True)

    assert body["id"] == "cfg-1"
    assert body["modelId"] == "gpt-4o-mini"
    assert body["baseUrl"] == "https://api.openai.com/v1"
    assert body["isDefault"] is True
    assert "apiKey" not in body
    assert "api_key" not in view.model_dump()

    serialized = view.model_dump_json(by_alias=True)
    assert envelope not in serialized
    assert "sk-test-123" not in serialized
