"""Masking projector: the only way a stored configuration leaves the subsystem."""
from veritas.adapters.postgres.models import ModelConfig
from veritas.domain.model_configs.models import ModelConfigResponse


def to_masked_view(config: ModelConfig) -> ModelConfigResponse:
    # api_key is never copied
    return ModelConfigResponse(
        id=config.id,
        name=config.name,
        provider=config.provider,
        base_url=config.base_url or "",
        model_id=config.model_id,
        is_default=bool(config.is_default),
        created_at=config.created_at,
        updated_at=config.updated_at,
    )
