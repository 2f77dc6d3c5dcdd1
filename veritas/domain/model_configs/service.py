"""Model configuration service: the subsystem boundary.

Every configuration returned from here has been through the masking
projector. Stored records (with their envelopes) never leave this module.
"""
from typing import List, Optional

from veritas.domain.interfaces import ModelConfigStore
from veritas.domain.model_configs.masking import to_masked_view
from veritas.domain.model_configs.models import (
    ModelConfigRequest,
    ModelConfigResponse,
)
from veritas.errors import NotFound


class ModelConfigService:
    def __init__(self, store: ModelConfigStore):
        self._store = store

    def list_configs(self) -> List[ModelConfigResponse]:
        return [to_masked_view(c) for c in self._store.list_configs()]

    def get_config(self, config_id: str) -> ModelConfigResponse:
        config = self._store.get_config(config_id)
        if not config:
            raise NotFound()
        return to_masked_view(config)

    def get_default_config(self) -> Optional[ModelConfigResponse]:
        config = self._store.get_default_config()
        return to_masked_view(config) if config else None

    def create_config(self, request: ModelConfigRequest) -> ModelConfigResponse:
        config = self._store.create_config(
            name=request.name,
            provider=request.provider,
            base_url=request.base_url,
            model_id=request.model_id,
            api_key=request.api_key,
            is_default=request.is_default,
        )
        return to_masked_view(config)

    def update_config(self, config_id: str, request: ModelConfigRequest) -> ModelConfigResponse:
        config = self._store.update_config(
            config_id,
            name=request.name,
            provider=request.provider,
            base_url=request.base_url,
            model_id=request.model_id,
            api_key=request.api_key,
            is_default=request.is_default,
        )
        return to_masked_view(config)

    def delete_config(self, config_id: str) -> None:
        self._store.delete_config(config_id)
