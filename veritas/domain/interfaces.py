"""Domain interfaces for persistence stores."""
from abc import ABC, abstractmethod
from typing import List, Optional, Protocol

from veritas.adapters.postgres.models import ModelConfig


class UsageCounter(Protocol):
    """Lookup hook owned by the message-history collaborator.

    The store calls it before a delete. Any exception it raises is treated
    as a failed check, never as "unused".
    """
    def count_references(self, config_id: str) -> int:
        ...


class ModelConfigStore(ABC):
    @abstractmethod
    def list_configs(self) -> List[ModelConfig]: pass
    @abstractmethod
    def count_configs(self) -> int: pass
    @abstractmethod
    def get_config(self, config_id: str) -> Optional[ModelConfig]: pass
    @abstractmethod
    def get_default_config(self) -> Optional[ModelConfig]: pass
    @abstractmethod
    def create_config(self, name: str, provider: str, base_url: str, model_id: str,
                      api_key: str, is_default: bool) -> ModelConfig: pass
    @abstractmethod
    def update_config(self, config_id: str, name: str, provider: str, base_url: str,
                      model_id: str, api_key: str, is_default: bool) -> ModelConfig: pass
    @abstractmethod
    def delete_config(self, config_id: str) -> None: pass
    @abstractmethod
    def reveal_api_key(self, config: ModelConfig) -> str: pass
    @abstractmethod
    def reseal_legacy_credentials(self) -> int: pass
