"""Bootstrap Migrator.

Creates a default model configuration from the legacy single-profile
environment (OPENAI_API_KEY / OPENAI_BASE_URL) when the store is empty.
Runs once during startup, before the service accepts traffic.
"""
import logging
from typing import Optional

from veritas.core.config import Settings
from veritas.domain.interfaces import ModelConfigStore
from veritas.domain.model_configs.masking import to_masked_view
from veritas.domain.model_configs.models import ModelConfigResponse
from veritas.errors import DefaultConflict, DuplicateName

logger = logging.getLogger(__name__)

LEGACY_CONFIG_NAME = "Default"
LEGACY_PROVIDER = "openai"


def migrate_default_model_config(store: ModelConfigStore, settings: Settings) -> Optional[ModelConfigResponse]:
    """Create the legacy default configuration if no configurations exist.

    Idempotent by emptiness check. Two instances racing on a fresh store
    both pass the check; the loser's insert hits the unique name (or the
    single-default index) and is treated as a no-op.
    """
    if store.count_configs() > 0:
        logger.info("Model configurations already exist, skipping default config migration")
        return None

    api_key = settings.OPENAI_API_KEY
    if not api_key:
        logger.info("OPENAI_API_KEY not set, skipping default config migration")
        return None

    logger.info("Creating default model configuration from environment variables")
    try:
        config = store.create_config(
            name=LEGACY_CONFIG_NAME,
            provider=LEGACY_PROVIDER,
            base_url=settings.legacy_base_url,
            model_id=settings.DEFAULT_MODEL_ID,
            api_key=api_key,
            is_default=True,
        )
    except (DuplicateName, DefaultConflict):
        logger.info("Default model configuration already created by another instance")
        return None

    logger.info("Default model configuration created: %s (ID: %s)", config.name, config.id)
    return to_masked_view(config)
