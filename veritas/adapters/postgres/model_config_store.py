"""PostgresModelConfigStore - Model configuration storage with envelope-encrypted credentials."""
import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from veritas.adapters.postgres.models import DEFAULT_INDEX_NAME, ModelConfig, utcnow
from veritas.adapters.postgres.usage import PostgresMessageUsageCounter
from veritas.domain.interfaces import ModelConfigStore, UsageCounter
from veritas.domain.model_configs.models import requires_api_key
from veritas.domain.secrets.envelope import (
    RawLegacyCredential,
    open_credential,
    parse_stored_credential,
    seal_credential,
)
from veritas.domain.secrets.master_key import MasterKey
from veritas.errors import (
    CheckFailed,
    DefaultConflict,
    DuplicateName,
    InUse,
    InvalidCredential,
    NotFound,
)
from veritas.utils.id import new_config_id

logger = logging.getLogger(__name__)


class PostgresModelConfigStore(ModelConfigStore):
    """Database-backed model configuration store.

    Invariants held between operations:
        - names are unique (unique constraint, pre-checked for a clean error)
        - at most one row has is_default = true (partial unique index; the
          clear pass and the write share one transaction)
        - api_key is envelope text or empty, sealed before it reaches the session
    """

    def __init__(self, db: Session, master_key: MasterKey, usage_counter: Optional[UsageCounter] = None):
        """Initialize store.

        Args:
            db: SQLAlchemy database session
            master_key: Key used to seal and open credentials
            usage_counter: Delete guard hook (defaults to counting messages)
        """
        self._db = db
        self._master_key = master_key
        self._usage = usage_counter or PostgresMessageUsageCounter(db)

    # ---- reads ----

    def list_configs(self) -> List[ModelConfig]:
        return self._db.query(ModelConfig).order_by(ModelConfig.created_at, ModelConfig.name).all()

    def count_configs(self) -> int:
        return self._db.query(ModelConfig).count()

    def get_config(self, config_id: str) -> Optional[ModelConfig]:
        return self._db.query(ModelConfig).filter(ModelConfig.id == config_id).first()

    def get_default_config(self) -> Optional[ModelConfig]:
        return self._db.query(ModelConfig).filter(ModelConfig.is_default.is_(True)).first()

    # ---- writes ----

    def create_config(self, name: str, provider: str, base_url: str, model_id: str,
                      api_key: str, is_default: bool) -> ModelConfig:
        self._check_credential(provider, api_key)
        if self._name_taken(name):
            raise DuplicateName()

        now = utcnow()
        config = ModelConfig(
            id=new_config_id(),
            name=name,
            provider=provider,
            base_url=base_url or "",
            model_id=model_id,
            api_key=self._seal(api_key),
            is_default=is_default,
            created_at=now,
            updated_at=now,
        )

        try:
            if is_default:
                self._clear_defaults()
            self._db.add(config)
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise self._translate_integrity_error(e) from None
        except Exception:
            self._db.rollback()
            raise

        logger.info("Model configuration created: %s (ID: %s)", config.name, config.id)
        return config

    def update_config(self, config_id: str, name: str, provider: str, base_url: str,
                      model_id: str, api_key: str, is_default: bool) -> ModelConfig:
        config = self.get_config(config_id)
        if not config:
            raise NotFound()

        self._check_credential(provider, api_key)
        if name != config.name and self._name_taken(name):
            raise DuplicateName()

        # Re-sealed on every save, even when the plaintext is unchanged.
        sealed = self._seal(api_key)
        becomes_default = is_default and not config.is_default

        try:
            if becomes_default:
                self._clear_defaults(exclude_id=config_id)
            config.name = name
            config.provider = provider
            config.base_url = base_url or ""
            config.model_id = model_id
            config.api_key = sealed
            config.is_default = is_default
            config.updated_at = utcnow()
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise self._translate_integrity_error(e) from None
        except Exception:
            self._db.rollback()
            raise

        logger.info("Model configuration updated: %s (ID: %s)", config.name, config.id)
        return config

    def delete_config(self, config_id: str) -> None:
        # Row lock held until commit; messages.model_config_id references it
        config = (
            self._db.query(ModelConfig)
            .filter(ModelConfig.id == config_id)
            .with_for_update()
            .first()
        )
        if not config:
            raise NotFound()

        try:
            references = self._usage.count_references(config_id)
        except Exception as e:
            self._db.rollback()
            logger.error("Usage check failed for configuration %s: %s", config_id, type(e).__name__)
            raise CheckFailed() from e

        if references > 0:
            self._db.rollback()
            raise InUse()

        try:
            self._db.delete(config)
            self._db.commit()
        except IntegrityError:
            # A message referencing the row was written after the count
            self._db.rollback()
            raise InUse() from None
        except Exception:
            self._db.rollback()
            raise

        logger.info("Model configuration deleted: %s", config_id)

    # ---- credentials ----

    def reveal_api_key(self, config: ModelConfig) -> str:
        """Decrypt a stored credential for the outbound chat client.

        WARNING: returns the raw credential. Never expose it through an API
        response or a log line.
        """
        if not config.api_key:
            return ""
        return open_credential(config.api_key, self._master_key)

    def reseal_legacy_credentials(self) -> int:
        """Seal rows still holding pre-encryption plaintext credentials.

        Returns the number of rows rewritten. All rows are rewritten in one
        transaction or none are.
        """
        resealed = 0
        try:
            for config in self._db.query(ModelConfig).all():
                if not config.api_key:
                    continue
                stored = parse_stored_credential(config.api_key)
                if isinstance(stored, RawLegacyCredential):
                    config.api_key = self._seal(stored.value)
                    config.updated_at = utcnow()
                    resealed += 1
            if resealed:
                self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        if resealed:
            logger.warning("Sealed %d legacy plaintext credential(s)", resealed)
        return resealed

    # ---- helpers ----

    def _seal(self, api_key: str) -> str:
        if not api_key:
            return ""
        return seal_credential(api_key, self._master_key)

    def _check_credential(self, provider: str, api_key: str) -> None:
        if not api_key and requires_api_key(provider):
            raise InvalidCredential()

    def _name_taken(self, name: str) -> bool:
        return self._db.query(ModelConfig.id).filter(ModelConfig.name == name).first() is not None

    def _clear_defaults(self, exclude_id: Optional[str] = None) -> None:
        # Runs inside the caller's transaction, before the new default is flushed.
        stmt = update(ModelConfig).where(ModelConfig.is_default.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(ModelConfig.id != exclude_id)
        self._db.execute(stmt.values(is_default=False))

    @staticmethod
    def _translate_integrity_error(e: IntegrityError):
        orig = getattr(e, "orig", None) or e
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        if constraint:
            is_default_conflict = constraint == DEFAULT_INDEX_NAME
        else:
            # First line only: names the constraint or column, never row values
            summary = (str(orig).splitlines() or [""])[0].lower()
            is_default_conflict = DEFAULT_INDEX_NAME in summary or "model_configs.is_default" in summary
        if is_default_conflict:
            logger.warning("Concurrent default assignment rejected by the database")
            return DefaultConflict()
        return DuplicateName()
