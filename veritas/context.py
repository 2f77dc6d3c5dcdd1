"""Application context.

Built once at startup and passed to every component that needs the master
key, the database or the prober. Nothing in the domain looks these up from
module globals.
"""
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from veritas.adapters.postgres.model_config_store import PostgresModelConfigStore
from veritas.adapters.postgres.session import build_engine, build_session_factory
from veritas.core.config import Settings
from veritas.domain.interfaces import UsageCounter
from veritas.domain.model_configs.probe import ConnectivityProber
from veritas.domain.secrets.master_key import MasterKey, load_master_key


@dataclass(frozen=True)
class AppContext:
    settings: Settings
    master_key: MasterKey = field(repr=False)
    engine: Engine
    session_factory: sessionmaker
    prober: ConnectivityProber

    def open_session(self) -> Session:
        return self.session_factory()

    def model_config_store(self, db: Session, usage_counter: Optional[UsageCounter] = None) -> PostgresModelConfigStore:
        return PostgresModelConfigStore(db, self.master_key, usage_counter)

def build_context(settings: Settings, engine: Optional[Engine] = None) -> AppContext:
    """Resolve the master key first (fatal if invalid), then the database."""
    master_key = load_master_key(settings.ENCRYPTION_KEY or "")
    engine = engine or build_engine(settings.DATABASE_URL)
    return AppContext(
        settings=settings,
        master_key=master_key,
        engine=engine,
        session_factory=build_session_factory(engine),
        prober=ConnectivityProber(timeout=settings.PROBE_TIMEOUT_SECONDS),
    )
