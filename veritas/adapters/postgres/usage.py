"""Message reference counter used by the delete guard."""
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from veritas.adapters.postgres.models import Message


class PostgresMessageUsageCounter:
    """Counts chat messages that reference a model configuration."""

    def __init__(self, db: Session):
        self._db = db

    def count_references(self, config_id: str) -> int:
        stmt = select(func.count(Message.id)).where(Message.model_config_id == config_id)
        return int(self._db.execute(stmt).scalar_one())
