"""SQLAlchemy Models for the model configuration store."""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_INDEX_NAME = "uq_model_configs_single_default"


class Base(DeclarativeBase):
    pass


class ModelConfig(Base):
    """Named LLM connection profile.

    api_key holds envelope text (v1:<nonce>:<ciphertext>) or the empty
    string for keyless providers. It is never plaintext.
    """
    __tablename__ = "model_configs"
    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    provider = Column(String(50), nullable=False)
    base_url = Column(String(512), nullable=False, default="")
    model_id = Column(String(255), nullable=False)
    api_key = Column(Text, nullable=False, default="")
    is_default = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        # At most one row may carry is_default = true.
        Index(
            DEFAULT_INDEX_NAME,
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default"),
        ),
    )

    def __repr__(self) -> str:
        return f"<ModelConfig id={self.id} name={self.name!r} default={self.is_default}>"


class Message(Base):
    """Chat message (owned by the conversation collaborator).

    Only model_config_id matters here: it is the reference counted by the
    delete guard.
    """
    __tablename__ = "messages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(String(64), nullable=False, index=True)
    model_config_id = Column(String(64), ForeignKey("model_configs.id"), nullable=True, index=True)
    role = Column(String(32), nullable=False)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)
