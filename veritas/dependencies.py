"""Dependency Injection Module."""
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from veritas.context import AppContext
from veritas.domain.model_configs.probe import ConnectivityProber
from veritas.domain.model_configs.service import ModelConfigService


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_db(context: AppContext = Depends(get_context)) -> Generator[Session, None, None]:
    """One session per request, always closed."""
    db = context.open_session()
    try:
        yield db
    finally:
        db.close()


def get_model_config_service(
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
) -> ModelConfigService:
    return ModelConfigService(context.model_config_store(db))


def get_connectivity_prober(context: AppContext = Depends(get_context)) -> ConnectivityProber:
    """The test route takes only the prober; it never opens a session."""
    return context.prober
