import base64

import pytest
from fastapi.testclient import TestClient

from veritas.adapters.postgres.models import Base
from veritas.adapters.postgres.session import build_engine
from veritas.context import AppContext, build_context
from veritas.core.config import Settings
from veritas.domain.secrets.master_key import MasterKey, decode_master_key

TEST_ENCRYPTION_KEY = base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def master_key() -> MasterKey:
    return decode_master_key(TEST_ENCRYPTION_KEY)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite://",
        ENCRYPTION_KEY=TEST_ENCRYPTION_KEY,
        OPENAI_API_KEY=None,
        OPENAI_BASE_URL=None,
        TRACING_ENABLED=False,
        RUN_MIGRATIONS=False,
        _env_file=None,
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def context(settings, engine) -> AppContext:
    return build_context(settings, engine=engine)


@pytest.fixture
def db(context):
    session = context.open_session()
    yield session
    session.close()


@pytest.fixture
def store(context, db):
    return context.model_config_store(db)


@pytest.fixture
def app(context):
    from veritas.main import create_app

    app = create_app(context=context)
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
