from __future__ import annotations

import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy.orm import sessionmaker  # noqa: E402

from dsaplanner.config import Settings  # noqa: E402
from dsaplanner.database import Base, build_engine  # noqa: E402
from dsaplanner import models  # noqa: E402,F401
from dsaplanner.services.progress_service import ScheduleStore  # noqa: E402
from dsaplanner.telemetry import clear_listeners, register_listener  # noqa: E402


@pytest.fixture(autouse=True)
def no_llm_credentials(monkeypatch):
    for name in ("GROQ_API_KEY", "GEMINI_API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, groq_api_key="test-groq-key", database_url="sqlite://")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> ScheduleStore:
    return ScheduleStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def events():
    captured = []
    register_listener(captured.append)
    yield captured
    clear_listeners()
