"""Shared fixtures: a theme workspace on disk with a migrated SQLite database."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from patternport.core import config as core_config
from patternport.db.database import run_migrations_for_workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A theme directory used as workspace."""
    path = tmp_path / "theme"
    path.mkdir()
    return path


@pytest.fixture
def patterns_dir(workspace: Path) -> Path:
    return workspace / core_config.settings.PATTERNS_DIRNAME


@pytest.fixture
def session_local(workspace: Path):
    """Session factory bound to a workspace database migrated with the real Alembic migrations."""
    db_url = core_config.get_database_url_for_workspace(str(workspace))
    engine = create_engine(db_url, connect_args={"check_same_thread": False})
    run_migrations_for_workspace(engine, Path(db_url.replace("sqlite:///", "")))
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_local):
    db = session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def file_mode(monkeypatch):
    monkeypatch.setattr(core_config.settings, "MODE", "file")


@pytest.fixture
def api_mode(monkeypatch):
    monkeypatch.setattr(core_config.settings, "MODE", "api")
