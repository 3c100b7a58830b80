"""Tests for the import/export routes.

These routes work in both modes; they are how a theme's pattern files are
brought into the database and written back out.
"""

import pytest
from fastapi.testclient import TestClient

from patternport.app_factory import create_app
from patternport.core.config import encode_workspace_id
from patternport.db.database import get_db
from patternport.schemas.pattern import PatternCreate
from patternport.services import pattern_service
from patternport.services.pattern_format import serialize_pattern

HERO_FILE = "<?php\n/**\n * Title: Hero\n * Categories: featured\n */\n\n?>\n<p>hero</p>"


@pytest.fixture
def client(session_local):
    app = create_app()

    def override_get_db():
        """Override the 'get_db' dependency for the tests."""
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client


@pytest.fixture
def io_url(workspace):
    return f"/workspaces/{encode_workspace_id(str(workspace))}/io"


@pytest.fixture
def theme_files(patterns_dir):
    patterns_dir.mkdir()
    (patterns_dir / "hero.php").write_text(HERO_FILE, encoding="utf-8")
    (patterns_dir / "broken.php").write_text("<p>no header</p>", encoding="utf-8")
    return patterns_dir


def test_list_files(client, io_url, theme_files, db_session):
    pattern_service.upsert(db_session, PatternCreate(title="Hero"))

    response = client.get(f"{io_url}/files")

    assert response.status_code == 200
    assert response.json() == [
        {"file": "broken.php", "slug": "broken", "imported": False},
        {"file": "hero.php", "slug": "hero", "imported": True},
    ]


def test_list_files_without_pattern_directory(client, io_url):
    response = client.get(f"{io_url}/files")

    assert response.status_code == 200
    assert response.json() == []


def test_import_everything(client, io_url, theme_files, db_session):
    response = client.post(f"{io_url}/import")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] == ["Hero"]
    assert body["errors"] == ["Could not parse pattern file: broken.php"]
    assert body["succeeded"] == 1
    assert body["message"].startswith("Successfully imported 1 patterns")

    stored = pattern_service.get_by_slug(db_session, "hero")
    assert stored.categories == ["featured"]
    assert stored.content == "<p>hero</p>"


def test_import_selected_files(client, io_url, theme_files):
    response = client.post(f"{io_url}/import", json={"files": ["hero.php", "../secret.php"]})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] == ["Hero"]
    assert body["errors"] == ["Invalid pattern file name: ../secret.php"]


def test_import_rewrites_files_canonically(client, io_url, theme_files, db_session):
    client.post(f"{io_url}/import", json={"files": ["hero.php"]})

    stored = pattern_service.get_by_slug(db_session, "hero")
    assert (theme_files / "hero.php").read_text(encoding="utf-8") == serialize_pattern(stored)


def test_export(client, io_url, patterns_dir, db_session):
    pattern_service.upsert(db_session, PatternCreate(title="Footer", keywords=["bottom"]))
    pattern_service.upsert(db_session, PatternCreate(title="Draft", status="draft"))

    response = client.post(f"{io_url}/export")

    assert response.status_code == 200
    body = response.json()
    assert body["files_created"] == ["footer.php"]
    assert body["errors"] == []
    assert body["path"] == str(patterns_dir)
    assert " * Keywords: bottom\n" in (patterns_dir / "footer.php").read_text(encoding="utf-8")


def test_invalid_workspace_encoding(client):
    response = client.post("/workspaces/abc/io/export")

    assert response.status_code == 400
