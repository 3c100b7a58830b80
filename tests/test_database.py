"""Tests for per-workspace database setup and the first-open hooks."""

import threading

import pytest
from fastapi import HTTPException
from sqlalchemy import inspect

from patternport.core import config as core_config
from patternport.db import database


@pytest.fixture
def workspace_id(workspace):
    workspace_id = str(workspace)
    yield workspace_id
    database.dispose_workspace(workspace_id)
    database._workspace_locks.pop(workspace_id, None)


@pytest.fixture
def isolated_hooks(monkeypatch):
    hooks = []
    monkeypatch.setattr(database, "_workspace_init_hooks", hooks)
    return hooks


@pytest.mark.asyncio
async def test_session_local_is_migrated_and_cached(workspace_id, workspace, isolated_hooks):
    session_local = await database.get_session_local(workspace_id)

    assert (workspace / ".patternport_data" / "patternport.db").exists()
    assert "block_patterns" in inspect(database._engines[workspace_id]).get_table_names()
    assert await database.get_session_local(workspace_id) is session_local


@pytest.mark.asyncio
async def test_init_hooks_run_once_per_workspace(workspace_id, isolated_hooks):
    calls = []
    database.register_workspace_init_hook(lambda db, ws: calls.append(ws))

    await database.get_session_local(workspace_id)
    await database.get_session_local(workspace_id)

    assert calls == [workspace_id]


@pytest.mark.asyncio
async def test_init_hooks_run_off_the_event_loop_thread(workspace_id, isolated_hooks):
    threads = []
    database.register_workspace_init_hook(lambda db, ws: threads.append(threading.get_ident()))

    await database.get_session_local(workspace_id)

    assert len(threads) == 1
    assert threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_failing_hook_does_not_block_the_workspace(workspace_id, isolated_hooks):
    def broken(db, ws):
        raise RuntimeError("boom")

    database.register_workspace_init_hook(broken)

    session_local = await database.get_session_local(workspace_id)

    assert session_local is not None


def test_hooks_are_registered_once(isolated_hooks):
    def hook(db, ws):
        pass

    database.register_workspace_init_hook(hook)
    database.register_workspace_init_hook(hook)

    assert isolated_hooks == [hook]


@pytest.mark.asyncio
async def test_first_open_imports_theme_patterns_in_development(workspace_id, patterns_dir, monkeypatch):
    from patternport.services import io_service, pattern_service

    monkeypatch.setattr(database, "_workspace_init_hooks", [io_service.auto_import_on_first_open])
    monkeypatch.setattr(core_config.settings, "ENVIRONMENT", "development")
    patterns_dir.mkdir()
    (patterns_dir / "hero.php").write_text("<?php\n/**\n * Title: Hero\n */\n?>\n", encoding="utf-8")

    async with database.get_db_session_for_workspace(workspace_id) as db:
        assert pattern_service.get_by_slug(db, "hero") is not None


@pytest.mark.asyncio
async def test_unusable_workspace_is_a_server_error(tmp_path, isolated_hooks):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")

    with pytest.raises(HTTPException) as exc_info:
        await database.get_session_local(str(blocker))

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_get_db_rejects_bad_encoding():
    with pytest.raises(HTTPException) as exc_info:
        await database.get_db("abc").__anext__()

    assert exc_info.value.status_code == 400
