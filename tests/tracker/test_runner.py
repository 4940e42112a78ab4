# tests/tracker/test_runner.py
"""
Тесты запуска трекера.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config import settings
from src.tracker.runner import authenticate, resolve_track_path, run_tracker
from src.tracker.source import ManualLocationSource


class TestRunner:

    def test_resolve_track_path(self, project_root: Path, tmp_path: Path) -> None:
        assert resolve_track_path("data/sample_track.csv") == project_root / "data" / "sample_track.csv"
        assert resolve_track_path(str(tmp_path)) == tmp_path

    @pytest.mark.asyncio
    async def test_authenticate_with_token(self) -> None:
        auth = MagicMock(is_authenticated=True)
        auth.login = AsyncMock()

        await authenticate(auth)

        auth.login.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_authenticate_by_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.tracking, "AUTH_EMAIL", "alice@example.com")
        monkeypatch.setattr(settings.tracking, "AUTH_PASSWORD", "Str0ng!Pass")
        auth = MagicMock(is_authenticated=False)
        auth.login = AsyncMock()

        await authenticate(auth)

        auth.login.assert_awaited_once_with("alice@example.com", "Str0ng!Pass")

    @pytest.mark.asyncio
    async def test_authenticate_without_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.tracking, "AUTH_EMAIL", "")
        monkeypatch.setattr(settings.tracking, "AUTH_PASSWORD", "")

        with pytest.raises(RuntimeError):
            await authenticate(MagicMock(is_authenticated=False))

    @pytest.mark.asyncio
    async def test_run_until_shutdown(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.tracking, "AUTH_TOKEN", "tok")
        source = ManualLocationSource()
        shutdown = asyncio.Event()
        shutdown.set()

        await asyncio.wait_for(run_tracker(shutdown, source), timeout=2)

        assert source.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_permission_denied_ends_run(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings.tracking, "AUTH_TOKEN", "tok")
        shutdown = asyncio.Event()

        await asyncio.wait_for(run_tracker(shutdown, ManualLocationSource(permission_granted=False)), timeout=2)

        assert shutdown.is_set()

    @pytest.mark.asyncio
    async def test_missing_track_opens_no_clients(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setattr(settings.tracking, "REPLAY_CSV_PATH", str(tmp_path / "absent.csv"))
        auth_cls = MagicMock()
        sender_cls = MagicMock()
        monkeypatch.setattr("src.tracker.runner.AuthClient", auth_cls)
        monkeypatch.setattr("src.tracker.runner.RetrySender", sender_cls)

        with pytest.raises(FileNotFoundError):
            await run_tracker(asyncio.Event())

        auth_cls.assert_not_called()
        sender_cls.assert_not_called()
