# tests/test_main.py
"""
Тесты выбора режима запуска.
"""

from __future__ import annotations

import pytest

import main


class TestResolveMode:

    def test_explicit_mode(self) -> None:
        assert main.resolve_mode(" Tracker ") == "tracker"

    def test_mode_from_argv(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(main.sys, "argv", ["main.py", "tracker"])

        assert main.resolve_mode(None) == "tracker"

    def test_mode_from_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(main.sys, "argv", ["main.py"])
        monkeypatch.setattr(main.settings.system, "COMPONENT_MODE", "api")

        assert main.resolve_mode(None) == "api"

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            main.resolve_mode("worker")
