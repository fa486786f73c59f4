"""Pytest configuration shared by the whole suite."""

from __future__ import annotations

import pytest

from tests import _ensure_repo_on_path


def pytest_configure(config: pytest.Config) -> None:
    _ensure_repo_on_path()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from real services and the developer's ``.env``."""

    from nomena.settings import get_settings

    monkeypatch.setenv("USE_SQLITE", "1")
    monkeypatch.setenv("LOCAL_FAVORITES_DIR", str(tmp_path / "local_favorites"))
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
