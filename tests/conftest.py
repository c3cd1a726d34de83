"""Shared pytest fixtures for GHDEPUP tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from ghdepup.config.settings import ENV_PREFIX, Settings

# Enable pytest-asyncio for async test support
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's config files and GHDEPUP_ variables out of every test."""
    monkeypatch.setattr("ghdepup.config.manager.CONFIG_FILE", tmp_path / "no-global-config")
    monkeypatch.chdir(tmp_path)
    for key in Settings.get_config_keys():
        monkeypatch.delenv(f"{ENV_PREFIX}{key}", raising=False)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes text to a file under tmp_path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def hyper_declaration() -> str:
    """Declaration of a dependency on hyper 0.14.x."""
    return (
        "# hyper, pinned below 1.0\n"
        'HYPER_GH_PROJECT="hyperium/hyper"\n'
        'HYPER_GH_TAG_PREFIX="v"\n'
        'HYPER_GH_VERSION_REQ=">=0.14, <1"\n'
    )


@pytest.fixture
def hyper_tags() -> list[str]:
    """Tags of hyperium/hyper as listed by the API (newest first)."""
    return ["v1.0.0", "v0.14.26", "v0.14.0", "v0.13.0", "not-a-version"]


@pytest.fixture
def no_sleep() -> Callable[[float], object]:
    """Async sleeper that records delays instead of sleeping."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep
