"""Shared test fixtures for gitstate tests."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from gitstate.backend import FakeBackend
from gitstate.repository import Repository


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's gitstate settings and git identity out of tests."""
    for name in list(os.environ):
        if name.startswith("GITSTATE_"):
            monkeypatch.delenv(name)
    config_home = tmp_path / "xdg-config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def logger(mocker: MockerFixture) -> MagicMock:
    """A mock logger whose bind() returns itself, so events can be asserted."""
    mock = mocker.MagicMock()
    mock.bind.return_value = mock
    return mock


@pytest.fixture
def fake_backend(tmp_path: Path) -> FakeBackend:
    root = tmp_path / "fake-project"
    root.mkdir()
    return FakeBackend(root=root.resolve())


@pytest.fixture
def fake_repo(fake_backend: FakeBackend, logger: MagicMock) -> Repository:
    return Repository(fake_backend.root, fake_backend, logger=logger)
