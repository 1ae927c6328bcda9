"""Shared fixtures: a throwaway vault plus recording host collaborators."""

from __future__ import annotations

from pathlib import Path

import pytest

from deadline.app import DeadlineApp
from deadline.config import DeadlineConfig


class MockNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


class MockWorkspace:
    def __init__(self) -> None:
        self.opened: list[str] = []

    async def open_document(self, path: str) -> None:
        self.opened.append(path)


@pytest.fixture
def config(tmp_path: Path) -> DeadlineConfig:
    vault_dir = tmp_path / "vault"
    vault_dir.mkdir()
    return DeadlineConfig(vault_dir=vault_dir)


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def workspace() -> MockWorkspace:
    return MockWorkspace()


@pytest.fixture
def app(config: DeadlineConfig, notifier: MockNotifier, workspace: MockWorkspace) -> DeadlineApp:
    return DeadlineApp(config, workspace=workspace, notifier=notifier)
