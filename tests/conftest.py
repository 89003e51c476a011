"""Shared test fixtures."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from tagsync.errors import PublishError
from tagsync.models import ApiEndpointConfig, LocaleConfig, SyncConfig
from tagsync.publisher import Activator
from tagsync.store import InMemoryTagStore

TAXONOMY_ROOT = "/content/exlm/taxonomy"


class FakeHttpClient:
    """Responde con datos predefinidos por (url, lang, Solution)."""

    def __init__(self) -> None:
        self.responses: Dict[Tuple[str, Optional[str], Optional[str]], Any] = {}
        self.calls: List[Tuple[str, Optional[str], Optional[str]]] = []

    def add(self, url: str, lang: str, data: Any, solution: Optional[str] = None) -> None:
        self.responses[(url, lang, solution)] = data

    def get_data(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        params = params or {}
        key = (url, params.get("lang"), params.get("Solution"))
        self.calls.append(key)
        value = self.responses.get(key, [])
        if isinstance(value, Exception):
            raise value
        return value


class RecordingActivator(Activator):
    """Registra los paths activados; puede fallar en un path concreto."""

    def __init__(self, fail_on: Optional[str] = None) -> None:
        self.activated: List[str] = []
        self.fail_on = fail_on

    def activate(self, path: str) -> None:
        if path == self.fail_on:
            raise PublishError(path, "replication agent unavailable")
        self.activated.append(path)


def make_config(*descriptors: str, locales: Tuple[Tuple[str, str], ...] = (("en", "en"),)) -> SyncConfig:
    return SyncConfig(
        apis=[ApiEndpointConfig.parse(d) for d in descriptors],
        locales=LocaleConfig.of(*locales),
        taxonomy_root=TAXONOMY_ROOT,
    )


@pytest.fixture
def fake_http() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def store() -> InMemoryTagStore:
    return InMemoryTagStore(
        pages=[
            TAXONOMY_ROOT,
            f"{TAXONOMY_ROOT}/levels",
            f"{TAXONOMY_ROOT}/solution",
            f"{TAXONOMY_ROOT}/levels/experienced",
        ]
    )


@pytest.fixture
def activator() -> RecordingActivator:
    return RecordingActivator()
