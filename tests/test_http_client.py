from __future__ import annotations

import json
from typing import Any, List

import pytest
import requests

from tagsync import http_client as http_module
from tagsync.errors import FetchError
from tagsync.http_client import HttpClient

URL = "https://api/levels?page_size=1000"


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, raw: bytes = None) -> None:
        self.status_code = status_code
        self.url = URL
        if raw is not None:
            self.content = raw
        elif payload is not None:
            self.content = json.dumps(payload).encode("utf-8")
        else:
            self.content = b""

    def json(self) -> Any:
        return json.loads(self.content)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> HttpClient:
    monkeypatch.setattr(http_module.time, "sleep", lambda seconds: None)
    return HttpClient()


def _queue(monkeypatch: pytest.MonkeyPatch, client: HttpClient, *results: Any) -> List[dict]:
    """Programa las respuestas sucesivas de session.get y registra las llamadas."""
    pending = list(results)
    calls: List[dict] = []

    def fake_get(url, params=None, timeout=None):
        calls.append({"url": url, "params": params, "timeout": timeout})
        result = pending.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(client.session, "get", fake_get)
    return calls


def test_get_data_returns_data_array(monkeypatch, client) -> None:
    calls = _queue(monkeypatch, client, FakeResponse(200, {"data": [{"Name": "Experienced"}]}))

    data = client.get_data(URL, params={"lang": "fr"})

    assert data == [{"Name": "Experienced"}]
    assert calls == [{"url": URL, "params": {"lang": "fr"}, "timeout": (10.0, 30.0)}]


def test_get_data_uses_configured_timeouts(monkeypatch) -> None:
    client = HttpClient(connect_timeout=2.5, read_timeout=7.0)
    calls = _queue(monkeypatch, client, FakeResponse(200, {"data": []}))

    client.get_data(URL)

    assert calls[0]["timeout"] == (2.5, 7.0)


def test_get_data_no_content_is_empty(monkeypatch, client) -> None:
    _queue(monkeypatch, client, FakeResponse(204))

    assert client.get_data(URL) == []


def test_get_data_missing_data_field_is_empty(monkeypatch, client) -> None:
    _queue(monkeypatch, client, FakeResponse(200, {"total": 0}))

    assert client.get_data(URL) == []


def test_get_data_client_error_skips(monkeypatch, client) -> None:
    calls = _queue(monkeypatch, client, FakeResponse(404, {"error": "not found"}))

    assert client.get_data(URL) is None
    assert len(calls) == 1


def test_get_data_retries_server_errors(monkeypatch, client) -> None:
    calls = _queue(
        monkeypatch,
        client,
        FakeResponse(503),
        FakeResponse(200, {"data": ["Tutorial"]}),
    )

    assert client.get_data(URL) == ["Tutorial"]
    assert len(calls) == 2


def test_get_data_timeout_exhausts_retries(monkeypatch, client) -> None:
    calls = _queue(
        monkeypatch,
        client,
        requests.Timeout(),
        requests.Timeout(),
        requests.Timeout(),
    )

    with pytest.raises(FetchError) as exc_info:
        client.get_data(URL)

    assert exc_info.value.url == URL
    assert "timeout" in str(exc_info.value)
    assert len(calls) == 3


def test_get_data_connection_error_is_fetch_error(monkeypatch) -> None:
    monkeypatch.setattr(http_module.time, "sleep", lambda seconds: None)
    client = HttpClient(max_retries=1)
    _queue(monkeypatch, client, requests.ConnectionError("connection refused"))

    with pytest.raises(FetchError):
        client.get_data(URL)


def test_get_data_rate_limited_then_ok(monkeypatch, client) -> None:
    calls = _queue(
        monkeypatch,
        client,
        FakeResponse(429),
        FakeResponse(200, {"data": [{"Name": "Beginner"}]}),
    )

    assert client.get_data(URL) == [{"Name": "Beginner"}]
    assert len(calls) == 2


def test_get_data_invalid_json_is_fetch_error(monkeypatch, client) -> None:
    _queue(monkeypatch, client, FakeResponse(200, raw=b"<html>oops</html>"))

    with pytest.raises(FetchError):
        client.get_data(URL)


def test_get_data_non_list_data_is_fetch_error(monkeypatch, client) -> None:
    _queue(monkeypatch, client, FakeResponse(200, {"data": {"Name": "Experienced"}}))

    with pytest.raises(FetchError):
        client.get_data(URL)
