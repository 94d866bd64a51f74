from __future__ import annotations

import json
from datetime import datetime, timezone
from http import HTTPStatus
from types import SimpleNamespace

import pytest
import requests
from tenacity import stop_after_attempt, wait_none

from lifelog_cache.client import Client, _preview_response_body, _request_error_context
from lifelog_cache.exceptions import RemoteFetchError


def _make_client() -> Client:
    return Client(api_key="key", base_url="https://api.example.test", timeout=5)


def _fast_retries(monkeypatch: pytest.MonkeyPatch, attempts: int) -> None:
    monkeypatch.setattr(Client.request.retry, "stop", stop_after_attempt(attempts))  # type: ignore[attr-defined]
    monkeypatch.setattr(Client.request.retry, "wait", wait_none())  # type: ignore[attr-defined]
    monkeypatch.setattr(Client.request.retry, "sleep", lambda _seconds: None)  # type: ignore[attr-defined]


def _lifelogs_payload(*entries: dict[str, object], next_cursor: str | None = None) -> dict[str, object]:
    return {
        "data": {"lifelogs": list(entries)},
        "meta": {"lifelogs": {"nextCursor": next_cursor, "count": len(entries)}},
    }


def test_client_sets_api_key_header() -> None:
    client = _make_client()

    assert client.headers["X-API-Key"] == "key"
    assert client.headers["Accept"] == "application/json"
    assert client.timeout == 5.0


def test_client_init_raises_when_api_key_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIMITLESS_API_KEY", "")
    monkeypatch.setattr("lifelog_cache.client.settings.limitless.api_key", "")

    with pytest.raises(ValueError, match="must be provided"):
        Client()


def test_client_reads_api_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIMITLESS_API_KEY", "from-env")
    monkeypatch.setattr("lifelog_cache.client.settings.limitless.api_key", "from-file")

    assert Client().api_key == "from-env"


def test_fetch_page_parses_entries_and_cursor() -> None:
    client = _make_client()
    captured: dict[str, object] = {}
    payload = _lifelogs_payload(
        {"id": "a", "startTime": "2025-03-28T09:00:00Z", "title": "Standup", "contents": []},
        {"id": "b", "startTime": "2025-03-28T10:30:00-04:00", "title": "Lunch"},
        next_cursor="abc",
    )

    def fake_get(url: str, params: dict[str, object] | None = None, **_kwargs: object) -> SimpleNamespace:
        captured["url"] = url
        captured["params"] = params
        return SimpleNamespace(json=lambda: payload)

    client.get = fake_get  # type: ignore[method-assign]

    page = client.fetch_page(
        {"date": "2025-03-28", "cursor": None, "includeMarkdown": True, "includeHeadings": False}
    )

    assert captured["url"] == "https://api.example.test/v1/lifelogs"
    assert captured["params"] == {"date": "2025-03-28", "includeMarkdown": "true", "includeHeadings": "false"}
    assert [entry.id for entry in page.entries] == ["a", "b"]
    assert page.entries[0].start_time == datetime(2025, 3, 28, 9, tzinfo=timezone.utc)
    assert page.entries[1].start_time == datetime(2025, 3, 28, 14, 30, tzinfo=timezone.utc)
    assert json.loads(page.entries[0].payload)["title"] == "Standup"
    assert page.next_cursor == "abc"


def test_fetch_page_treats_empty_cursor_as_absent() -> None:
    client = _make_client()
    client.get = lambda *_args, **_kwargs: SimpleNamespace(  # type: ignore[method-assign]
        json=lambda: _lifelogs_payload(next_cursor="")
    )

    page = client.fetch_page({})

    assert page.entries == []
    assert page.next_cursor is None


def test_fetch_page_rejects_malformed_payloads() -> None:
    client = _make_client()
    client.get = lambda *_args, **_kwargs: SimpleNamespace(json=lambda: [1, 2, 3])  # type: ignore[method-assign]

    with pytest.raises(RemoteFetchError, match="Unexpected payload type"):
        client.fetch_page({})

    client.get = lambda *_args, **_kwargs: SimpleNamespace(  # type: ignore[method-assign]
        json=lambda: {"data": {"lifelogs": "nope"}}
    )
    with pytest.raises(RemoteFetchError, match="invalid 'lifelogs' list"):
        client.fetch_page({})

    client.get = lambda *_args, **_kwargs: SimpleNamespace(  # type: ignore[method-assign]
        json=lambda: _lifelogs_payload({"id": "x", "startTime": "yesterday-ish"})
    )
    with pytest.raises(RemoteFetchError, match="invalid startTime"):
        client.fetch_page({})


def test_fetch_page_wraps_unparseable_body() -> None:
    client = _make_client()

    def bad_json() -> object:
        raise requests.JSONDecodeError("Expecting value", "<html>", 0)

    client.get = lambda *_args, **_kwargs: SimpleNamespace(json=bad_json)  # type: ignore[method-assign]

    with pytest.raises(RemoteFetchError, match="Expecting value"):
        client.fetch_page({})


def test_request_applies_default_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    seen: dict[str, object] = {}

    def fake_request(_self: requests.Session, method: str, url: str, *_args, **kwargs):
        seen.update(kwargs)
        return SimpleNamespace(status_code=HTTPStatus.OK, text="", headers={})

    monkeypatch.setattr(requests.Session, "request", fake_request)

    Client.request.__wrapped__(client, "GET", f"{client.base_url}/v1/lifelogs")

    assert seen["timeout"] == 5.0


def test_request_retries_429_and_returns_success(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    _fast_retries(monkeypatch, 3)
    attempts = {"count": 0}

    def fake_request(_self: requests.Session, method: str, url: str, *_args, **_kwargs):
        assert method == "GET"
        attempts["count"] += 1
        status_code = HTTPStatus.OK if attempts["count"] >= 3 else HTTPStatus.TOO_MANY_REQUESTS
        return SimpleNamespace(status_code=status_code, text="", headers={})

    monkeypatch.setattr(requests.Session, "request", fake_request)

    response = client.request("GET", f"{client.base_url}/v1/lifelogs")

    assert response.status_code == HTTPStatus.OK
    assert attempts["count"] == 3


def test_request_raises_permission_error_for_unauthorized(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    monkeypatch.setattr(
        requests.Session,
        "request",
        lambda *_args, **_kwargs: SimpleNamespace(status_code=HTTPStatus.UNAUTHORIZED, text="bad", headers={}),
    )

    with pytest.raises(PermissionError, match="Authorization failed"):
        Client.request.__wrapped__(client, "GET", f"{client.base_url}/v1/lifelogs")


def test_request_raises_value_error_for_client_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    monkeypatch.setattr(
        requests.Session,
        "request",
        lambda *_args, **_kwargs: SimpleNamespace(status_code=HTTPStatus.BAD_REQUEST, text="bad date", headers={}),
    )

    with pytest.raises(ValueError, match="Received 400"):
        Client.request.__wrapped__(client, "GET", f"{client.base_url}/v1/lifelogs")


def test_fetch_page_reports_exhausted_retries_as_remote_fetch_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    _fast_retries(monkeypatch, 2)
    attempts = {"count": 0}

    def fake_request(*_args, **_kwargs):
        attempts["count"] += 1
        return SimpleNamespace(status_code=HTTPStatus.SERVICE_UNAVAILABLE, text="down", headers={})

    monkeypatch.setattr(requests.Session, "request", fake_request)

    with pytest.raises(RemoteFetchError, match="unexpected status code"):
        client.fetch_page({"direction": "desc"})
    assert attempts["count"] == 2


def test_fetch_page_reports_timeouts_as_remote_fetch_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _make_client()
    _fast_retries(monkeypatch, 1)

    def fake_request(*_args, **_kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests.Session, "request", fake_request)

    with pytest.raises(RemoteFetchError, match="read timed out"):
        client.fetch_page({})


def test_preview_response_body_and_error_context_helpers() -> None:
    long_text = "x" * 400
    preview = _preview_response_body(long_text)
    assert preview.endswith("...")
    assert len(preview) == 303

    response = requests.Response()
    response.status_code = 500
    response._content = b"error text"
    context = _request_error_context("https://api.limitless.ai/v1/lifelogs", response)
    assert "url=/v1/lifelogs" in context
    assert "content_type=unknown" in context
    assert "body=error text" in context
