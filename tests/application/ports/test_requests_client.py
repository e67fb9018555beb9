from __future__ import annotations

import json
from datetime import timedelta

import requests
from requests.structures import CaseInsensitiveDict

from application.ports.requests_client import RequestsHttpClient, status_text
from domain.request import (
    ApiKeyAuth,
    ApiKeyPlacement,
    BasicAuth,
    BearerAuth,
    BodyFormat,
    HttpRequestSpec,
    RequestBody,
    RequestDefinition,
    RequestMeta,
)


class DummyPrepared:
    def __init__(self, url, headers):
        self.url = url
        self.headers = headers


class DummyResponse:
    def __init__(self, status=200, text="", headers=None, reason="OK", url="http://api/x", sent=None):
        self.status_code = status
        self.text = text
        self.headers = CaseInsensitiveDict(headers or {})
        self.reason = reason
        self.elapsed = timedelta(milliseconds=0)
        self.request = DummyPrepared(url, sent or {})

    def json(self):
        return json.loads(self.text)


def _definition(method="GET", url="http://api/x", query=None, headers=None, body=None, auth=None):
    return RequestDefinition(
        meta=RequestMeta(name="t"),
        request=HttpRequestSpec(method=method, url=url, query=query or {}, headers=headers or {}, body=body),
        auth=auth,
    )


def _client(monkeypatch, response=None, exc=None):
    calls = []
    client = RequestsHttpClient(timeout_sec=7)

    def fake_request(**kwargs):
        calls.append(kwargs)
        if exc is not None:
            raise exc
        return response or DummyResponse()

    monkeypatch.setattr(client._session, "request", fake_request)
    return client, calls


def test_json_body_and_response_parsing(monkeypatch) -> None:
    # Arrange
    resp = DummyResponse(201, '{"id": 1}', {"Content-Type": "application/json; charset=utf-8"}, reason="Created")
    client, calls = _client(monkeypatch, resp)
    definition = _definition(
        "POST",
        body=RequestBody(format=BodyFormat.JSON, content={"name": "neo"}),
        query={"page": "2"},
    )

    # Act
    response = client.execute(definition)

    # Assert
    sent = calls[0]
    assert sent["method"] == "POST"
    assert sent["params"] == {"page": "2"}
    assert sent["timeout"] == 7
    assert json.loads(sent["data"]) == {"name": "neo"}
    assert sent["headers"]["Content-Type"] == "application/json"
    assert response.status == 201
    assert response.status_text == "Created"
    assert response.json == {"id": 1}
    assert response.headers["content-type"].startswith("application/json")
    assert response.timing.total >= 0
    assert response.timing.ttfb is not None


def test_explicit_content_type_is_kept(monkeypatch) -> None:
    client, calls = _client(monkeypatch)
    client.execute(
        _definition(
            "POST",
            headers={"content-type": "application/vnd.api+json"},
            body=RequestBody(format=BodyFormat.JSON, content={}),
        )
    )
    assert calls[0]["headers"] == {"content-type": "application/vnd.api+json"}


def test_non_json_content_type_is_not_parsed(monkeypatch) -> None:
    client, _ = _client(monkeypatch, DummyResponse(200, '{"a": 1}', {"Content-Type": "text/plain"}))
    assert client.execute(_definition()).json is None


def test_invalid_json_body_is_none(monkeypatch) -> None:
    client, _ = _client(monkeypatch, DummyResponse(200, "oops", {"Content-Type": "application/json"}))
    response = client.execute(_definition())
    assert response.json is None
    assert response.body == "oops"


def test_form_graphql_raw_bodies(monkeypatch) -> None:
    client, calls = _client(monkeypatch)

    client.execute(_definition("POST", body=RequestBody(format=BodyFormat.FORM, content={"a": 1, "b": "x"})))
    client.execute(
        _definition(
            "POST",
            body=RequestBody(format=BodyFormat.GRAPHQL, query="query { me }", variables={"id": 1}),
        )
    )
    client.execute(_definition("POST", body=RequestBody(format=BodyFormat.RAW, content="hello")))

    form, graphql, raw = calls
    assert form["data"] == [("a", "1"), ("b", "x")]
    assert form["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
    assert json.loads(graphql["data"]) == {"query": "query { me }", "variables": {"id": 1}}
    assert raw["data"] == b"hello"
    assert raw["headers"]["Content-Type"] == "text/plain"


def test_multipart_uses_files(monkeypatch) -> None:
    client, calls = _client(monkeypatch)
    client.execute(_definition("POST", body=RequestBody(format=BodyFormat.MULTIPART, content={"a": "1", "b": {"x": 1}})))
    assert calls[0]["files"] == {"a": (None, "1"), "b": (None, '{"x": 1}')}
    assert "Content-Type" not in calls[0]["headers"]


def test_auth_variants(monkeypatch) -> None:
    client, calls = _client(monkeypatch)

    client.execute(_definition(auth=BearerAuth(token="T1")))
    client.execute(_definition(auth=BasicAuth(username="u", password="p")))
    client.execute(_definition(auth=ApiKeyAuth(key="X-Api-Key", value="k")))
    client.execute(_definition(auth=ApiKeyAuth(key="api_key", value="k", placement=ApiKeyPlacement.QUERY)))

    bearer, basic, header_key, query_key = calls
    assert bearer["headers"]["Authorization"] == "Bearer T1"
    assert basic["auth"].username == "u"
    assert basic["auth"].password == "p"
    assert header_key["headers"]["X-Api-Key"] == "k"
    assert query_key["params"] == {"api_key": "k"}


def test_transport_error_becomes_status_zero(monkeypatch) -> None:
    client, _ = _client(monkeypatch, exc=requests.ConnectionError("connection refused"))

    response = client.execute(_definition(url="http://down/x"))

    assert response.status == 0
    assert response.status_text == "Error"
    assert response.body == "connection refused"
    assert response.json is None
    assert response.request.url == "http://down/x"


def test_status_text() -> None:
    assert status_text(404) == "Not Found"
    assert status_text(599) == "Unknown"
