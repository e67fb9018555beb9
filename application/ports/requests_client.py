# application/ports/requests_client.py
from __future__ import annotations

import json
import time
from http import HTTPStatus
from typing import Any, Dict, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

from application.ports.http_client import HttpClientPort
from domain.request import (
    ApiKeyAuth,
    ApiKeyPlacement,
    BasicAuth,
    BearerAuth,
    BodyFormat,
    RequestBody,
    ResolvedRequest,
)
from domain.response import RequestEcho, RequestTiming, Response

DEFAULT_TIMEOUT_SEC = 30

CONTENT_TYPES = {
    BodyFormat.JSON: "application/json",
    BodyFormat.FORM: "application/x-www-form-urlencoded",
    BodyFormat.GRAPHQL: "application/json",
    BodyFormat.RAW: "text/plain",
}


def status_text(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


def _has_header(headers: Dict[str, str], name: str) -> bool:
    lowered = name.lower()
    return any(k.lower() == lowered for k in headers)


class RequestsHttpClient(HttpClientPort):
    """
    requests.Session ベースの送信。Cookie は同じクライアント内で引き継がれる。
    """

    def __init__(self, base_headers: Optional[Dict[str, str]] = None, timeout_sec: float = DEFAULT_TIMEOUT_SEC):
        self._session = requests.Session()
        self._base_headers = base_headers or {}
        self._timeout = timeout_sec

    def execute(self, request: ResolvedRequest) -> Response:
        spec = request.request
        method = spec.method.upper()
        headers = dict(self._base_headers)
        headers.update(spec.headers)
        params: Dict[str, str] = dict(spec.query)
        auth = None

        if isinstance(request.auth, BearerAuth) and request.auth.token:
            headers["Authorization"] = f"Bearer {request.auth.token}"
        elif isinstance(request.auth, BasicAuth) and request.auth.username:
            auth = HTTPBasicAuth(request.auth.username, request.auth.password)
        elif isinstance(request.auth, ApiKeyAuth) and request.auth.key:
            if request.auth.placement == ApiKeyPlacement.QUERY:
                params[request.auth.key] = request.auth.value
            else:
                headers[request.auth.key] = request.auth.value

        body_kwargs = self._body_kwargs(spec.body, headers)

        started = time.perf_counter()
        try:
            resp = self._session.request(
                method=method,
                url=spec.url,
                params=params or None,
                headers=headers,
                auth=auth,
                timeout=self._timeout,
                **body_kwargs,
            )
        except requests.RequestException as e:
            # 送信失敗は例外にせず status 0 で返す
            elapsed = int((time.perf_counter() - started) * 1000)
            return Response(
                status=0,
                status_text="Error",
                headers={},
                body=str(e) or type(e).__name__,
                json=None,
                timing=RequestTiming(total=elapsed),
                request=RequestEcho(method=method, url=spec.url, headers=headers),
            )
        total = int((time.perf_counter() - started) * 1000)

        # elapsed はヘッダ受信完了までの時間
        ttfb = min(int(resp.elapsed.total_seconds() * 1000), total)
        sent_headers = {k: str(v) for k, v in resp.request.headers.items()}

        return Response(
            status=resp.status_code,
            status_text=resp.reason or status_text(resp.status_code),
            headers={k.lower(): v for k, v in resp.headers.items()},
            body=resp.text,
            json=self._parse_json(resp),
            timing=RequestTiming(total=total, ttfb=ttfb, download=total - ttfb),
            request=RequestEcho(method=method, url=str(resp.request.url or spec.url), headers=sent_headers),
        )

    def _body_kwargs(self, body: Optional[RequestBody], headers: Dict[str, str]) -> Dict[str, Any]:
        if body is None:
            return {}

        content_type = CONTENT_TYPES.get(body.format)
        if content_type and not _has_header(headers, "Content-Type"):
            headers["Content-Type"] = content_type

        if body.format == BodyFormat.JSON:
            return {"data": json.dumps(body.content, ensure_ascii=False).encode("utf-8")}
        if body.format == BodyFormat.FORM:
            return {"data": self._form_pairs(body.content)}
        if body.format == BodyFormat.GRAPHQL:
            payload = {"query": body.query, "variables": body.variables}
            return {"data": json.dumps(payload, ensure_ascii=False).encode("utf-8")}
        if body.format == BodyFormat.RAW:
            content = "" if body.content is None else str(body.content)
            return {"data": content.encode("utf-8")}
        if body.format == BodyFormat.MULTIPART:
            # boundary 付きの Content-Type は requests に任せる
            return {"files": self._multipart_fields(body.content)}
        return {}

    @staticmethod
    def _form_pairs(content: Any) -> Any:
        if isinstance(content, dict):
            return [(str(k), "" if v is None else str(v)) for k, v in content.items()]
        return content

    @staticmethod
    def _multipart_fields(content: Any) -> Dict[str, Tuple[None, str]]:
        if not isinstance(content, dict):
            return {}
        fields: Dict[str, Tuple[None, str]] = {}
        for key, value in content.items():
            text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
            fields[str(key)] = (None, text)
        return fields

    @staticmethod
    def _parse_json(resp: requests.Response) -> Any:
        content_type = resp.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            return None
        try:
            return resp.json()
        except ValueError:
            return None
