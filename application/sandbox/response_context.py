# application/sandbox/response_context.py
from __future__ import annotations

import json
from typing import Any, Dict

from application.exceptions import ScriptError
from domain.response import Response

_UNPARSED = object()


class ResponseContext:
    """Read-only view of the response given to post-scripts."""

    def __init__(self, response: Response):
        self._status = response.status
        self._status_text = response.status_text
        self._headers = dict(response.headers)
        self._body = response.body
        self._json = response.json if response.json is not None else _UNPARSED

    @property
    def status(self) -> int:
        return self._status

    @property
    def status_text(self) -> str:
        return self._status_text

    statusText = status_text

    @property
    def headers(self) -> Dict[str, str]:
        # 毎回コピーを返す
        return dict(self._headers)

    @property
    def body(self) -> str:
        return self._body

    def json(self) -> Any:
        if self._json is _UNPARSED:
            try:
                self._json = json.loads(self._body)
            except (TypeError, ValueError):
                raise ScriptError("Response body is not valid JSON") from None
        return self._json
