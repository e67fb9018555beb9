# domain/response.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from domain.script import AssertionOutcome


@dataclass(frozen=True)
class RequestTiming:
    total: int
    ttfb: Optional[int] = None
    download: Optional[int] = None


@dataclass(frozen=True)
class RequestEcho:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Response:
    status: int
    status_text: str
    headers: Dict[str, str]
    body: str
    json: Any
    timing: RequestTiming
    request: RequestEcho
    # post-script の結果（runner が付与する）
    script_logs: Tuple[str, ...] = ()
    assertions: Tuple[AssertionOutcome, ...] = ()

    @property
    def is_http_success(self) -> bool:
        return 200 <= self.status < 400

    @property
    def assertions_passed(self) -> bool:
        return all(a.passed for a in self.assertions)

    @classmethod
    def error(cls, message: str, method: str = "UNKNOWN", url: str = "", total_ms: int = 0) -> "Response":
        """Zero-status response used for transport and pre-script failures."""
        return cls(
            status=0,
            status_text="Error",
            headers={},
            body=message,
            json=None,
            timing=RequestTiming(total=total_ms),
            request=RequestEcho(method=method, url=url, headers={}),
        )
