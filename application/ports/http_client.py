from __future__ import annotations

from abc import ABC, abstractmethod

from domain.request import ResolvedRequest
from domain.response import Response


class HttpClientPort(ABC):
    @abstractmethod
    def execute(self, request: ResolvedRequest) -> Response:
        """
        Send the request. Transport failures (timeouts, connection errors)
        must not raise: they come back as a status 0 Response whose body is
        the failure message.
        """
        ...
