# infrastructure/logging/console_logger.py
from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TextIO

from application.ports.logger import LoggerPort


@dataclass(frozen=True)
class ConsoleLogger(LoggerPort):
    """One `event {json}` line per call; stdout unless a stream is given."""

    bound: Dict[str, Any] = field(default_factory=dict)
    stream: Optional[TextIO] = None

    def bind(self, **fields: Any) -> "ConsoleLogger":
        merged = dict(self.bound)
        merged.update(fields)
        return ConsoleLogger(bound=merged, stream=self.stream)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit(event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit(event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit(event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit(event, fields)

    def _emit(self, event: str, fields: Dict[str, Any]) -> None:
        payload = dict(self.bound)
        payload.update(fields)
        payload.setdefault("type", event)
        print(
            f"{event} {json.dumps(payload, ensure_ascii=False, default=str)}",
            file=self.stream or sys.stdout,
            flush=True,
        )
