# application/ports/variable_source.py
from __future__ import annotations

from typing import Optional, Protocol


class VariableSource(Protocol):
    """
    Named, priority-ranked lookup used by the resolver.
    Higher priority is consulted first. get() returns None when absent.
    """

    name: str
    priority: int

    def get(self, key: str) -> Optional[str]:
        ...
