# domain/session.py
"""
Run-scoped variable store used for request chaining.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional

from domain.script import format_variable

SESSION_PRIORITY = 500


class SessionVariableSource:
    """Exposes a Session to the resolver. Highest priority by default."""

    name = "Session"

    def __init__(self, session: "Session", priority: int = SESSION_PRIORITY):
        self._session = session
        self.priority = priority

    def get(self, key: str) -> Optional[str]:
        if key not in self._session:
            return None
        return format_variable(self._session.get(key))


class Session:
    def __init__(self, initial_variables: Optional[Mapping[str, Any]] = None, priority: int = SESSION_PRIORITY):
        self._variables: Dict[str, Any] = {}
        self._priority = priority
        if initial_variables:
            self.merge(initial_variables)

    def get(self, key: str, default: Any = None) -> Any:
        return self._variables.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._variables[key] = value

    def delete(self, key: str) -> bool:
        if key not in self._variables:
            return False
        del self._variables[key]
        return True

    def has(self, key: str) -> bool:
        return key in self._variables

    def get_all(self) -> Dict[str, Any]:
        return dict(self._variables)

    def merge(self, variables: Mapping[str, Any]) -> None:
        """Existing keys are overwritten."""
        for key, value in variables.items():
            self._variables[key] = value

    def clear(self) -> None:
        self._variables.clear()

    @property
    def size(self) -> int:
        return len(self._variables)

    def variable_source(self) -> SessionVariableSource:
        return SessionVariableSource(self, self._priority)

    def __contains__(self, key: object) -> bool:
        return key in self._variables

    def __len__(self) -> int:
        return len(self._variables)

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)
