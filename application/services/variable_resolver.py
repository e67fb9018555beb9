from __future__ import annotations

import dataclasses
import random
import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from application.exceptions import ResolutionDepthError, UnresolvedVariableError
from application.ports.variable_source import VariableSource

VARIABLE_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
BUILTIN_PATTERN = re.compile(r"^\$(\w+)$")
ENV_PREFIX = "env."
DEFAULT_MAX_DEPTH = 10


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


BUILTINS: Dict[str, Callable[[], str]] = {
    "uuid": lambda: str(uuid.uuid4()),
    "timestamp": lambda: str(int(time.time() * 1000)),
    "isodate": _iso_now,
    "randomint": lambda: str(random.randrange(1_000_000)),
}


def has_variables(text: str) -> bool:
    return VARIABLE_PATTERN.search(text) is not None


@dataclass(frozen=True)
class ResolveResult:
    value: str
    unresolved: List[str]


class VariableResolver:
    """
    {{name}} を優先度付きソースから展開する。

    - Sources are checked from the highest priority down. Equal priorities keep
      the order they were passed in (stable sort), so callers decide ties.
    - {{env.NAME}} looks up NAME; the prefix is only a naming convention.
    - {{$uuid}}, {{$timestamp}}, {{$isoDate}}, {{$randomInt}} are generated on
      every occurrence and win over sources.
    - Resolved values are expanded again, up to max_depth levels.
    """

    def __init__(
        self,
        sources: Sequence[VariableSource],
        strict: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._sources = sorted(sources, key=lambda s: s.priority, reverse=True)
        self._strict = strict
        self._max_depth = max_depth

    @property
    def sources(self) -> List[VariableSource]:
        return list(self._sources)

    @property
    def strict(self) -> bool:
        return self._strict

    def resolve(self, template: str, strict: Optional[bool] = None) -> str:
        result = self.resolve_with_info(template)
        if self._is_strict(strict) and result.unresolved:
            raise UnresolvedVariableError(result.unresolved)
        return result.value

    def resolve_with_info(self, template: str, depth: int = 0) -> ResolveResult:
        if depth > self._max_depth:
            raise ResolutionDepthError(self._max_depth)

        unresolved: List[str] = []
        out: List[str] = []
        pos = 0
        for match in VARIABLE_PATTERN.finditer(template):
            out.append(template[pos:match.start()])
            pos = match.end()

            name = match.group(1).strip()
            value = self._builtin(name)
            if value is None:
                value = self._lookup(name)

            if value is None:
                # 未解決はそのまま残す（strict なら呼び出し側で例外）
                out.append(match.group(0))
                _add_once(unresolved, name)
                continue

            if has_variables(value):
                nested = self.resolve_with_info(value, depth + 1)
                value = nested.value
                for n in nested.unresolved:
                    _add_once(unresolved, n)
            out.append(value)

        out.append(template[pos:])
        return ResolveResult(value="".join(out), unresolved=unresolved)

    def resolve_object(self, value: Any, strict: Optional[bool] = None) -> Any:
        """
        Resolve every string leaf of nested dicts/lists/tuples/dataclasses and
        rebuild the same shape. In strict mode all unresolved names across the
        whole value are reported in one error.
        """
        resolved, unresolved = self.resolve_object_with_info(value)
        if self._is_strict(strict) and unresolved:
            raise UnresolvedVariableError(unresolved)
        return resolved

    def resolve_object_with_info(self, value: Any) -> Tuple[Any, List[str]]:
        """Lenient walk; returns the rebuilt value and the unresolved names."""
        unresolved: List[str] = []
        resolved = self._resolve_value(value, unresolved)
        return resolved, unresolved

    def _resolve_value(self, value: Any, unresolved: List[str]) -> Any:
        if value is None or isinstance(value, Enum):
            return value
        if isinstance(value, str):
            result = self.resolve_with_info(value)
            for n in result.unresolved:
                _add_once(unresolved, n)
            return result.value
        if isinstance(value, dict):
            return {k: self._resolve_value(v, unresolved) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve_value(v, unresolved) for v in value]
        if isinstance(value, tuple):
            return tuple(self._resolve_value(v, unresolved) for v in value)
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            changes = {
                f.name: self._resolve_value(getattr(value, f.name), unresolved)
                for f in dataclasses.fields(value)
                if f.init
            }
            return dataclasses.replace(value, **changes)
        # number / bool などはそのまま
        return value

    def _lookup(self, name: str) -> Optional[str]:
        key = name[len(ENV_PREFIX):] if name.startswith(ENV_PREFIX) else name
        for source in self._sources:
            value = source.get(key)
            if value is not None:
                return value
        return None

    def _builtin(self, name: str) -> Optional[str]:
        m = BUILTIN_PATTERN.match(name)
        if not m:
            return None
        generator = BUILTINS.get(m.group(1).lower())
        return generator() if generator else None

    def _is_strict(self, strict: Optional[bool]) -> bool:
        return self._strict if strict is None else strict


def _add_once(names: List[str], name: str) -> None:
    if name not in names:
        names.append(name)
