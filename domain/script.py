# domain/script.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# スクリプト境界を越えられる値（JSON 互換）
ScriptValue = Union[None, bool, int, float, str, List["ScriptValue"], Dict[str, "ScriptValue"]]


class ScriptValueError(TypeError):
    pass


def normalize_script_value(value: Any) -> ScriptValue:
    """
    Convert a value produced by a script into a ScriptValue.
    Tuples become lists; anything outside the closed set raises ScriptValueError.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [normalize_script_value(v) for v in value]
    if isinstance(value, dict):
        out: Dict[str, ScriptValue] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise ScriptValueError(f"mapping keys must be str, got {type(k).__name__}")
            out[k] = normalize_script_value(v)
        return out
    raise ScriptValueError(f"unsupported variable type: {type(value).__name__}")


def to_reportable(value: Any) -> ScriptValue:
    # assertion の expected/actual 用。変換できない値は repr で残す
    try:
        return normalize_script_value(value)
    except ScriptValueError:
        return repr(value)


@dataclass(frozen=True)
class AssertionOutcome:
    passed: bool
    message: str
    expected: Any = None
    actual: Any = None


@dataclass(frozen=True)
class ScriptExecutionResult:
    success: bool
    error: Optional[str] = None
    logs: Tuple[str, ...] = ()
    variables: Dict[str, ScriptValue] = field(default_factory=dict)
    assertions: Tuple[AssertionOutcome, ...] = ()


def format_variable(value: Any) -> str:
    """Render a variable for interpolation into request text."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)
