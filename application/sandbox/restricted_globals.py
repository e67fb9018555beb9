# application/sandbox/restricted_globals.py
"""
RestrictedPython compilation and the global scope scripts run in.

Only what is listed here exists for a script. Process, filesystem, import,
network and timer capabilities are bound to None so referencing them reads as
"undefined" instead of reaching the host.
"""
from __future__ import annotations

import json
import math
import operator
import re
import types
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from RestrictedPython import compile_restricted, safe_builtins
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from application.exceptions import ScriptError
from application.sandbox.radius_context import EVENT_LOG, Emit, RadiusContext
from application.sandbox.response_context import ResponseContext

SCRIPT_FILENAME = "<radius-script>"

BLOCKED_NAMES = (
    "open",
    "exec",
    "eval",
    "compile",
    "input",
    "globals",
    "locals",
    "vars",
    "getattr",
    "setattr",
    "delattr",
    "breakpoint",
    "memoryview",
    "os",
    "sys",
    "subprocess",
    "socket",
    "requests",
    "shutil",
    "pathlib",
    "time",
    "threading",
    "asyncio",
    "signal",
)

# モジュールそのものではなく必要な関数だけを公開する（json.codecs 等から辿れないように）
SAFE_MODULES: Dict[str, Any] = {
    "json": types.SimpleNamespace(loads=json.loads, dumps=json.dumps, JSONDecodeError=json.JSONDecodeError),
    "math": math,
    "re": types.SimpleNamespace(
        compile=re.compile,
        search=re.search,
        match=re.match,
        fullmatch=re.fullmatch,
        findall=re.findall,
        finditer=re.finditer,
        sub=re.sub,
        split=re.split,
        escape=re.escape,
        IGNORECASE=re.IGNORECASE,
        MULTILINE=re.MULTILINE,
        DOTALL=re.DOTALL,
        I=re.I,
        M=re.M,
        S=re.S,
    ),
    "datetime": types.SimpleNamespace(
        datetime=datetime,
        date=date,
        time=time,
        timedelta=timedelta,
        timezone=timezone,
    ),
}

_EXTRA_BUILTINS: Dict[str, Any] = {
    "list": list,
    "dict": dict,
    "set": set,
    "frozenset": frozenset,
    "enumerate": enumerate,
    "min": min,
    "max": max,
    "sum": sum,
    "any": any,
    "all": all,
    "map": map,
    "filter": filter,
    "reversed": reversed,
    "sorted": sorted,
    "KeyError": KeyError,
    "ScriptError": ScriptError,
}

_INPLACE_OPS: Dict[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "^=": operator.ixor,
    "|=": operator.ior,
}


def compile_script(script: str) -> Any:
    """Raises SyntaxError when the script is invalid or uses forbidden constructs."""
    try:
        return compile_restricted(script, filename=SCRIPT_FILENAME, mode="exec")
    except SyntaxError as exc:
        # compile_restricted はエラーメッセージのタプルを args[0] に入れる
        if exc.args and isinstance(exc.args[0], (tuple, list)):
            raise SyntaxError("; ".join(str(m) for m in exc.args[0])) from None
        raise


class ScriptPrinter:
    """Target of RestrictedPython's print() rewrite; lines go to the script log."""

    def __init__(self, emit: Emit):
        self._emit = emit
        self._lines: List[str] = []

    def _call_print(self, *objects: Any, sep: str = " ", end: str = "\n", **_kwargs: Any) -> None:
        line = sep.join(str(o) for o in objects)
        self._lines.append(line)
        self._emit((EVENT_LOG, line))

    def __call__(self) -> str:
        return "\n".join(self._lines)


def _safe_import(name: str, globals: Any = None, locals: Any = None, fromlist: Any = (), level: int = 0) -> Any:
    module = SAFE_MODULES.get(name)
    if module is None or level != 0:
        raise ImportError(f"module '{name}' is not available in scripts")
    return module


def _inplacevar(op: str, x: Any, y: Any) -> Any:
    fn = _INPLACE_OPS.get(op)
    if fn is None:
        raise SyntaxError(f"unsupported operator: {op}")
    return fn(x, y)


def _getitem(obj: Any, index: Any) -> Any:
    return obj[index]


def _apply(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


def build_restricted_globals(
    radius: RadiusContext,
    emit: Emit,
    response: Optional[ResponseContext] = None,
) -> Dict[str, Any]:
    builtins = dict(safe_builtins)
    builtins.update(_EXTRA_BUILTINS)
    builtins["__import__"] = _safe_import
    for name in BLOCKED_NAMES:
        builtins[name] = None

    scope: Dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": "radius_script",
        "__metaclass__": type,
        "_getattr_": safer_getattr,
        "_getitem_": _getitem,
        "_getiter_": iter,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
        "_inplacevar_": _inplacevar,
        "_apply_": _apply,
        "_print_": lambda _getattr_=None: ScriptPrinter(emit),
        "radius": radius,
    }
    scope.update(SAFE_MODULES)
    for name in BLOCKED_NAMES:
        scope[name] = None
    if response is not None:
        scope["response"] = response
    return scope
