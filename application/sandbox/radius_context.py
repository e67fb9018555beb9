# application/sandbox/radius_context.py
"""
The `radius` object available to pre/post scripts.
"""
from __future__ import annotations

import json
import time
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

from application.sandbox.expect import ExpectBuilder
from domain.script import AssertionOutcome, ScriptValue, format_variable, normalize_script_value

EVENT_STARTED = "started"
EVENT_LOG = "log"
EVENT_SET = "set"
EVENT_ASSERT = "assert"
EVENT_DONE = "done"

Emit = Callable[[tuple], None]


def format_log_arg(arg: Any) -> str:
    if isinstance(arg, (dict, list, tuple)):
        try:
            return json.dumps(arg, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(arg)
    return format_variable(arg)


class RadiusContext:
    """
    Every call is reported through `emit` as soon as it happens, so the
    parent keeps everything recorded before a timeout or crash.
    """

    def __init__(self, variables: Mapping[str, ScriptValue], env: Mapping[str, str], emit: Emit):
        self._variables: Dict[str, ScriptValue] = dict(variables)
        self._env = env
        self._emit = emit

    def get_variable(self, name: str) -> Any:
        return self._variables.get(name)

    def set_variable(self, name: str, value: Any) -> None:
        value = normalize_script_value(value)
        self._variables[name] = value
        self._emit((EVENT_SET, name, value))

    def get_env(self, name: str) -> Optional[str]:
        return self._env.get(name)

    def uuid(self) -> str:
        return str(uuid.uuid4())

    def timestamp(self) -> int:
        return int(time.time() * 1000)

    def log(self, *args: Any) -> None:
        self._emit((EVENT_LOG, " ".join(format_log_arg(a) for a in args)))

    def expect(self, actual: Any) -> ExpectBuilder:
        return ExpectBuilder(actual, self._record)

    getVariable = get_variable
    setVariable = set_variable
    getEnv = get_env

    def _record(self, outcome: AssertionOutcome) -> None:
        self._emit((EVENT_ASSERT, outcome))
