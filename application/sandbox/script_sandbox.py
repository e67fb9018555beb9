# application/sandbox/script_sandbox.py
from __future__ import annotations

import multiprocessing
import time
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from application.ports.logger import LoggerPort, NullLogger
from application.sandbox.radius_context import (
    EVENT_ASSERT,
    EVENT_DONE,
    EVENT_LOG,
    EVENT_SET,
    EVENT_STARTED,
)
from application.sandbox.script_worker import ScriptJob, run_script_worker
from domain.response import Response
from domain.script import (
    AssertionOutcome,
    ScriptExecutionResult,
    ScriptValue,
    normalize_script_value,
)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_STARTUP_TIMEOUT_SEC = 30.0


class ScriptSandbox:
    """
    Runs pre/post scripts in a separate process.

    Each run gets a fresh child process executing RestrictedPython code. The
    child reports logs, variable writes and assertions as they happen; when the
    time limit passes the child is terminated, so a script that never yields
    is still stopped. Whatever was reported before that point is returned.

    The variable map survives between run_pre and run_post of one request and
    is cleared by reset_context().
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        env: Optional[Mapping[str, str]] = None,
        startup_timeout_sec: float = DEFAULT_STARTUP_TIMEOUT_SEC,
        start_method: Optional[str] = None,
        logger: Optional[LoggerPort] = None,
    ):
        self._timeout_ms = timeout_ms
        self._env = MappingProxyType(dict(env or {}))
        self._startup_timeout_sec = startup_timeout_sec
        self._mp = multiprocessing.get_context(start_method)
        self._logger = logger or NullLogger()
        self._variables: Dict[str, ScriptValue] = {}

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def env(self) -> Mapping[str, str]:
        return self._env

    def run_pre(self, script: str) -> ScriptExecutionResult:
        return self._execute(script, None)

    def run_post(self, script: str, response: Response) -> ScriptExecutionResult:
        return self._execute(script, response)

    def reset_context(self) -> None:
        self._variables = {}

    def set_variables(self, variables: Mapping[str, Any]) -> None:
        for key, value in variables.items():
            self._variables[key] = normalize_script_value(value)

    def get_variables(self) -> Dict[str, ScriptValue]:
        return dict(self._variables)

    def _execute(self, script: str, response: Optional[Response]) -> ScriptExecutionResult:
        job = ScriptJob(
            script=script,
            variables=dict(self._variables),
            env=dict(self._env),
            response=response,
        )
        recv_conn, send_conn = self._mp.Pipe(duplex=False)
        process = self._mp.Process(
            target=run_script_worker,
            args=(send_conn, job),
            name="radius-script",
            daemon=True,
        )

        logs: List[str] = []
        written: Dict[str, ScriptValue] = {}
        assertions: List[AssertionOutcome] = []
        success = False
        error: Optional[str] = None
        crashed = False
        finished = False

        process.start()
        send_conn.close()
        try:
            started = False
            deadline = time.monotonic() + self._startup_timeout_sec
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0 or not recv_conn.poll(remaining):
                    if started:
                        error = f"Script execution timed out after {self._timeout_ms} ms"
                        self._logger.warning("script.timeout", timeout_ms=self._timeout_ms)
                    else:
                        error = f"Script process did not start within {self._startup_timeout_sec} s"
                    break
                try:
                    event = recv_conn.recv()
                except EOFError:
                    crashed = True
                    finished = True
                    break

                kind = event[0]
                if kind == EVENT_STARTED:
                    started = True
                    deadline = time.monotonic() + self._timeout_ms / 1000.0
                elif kind == EVENT_LOG:
                    logs.append(event[1])
                elif kind == EVENT_SET:
                    written[event[1]] = event[2]
                elif kind == EVENT_ASSERT:
                    assertions.append(event[1])
                elif kind == EVENT_DONE:
                    success, error = event[1], event[2]
                    finished = True
                    break
        finally:
            recv_conn.close()
            self._stop(process, finished)

        if crashed:
            error = f"Script process exited unexpectedly (exit code {process.exitcode})"

        self._variables.update(written)
        self._logger.debug(
            "script.finished",
            success=success,
            logs=len(logs),
            variables=sorted(written),
            assertions=len(assertions),
        )
        return ScriptExecutionResult(
            success=success,
            error=error,
            logs=tuple(logs),
            variables=written,
            assertions=tuple(assertions),
        )

    def _stop(self, process: Any, finished: bool) -> None:
        if finished:
            process.join(timeout=1.0)
        if process.is_alive():
            process.terminate()
            process.join(timeout=1.0)
        if process.is_alive():
            process.kill()
            process.join()
