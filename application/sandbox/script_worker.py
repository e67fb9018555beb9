# application/sandbox/script_worker.py
"""
Child-process side of the sandbox. Runs exactly one script and streams every
event back over the pipe; the parent owns the deadline and kills this process.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from application.sandbox.radius_context import EVENT_DONE, EVENT_STARTED, RadiusContext
from application.sandbox.response_context import ResponseContext
from application.sandbox.restricted_globals import build_restricted_globals, compile_script
from domain.response import Response
from domain.script import ScriptValue


@dataclass(frozen=True)
class ScriptJob:
    script: str
    variables: Dict[str, ScriptValue] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)
    response: Optional[Response] = None


def error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def run_script_worker(conn: Any, job: ScriptJob) -> None:
    try:
        radius = RadiusContext(job.variables, job.env, conn.send)
        response = ResponseContext(job.response) if job.response is not None else None
        scope = build_restricted_globals(radius, conn.send, response)
        conn.send((EVENT_STARTED,))
        code = compile_script(job.script)
        exec(code, scope)
    except Exception as exc:
        conn.send((EVENT_DONE, False, error_message(exc)))
    else:
        conn.send((EVENT_DONE, True, None))
    finally:
        conn.close()
