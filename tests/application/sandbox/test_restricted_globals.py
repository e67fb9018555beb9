from __future__ import annotations

import pytest

from application.sandbox.radius_context import EVENT_ASSERT, EVENT_LOG, EVENT_SET, RadiusContext
from application.sandbox.response_context import ResponseContext
from application.sandbox.restricted_globals import (
    BLOCKED_NAMES,
    build_restricted_globals,
    compile_script,
)
from tests.mock_http_client import make_response


def _run(script, variables=None, env=None, response=None):
    """Execute in-process and return the emitted events."""
    events = []
    radius = RadiusContext(variables or {}, env or {}, events.append)
    ctx = ResponseContext(response) if response is not None else None
    scope = build_restricted_globals(radius, events.append, ctx)
    exec(compile_script(script), scope)
    return events


class TestScriptApi:
    def test_set_and_get_variable(self) -> None:
        events = _run(
            "radius.set_variable('next', radius.get_variable('id') + 1)\n"
            "radius.setVariable('ok', True)\n",
            variables={"id": 41},
        )
        assert events == [(EVENT_SET, "next", 42), (EVENT_SET, "ok", True)]

    def test_log_and_print_are_captured(self, capsys) -> None:
        events = _run("radius.log('a', 1, {'k': 'v'})\nprint('b', 2)\n")
        assert events == [(EVENT_LOG, 'a 1 {"k": "v"}'), (EVENT_LOG, "b 2")]
        assert capsys.readouterr().out == ""

    def test_log_renders_scalars_like_variables(self) -> None:
        events = _run("radius.log(True, False, None, 1.5, [True, None])")
        assert events == [(EVENT_LOG, "true false null 1.5 [true, null]")]

    def test_get_env_reads_snapshot(self, monkeypatch) -> None:
        monkeypatch.setenv("HOST_ONLY", "leak")
        events = _run(
            "radius.log(radius.get_env('API_KEY'), radius.getEnv('HOST_ONLY'))",
            env={"API_KEY": "k1"},
        )
        assert events == [(EVENT_LOG, "k1 null")]

    def test_expect_records_assertions(self) -> None:
        events = _run(
            "radius.expect(response.status).to_be(200)\n"
            "radius.expect(response.json()['items']).toContain(2)\n",
            response=make_response(200, {"items": [1, 2]}),
        )
        outcomes = [e[1] for e in events if e[0] == EVENT_ASSERT]
        assert [o.passed for o in outcomes] == [True, True]

    def test_safe_modules_available(self) -> None:
        events = _run(
            "import json\n"
            "from math import floor\n"
            "radius.log(json.dumps({'n': floor(2.7)}), re.sub('a', 'b', 'aa'))\n"
        )
        assert events == [(EVENT_LOG, '{"n": 2} bb')]

    def test_comprehensions_and_augmented_assignment(self) -> None:
        events = _run(
            "total = 0\n"
            "for x in [1, 2, 3]:\n"
            "    total += x\n"
            "radius.set_variable('total', total)\n"
            "radius.set_variable('sq', [i * i for i in range(3)])\n"
        )
        assert events == [(EVENT_SET, "total", 6), (EVENT_SET, "sq", [0, 1, 4])]

    def test_tuple_values_become_lists(self) -> None:
        events = _run("radius.set_variable('pair', (1, 2))")
        assert events == [(EVENT_SET, "pair", [1, 2])]


class TestRestrictions:
    @pytest.mark.parametrize("name", ["open", "os", "sys", "subprocess", "socket", "getattr", "pathlib"])
    def test_blocked_names_are_undefined(self, name) -> None:
        assert name in BLOCKED_NAMES
        events = _run(f"radius.log({name} is None)")
        assert events == [(EVENT_LOG, "true")]

    def test_calling_blocked_name_fails(self) -> None:
        with pytest.raises(TypeError):
            _run("open('/etc/passwd')")

    def test_import_of_other_modules_fails(self) -> None:
        with pytest.raises(ImportError, match="module 'os' is not available in scripts"):
            _run("import os")

    def test_dunder_access_rejected_at_compile_time(self) -> None:
        with pytest.raises(SyntaxError):
            compile_script("x = ().__class__.__bases__")

    def test_compile_error_message_is_plain_text(self) -> None:
        with pytest.raises(SyntaxError) as excinfo:
            compile_script("x = 1\ny = x.gi_frame\n")
        message = str(excinfo.value)
        assert message.startswith("Line 2: ")
        assert "gi_frame" in message
        assert not message.startswith("(")

    def test_response_missing_in_pre_script(self) -> None:
        with pytest.raises(NameError):
            _run("response.status")

    def test_cannot_write_attributes_on_radius(self) -> None:
        with pytest.raises(TypeError):
            _run("radius.extra = 1")

    def test_unsupported_variable_type_raises(self) -> None:
        with pytest.raises(TypeError):
            _run("radius.set_variable('s', set([1]))")
