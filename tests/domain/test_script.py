from __future__ import annotations

import pytest

from domain.script import (
    ScriptValueError,
    format_variable,
    normalize_script_value,
    to_reportable,
)


class TestNormalizeScriptValue:
    @pytest.mark.parametrize("value", [None, True, 0, 1.5, "x"])
    def test_primitives_pass_through(self, value) -> None:
        assert normalize_script_value(value) == value

    def test_tuples_become_lists(self) -> None:
        assert normalize_script_value({"a": (1, (2, 3))}) == {"a": [1, [2, 3]]}

    def test_non_string_keys_rejected(self) -> None:
        with pytest.raises(ScriptValueError):
            normalize_script_value({1: "a"})

    def test_unsupported_type_rejected(self) -> None:
        with pytest.raises(ScriptValueError, match="set"):
            normalize_script_value({1, 2})

    def test_to_reportable_falls_back_to_repr(self) -> None:
        assert to_reportable({1, 2}) == repr({1, 2})
        assert to_reportable([1]) == [1]


class TestFormatVariable:
    def test_strings_unchanged(self) -> None:
        assert format_variable("abc") == "abc"

    def test_scalars(self) -> None:
        assert format_variable(3) == "3"
        assert format_variable(2.5) == "2.5"
        assert format_variable(False) == "false"
        assert format_variable(None) == "null"

    def test_containers_as_json(self) -> None:
        assert format_variable({"a": [1, "é"]}) == '{"a": [1, "é"]}'
