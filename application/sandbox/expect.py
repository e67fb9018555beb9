# application/sandbox/expect.py
from __future__ import annotations

import math
import re
from typing import Any, Callable

from domain.script import AssertionOutcome, to_reportable


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def same_value(a: Any, b: Any) -> bool:
    """
    Value identity used by to_be:
    NaN is NaN, 0.0 is not -0.0, True is not 1, containers compare by identity.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if _is_number(a) and _is_number(b):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        if a == 0 and b == 0:
            return math.copysign(1.0, a) == math.copysign(1.0, b)
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def deep_equal(a: Any, b: Any) -> bool:
    if same_value(a, b):
        return True
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))
    return False


class ExpectBuilder:
    """
    Fluent assertions bound to one actual value. Every terminal check records
    exactly one AssertionOutcome, pass or fail, and returns it.
    """

    def __init__(self, actual: Any, record: Callable[[AssertionOutcome], None]):
        self._actual = actual
        self._record = record

    def to_be(self, expected: Any) -> AssertionOutcome:
        passed = same_value(self._actual, expected)
        message = "Values are identical" if passed else f"Expected {expected!r}, got {self._actual!r}"
        return self._done(passed, message, expected)

    def to_equal(self, expected: Any) -> AssertionOutcome:
        passed = deep_equal(self._actual, expected)
        message = "Values are deeply equal" if passed else "Values are not deeply equal"
        return self._done(passed, message, expected)

    def to_be_truthy(self) -> AssertionOutcome:
        passed = bool(self._actual)
        return self._done(passed, "Value is truthy" if passed else f"Expected truthy, got {self._actual!r}")

    def to_be_falsy(self) -> AssertionOutcome:
        passed = not self._actual
        return self._done(passed, "Value is falsy" if passed else f"Expected falsy, got {self._actual!r}")

    def to_be_defined(self) -> AssertionOutcome:
        passed = self._actual is not None
        return self._done(passed, "Value is defined" if passed else "Expected defined value, got None")

    def to_be_none(self) -> AssertionOutcome:
        passed = self._actual is None
        return self._done(passed, "Value is None" if passed else f"Expected None, got {self._actual!r}")

    def to_be_greater_than(self, expected: Any) -> AssertionOutcome:
        passed = _is_number(self._actual) and _is_number(expected) and self._actual > expected
        message = (
            f"{self._actual!r} > {expected!r}"
            if passed
            else f"Expected {self._actual!r} to be greater than {expected!r}"
        )
        return self._done(passed, message, expected)

    def to_be_less_than(self, expected: Any) -> AssertionOutcome:
        passed = _is_number(self._actual) and _is_number(expected) and self._actual < expected
        message = (
            f"{self._actual!r} < {expected!r}"
            if passed
            else f"Expected {self._actual!r} to be less than {expected!r}"
        )
        return self._done(passed, message, expected)

    def to_contain(self, expected: Any) -> AssertionOutcome:
        passed = False
        if isinstance(self._actual, str) and isinstance(expected, str):
            passed = expected in self._actual
        elif isinstance(self._actual, (list, tuple)):
            passed = any(deep_equal(item, expected) for item in self._actual)
        message = (
            "Value contains expected"
            if passed
            else f"Expected {self._actual!r} to contain {expected!r}"
        )
        return self._done(passed, message, expected)

    def to_match(self, pattern: Any) -> AssertionOutcome:
        source = pattern.pattern if isinstance(pattern, re.Pattern) else str(pattern)
        passed = isinstance(self._actual, str) and re.search(pattern, self._actual) is not None
        message = "Value matches pattern" if passed else f"Expected {self._actual!r} to match /{source}/"
        return self._done(passed, message, source)

    # camelCase 互換
    toBe = to_be
    toEqual = to_equal
    toBeTruthy = to_be_truthy
    toBeFalsy = to_be_falsy
    toBeDefined = to_be_defined
    toBeNone = to_be_none
    toBeNull = to_be_none
    to_be_null = to_be_none
    toBeGreaterThan = to_be_greater_than
    toBeLessThan = to_be_less_than
    toContain = to_contain
    toMatch = to_match

    def _done(self, passed: bool, message: str, expected: Any = None) -> AssertionOutcome:
        outcome = AssertionOutcome(
            passed=passed,
            message=message,
            expected=to_reportable(expected),
            actual=to_reportable(self._actual),
        )
        self._record(outcome)
        return outcome
