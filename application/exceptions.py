# application/exceptions.py
from __future__ import annotations

from typing import List


class RunnerError(Exception):
    pass


class VariableResolutionError(RunnerError):
    pass


class UnresolvedVariableError(VariableResolutionError):
    def __init__(self, names: List[str]):
        self.names = list(names)
        super().__init__(f"Unresolved variables: {', '.join(self.names)}")


class ResolutionDepthError(VariableResolutionError):
    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(
            f"Variable resolution exceeded max depth ({max_depth}). Check for circular references."
        )


class DefinitionLoadError(RunnerError):
    pass


class EnvironmentNotFoundError(RunnerError):
    pass


class ScriptError(RunnerError):
    """Raised inside scripts by the sandbox API (visible to script code)."""
    pass
