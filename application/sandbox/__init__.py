from application.sandbox.expect import ExpectBuilder
from application.sandbox.radius_context import RadiusContext
from application.sandbox.response_context import ResponseContext
from application.sandbox.script_sandbox import ScriptSandbox

__all__ = [
    "ExpectBuilder",
    "RadiusContext",
    "ResponseContext",
    "ScriptSandbox",
]
