# infrastructure/runner_factory.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from application.executor.request_runner import RequestRunner
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort, NullLogger
from application.ports.requests_client import DEFAULT_TIMEOUT_SEC, RequestsHttpClient
from application.ports.variable_source import VariableSource
from application.sandbox.script_sandbox import DEFAULT_TIMEOUT_MS, ScriptSandbox
from infrastructure.definition.rd_loader import RdDefinitionLoader
from infrastructure.sources.dotenv_source import DotEnvSource
from infrastructure.sources.project_env_source import ProjectEnvSource
from infrastructure.sources.system_env_source import SystemEnvSource


@dataclass(frozen=True)
class RunnerOptions:
    project_root: Path = field(default_factory=Path.cwd)
    # None なら <project_root>/.env
    env_path: Optional[Path] = None
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    script_timeout_ms: int = DEFAULT_TIMEOUT_MS
    strict: bool = False
    variable_sources: Sequence[VariableSource] = ()
    # radius.get_env に見せる値（.env の上に重ねる）
    script_env: Mapping[str, str] = field(default_factory=dict)


def _env_path(options: RunnerOptions) -> Path:
    return options.env_path or Path(options.project_root) / ".env"


def build_variable_sources(options: RunnerOptions) -> List[VariableSource]:
    """
    Caller-supplied sources (environment profile, 400), environment.rd (300),
    .env (200) and the process environment (100). The Session is added by the
    runner itself.
    """
    env_path = _env_path(options)
    sources: List[VariableSource] = list(options.variable_sources)
    sources.append(ProjectEnvSource(options.project_root))
    sources.append(DotEnvSource(env_path))
    sources.append(SystemEnvSource())
    return sources


def build_script_env(options: RunnerOptions) -> Dict[str, str]:
    """
    The map scripts read through radius.get_env: .env values overlaid with
    options.script_env. os.environ is not included.
    """
    env = DotEnvSource(_env_path(options)).values()
    env.update(options.script_env)
    return env


def build_request_runner(
    options: RunnerOptions,
    logger: Optional[LoggerPort] = None,
    http_client: Optional[HttpClientPort] = None,
) -> RequestRunner:
    logger = logger or NullLogger()
    sandbox = ScriptSandbox(
        timeout_ms=options.script_timeout_ms,
        env=build_script_env(options),
        logger=logger,
    )
    return RequestRunner(
        http_client=http_client or RequestsHttpClient(timeout_sec=options.timeout_sec),
        sandbox=sandbox,
        sources=build_variable_sources(options),
        loader=RdDefinitionLoader(),
        logger=logger,
        strict=options.strict,
    )
