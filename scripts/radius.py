#!/usr/bin/env python3
"""
Run .rd request definitions

Usage:
  python -m scripts.radius run <path> [-e ENV] [-v] [-s FILE] [--load-vars FILE]
                                      [--strict] [--timeout-sec N] [--script-timeout-ms N]
                                      [--log-level LEVEL] [--event-log FILE]
                                      [--project-root DIR]
  python -m scripts.radius envs [--project-root DIR]

Examples:
  python -m scripts.radius run requests/get_health.rd
  python -m scripts.radius run requests/users -e staging -s .radius/session.json
  python -m scripts.radius run requests/orders --load-vars .radius/session.json
"""
from __future__ import annotations

import argparse
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import List, Optional

from application.exceptions import RunnerError
from application.executor.batch_runner import BatchRunner, find_request_files
from application.executor.request_runner import RequestRunner
from application.outcome import is_passed
from application.ports.logger import LoggerPort
from application.ports.requests_client import DEFAULT_TIMEOUT_SEC
from application.sandbox.script_sandbox import DEFAULT_TIMEOUT_MS
from domain.session import Session
from infrastructure.environments.environment_manager import EnvironmentManager
from infrastructure.logging.composite_logger import CompositeLogger
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.logging.loguru_logger import LoguruLogger
from infrastructure.presentation.formatter import ResultFormatter
from infrastructure.runner_factory import RunnerOptions, build_request_runner
from infrastructure.session.session_file_store import SessionFileStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="radius", description="Chained API request runner")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a .rd file or every .rd file in a directory")
    run_parser.add_argument("path", type=str)
    run_parser.add_argument("-e", "--env", type=str, help="environment profile (environments/<name>.rd)")
    run_parser.add_argument("-v", "--verbose", action="store_true", help="print response bodies")
    run_parser.add_argument("-s", "--save-vars", type=str, help="write session variables to a JSON file")
    run_parser.add_argument("--load-vars", type=str, help="preload session variables from a JSON file")
    run_parser.add_argument("--strict", action="store_true", help="fail on unresolved {{variables}}")
    run_parser.add_argument("--timeout-sec", type=float, default=DEFAULT_TIMEOUT_SEC)
    run_parser.add_argument("--script-timeout-ms", type=int, default=DEFAULT_TIMEOUT_MS)
    run_parser.add_argument("--log-level", type=str, default="WARNING")
    run_parser.add_argument("--event-log", type=str, help="append structured events (one JSON line each) to a file")
    run_parser.add_argument("--project-root", type=str, default=".")

    envs_parser = subparsers.add_parser("envs", help="List environment profiles")
    envs_parser.add_argument("--project-root", type=str, default=".")

    return parser


def _run(args: argparse.Namespace, formatter: ResultFormatter, logger: LoggerPort) -> int:
    project_root = Path(args.project_root).resolve()
    target = Path(args.path)
    if not target.exists():
        raise ValueError(f"Path not found: {args.path}")

    formatter.header()

    sources = []
    script_env = {}
    if args.env:
        env_manager = EnvironmentManager(project_root)
        profile = env_manager.load(args.env)
        formatter.environment(profile.name)
        formatter.set_masker(env_manager.mask_secrets)
        script_env = dict(profile.variables)
        source = env_manager.get_variable_source()
        if source is not None:
            sources.append(source)

    options = RunnerOptions(
        project_root=project_root,
        timeout_sec=args.timeout_sec,
        script_timeout_ms=args.script_timeout_ms,
        strict=args.strict,
        variable_sources=sources,
        script_env=script_env,
    )
    runner = build_request_runner(options, logger=logger)

    session = Session()
    store = SessionFileStore()
    if args.load_vars:
        count = store.load_into(session, args.load_vars)
        formatter.session_loaded(args.load_vars, count)
    runner.set_session(session)

    if target.is_dir():
        exit_code = _run_directory(target, runner, formatter, logger)
    else:
        exit_code = _run_file(target, runner, formatter, args.verbose)

    if args.save_vars:
        store.save(session, args.save_vars)
        formatter.session_saved(args.save_vars, session.size)

    return exit_code


def _run_file(path: Path, runner: RequestRunner, formatter: ResultFormatter, verbose: bool) -> int:
    formatter.running(str(path))
    response = runner.run(path)

    formatter.response(response)
    if verbose:
        formatter.body(response)
    formatter.assertions(response.assertions)
    formatter.logs(response.script_logs)

    passed = is_passed(response)
    formatter.summary(response, passed)
    return 0 if passed else 1


def _run_directory(directory: Path, runner: RequestRunner, formatter: ResultFormatter, logger: LoggerPort) -> int:
    files = find_request_files(directory)
    if not files:
        raise ValueError(f"No .rd files found in: {directory}")

    formatter.running_batch(len(files), str(directory))
    result = BatchRunner(runner, logger=logger).run_files(files)
    formatter.batch_summary(result.results)
    return 0 if result.ok else 1


def _list_envs(args: argparse.Namespace) -> int:
    manager = EnvironmentManager(Path(args.project_root).resolve())
    profiles = manager.list_profiles()
    if not profiles:
        print("No environment profiles found")
        return 0
    for name in profiles:
        print(name)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "envs":
        return _list_envs(args)

    setup_console_logging(level=args.log_level)
    formatter = ResultFormatter()

    with ExitStack() as stack:
        logger: LoggerPort = LoguruLogger()
        if args.event_log:
            event_path = Path(args.event_log)
            event_path.parent.mkdir(parents=True, exist_ok=True)
            stream = stack.enter_context(event_path.open("a", encoding="utf-8"))
            logger = CompositeLogger([logger, ConsoleLogger(stream=stream)])

        try:
            return _run(args, formatter, logger)
        except (ValueError, RunnerError) as exc:
            logger.error("cli.failed", error=str(exc))
            formatter.error(str(exc))
            return 1


if __name__ == "__main__":
    sys.exit(main())
