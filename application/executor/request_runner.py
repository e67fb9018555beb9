# application/executor/request_runner.py
from __future__ import annotations

import time
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from application.exceptions import UnresolvedVariableError
from application.ports.definition_loader import DefinitionLoaderPort
from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort, NullLogger
from application.ports.variable_source import VariableSource
from application.sandbox.script_sandbox import ScriptSandbox
from application.services.redactor import mask_dict
from application.services.variable_resolver import DEFAULT_MAX_DEPTH, VariableResolver
from domain.request import RequestDefinition, ResolvedRequest
from domain.response import Response
from domain.session import Session


class RequestRunner:
    """
    Resolve -> PreScript -> Transport -> PostScript for one request definition.

    Variables are resolved once, before the pre-script runs. Values written by
    the pre-script therefore reach the Session (and every later request) but
    not the URL/headers/body of the request currently being sent.

    A failing pre-script stops the request before any network call and yields
    a status 0 response. A failing post-script is only logged; the real
    response is returned with whatever logs and assertions were recorded.
    """

    def __init__(
        self,
        http_client: HttpClientPort,
        sandbox: ScriptSandbox,
        sources: Sequence[VariableSource] = (),
        loader: Optional[DefinitionLoaderPort] = None,
        logger: Optional[LoggerPort] = None,
        strict: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._http = http_client
        self._sandbox = sandbox
        self._sources: List[VariableSource] = list(sources)
        self._loader = loader
        self._logger = logger or NullLogger()
        self._strict = strict
        self._max_depth = max_depth
        self._session: Optional[Session] = None
        self._resolver = self._build_resolver()

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def sandbox(self) -> ScriptSandbox:
        return self._sandbox

    @property
    def resolver(self) -> VariableResolver:
        return self._resolver

    def set_session(self, session: Session) -> None:
        """Session variables become the highest-priority source."""
        self._session = session
        self._resolver = self._build_resolver()

    def run(self, path: Union[str, Path]) -> Response:
        if self._loader is None:
            raise RuntimeError("RequestRunner has no definition loader")
        definition = self._loader.load_from_file(path)
        return self.execute(definition)

    def execute(self, definition: RequestDefinition) -> Response:
        self._prepare_sandbox()
        return self._execute(definition)

    def execute_with_variables(self, definition: RequestDefinition, variables: Mapping[str, Any]) -> Response:
        """Like execute(), with extra variables visible to the scripts of this request."""
        self._prepare_sandbox()
        self._sandbox.set_variables(variables)
        return self._execute(definition)

    def _prepare_sandbox(self) -> None:
        self._sandbox.reset_context()
        if self._session is not None:
            self._sandbox.set_variables(self._session.get_all())

    def _execute(self, definition: RequestDefinition) -> Response:
        logger = self._logger.bind(request=definition.meta.name)

        # 1) Resolve
        resolved = self._resolve(definition, logger)
        method = resolved.request.method
        url = resolved.request.url
        scripts = resolved.scripts

        # 2) Pre-script
        if scripts is not None and scripts.pre:
            t0 = time.perf_counter()
            pre = self._sandbox.run_pre(scripts.pre)
            logger.info(
                "script.pre_end",
                ok=pre.success,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )
            if not pre.success:
                logger.error("script.pre_failed", error=pre.error)
                return Response.error(f"Pre-script error: {pre.error}", method=method, url=url)
            self._merge_into_session(pre.variables, logger)

        # 3) Transport
        logger.info("http.request", method=method, url=url, headers=mask_dict(resolved.request.headers))
        response = self._http.execute(resolved)
        logger.info(
            "http.response",
            status=response.status,
            status_text=response.status_text,
            total_ms=response.timing.total,
        )

        # 4) Post-script
        if scripts is not None and scripts.post:
            post = self._sandbox.run_post(scripts.post, response)
            if not post.success:
                logger.warning("script.post_failed", error=post.error)
            self._merge_into_session(post.variables, logger)
            response = replace(
                response,
                script_logs=tuple(post.logs),
                assertions=tuple(post.assertions),
            )
            logger.info(
                "script.post_end",
                ok=post.success,
                assertions=len(post.assertions),
                failed=sum(1 for a in post.assertions if not a.passed),
            )

        return response

    def _resolve(self, definition: RequestDefinition, logger: LoggerPort) -> ResolvedRequest:
        # スクリプト本文も含めて一度だけ展開する
        resolved, unresolved = self._resolver.resolve_object_with_info(definition)
        if unresolved and self._strict:
            logger.error("runner.unresolved", names=unresolved)
            raise UnresolvedVariableError(unresolved)
        if unresolved:
            logger.warning("runner.unresolved", names=unresolved)
        logger.debug("runner.resolved", method=resolved.request.method, url=resolved.request.url)
        return resolved

    def _merge_into_session(self, variables: Mapping[str, Any], logger: LoggerPort) -> None:
        if self._session is None or not variables:
            return
        self._session.merge(variables)
        logger.debug("session.merged", names=sorted(variables))

    def _build_resolver(self) -> VariableResolver:
        sources: List[VariableSource] = []
        if self._session is not None:
            sources.append(self._session.variable_source())
        sources.extend(self._sources)
        return VariableResolver(sources, strict=self._strict, max_depth=self._max_depth)
