# application/executor/batch_runner.py
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from application.executor.request_runner import RequestRunner
from application.outcome import FileOutcome, is_passed
from application.ports.logger import LoggerPort, NullLogger
from domain.response import Response

REQUEST_FILE_SUFFIX = ".rd"


@dataclass(frozen=True)
class BatchResult:
    results: List[FileOutcome]
    total_ms: int

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0


def find_request_files(directory: Union[str, Path]) -> List[Path]:
    """*.rd directly under directory, in lexical order (environment.rd is a profile, not a request)."""
    base = Path(directory)
    return sorted(
        p for p in base.iterdir()
        if p.is_file() and p.suffix.lower() == REQUEST_FILE_SUFFIX and p.name != "environment.rd"
    )


class BatchRunner:
    """
    Runs several .rd files one after another through the same RequestRunner,
    so every file shares one Session. A file that fails to load or run is
    recorded as failed and the batch continues.
    """

    def __init__(
        self,
        runner: RequestRunner,
        logger: Optional[LoggerPort] = None,
        on_result: Optional[Callable[[FileOutcome], None]] = None,
    ):
        self._runner = runner
        self._logger = logger or NullLogger()
        self._on_result = on_result

    def run_directory(self, directory: Union[str, Path]) -> BatchResult:
        return self.run_files(find_request_files(directory))

    def run_files(self, files: Sequence[Union[str, Path]]) -> BatchResult:
        t0 = time.perf_counter()
        self._logger.info("batch.start", files=len(files))
        results: List[FileOutcome] = []

        for path in files:
            outcome = self._run_one(Path(path))
            results.append(outcome)
            if self._on_result is not None:
                self._on_result(outcome)

        result = BatchResult(results=results, total_ms=int((time.perf_counter() - t0) * 1000))
        self._logger.info("batch.end", passed=result.passed, failed=result.failed, total_ms=result.total_ms)
        return result

    def _run_one(self, path: Path) -> FileOutcome:
        logger = self._logger.bind(file=path.name)
        try:
            response = self._runner.run(path)
        except Exception as e:
            # 1ファイルの失敗でバッチは止めない
            logger.error("batch.file_error", error_type=type(e).__name__, error=str(e))
            return FileOutcome(
                file=str(path),
                response=Response.error(str(e)),
                passed=False,
                error_message=str(e),
            )

        passed = is_passed(response)
        logger.info("batch.file_end", status=response.status, passed=passed)
        return FileOutcome(file=str(path), response=response, passed=passed)
