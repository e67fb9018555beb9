from dataclasses import dataclass
from typing import Optional

from domain.response import Response


def is_passed(response: Response) -> bool:
    """HTTP status in [200, 400) and no failed assertion."""
    return response.is_http_success and response.assertions_passed


@dataclass(frozen=True)
class FileOutcome:
    file: str
    response: Response
    passed: bool
    error_message: Optional[str] = None
