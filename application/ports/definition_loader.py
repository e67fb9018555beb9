from __future__ import annotations

from pathlib import Path
from typing import Protocol, Union

from domain.request import RequestDefinition


class DefinitionLoaderPort(Protocol):
    def load_from_file(self, path: Union[str, Path]) -> RequestDefinition:
        ...
