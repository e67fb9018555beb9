# infrastructure/sources/dotenv_source.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import dotenv_values

DOTENV_PRIORITY = 200


class DotEnvSource:
    """
    .env ファイルの変数（.env.local があればそちらが優先）

    Files are read lazily on the first lookup and cached; a missing file is
    simply empty. os.environ is never modified.
    """

    name = "DotEnv"

    def __init__(
        self,
        path: Union[str, Path] = ".env",
        load_local: bool = True,
        priority: int = DOTENV_PRIORITY,
    ):
        self._path = Path(path)
        self._load_local = load_local
        self.priority = priority
        self._cache: Optional[Dict[str, str]] = None

    def get(self, key: str) -> Optional[str]:
        return self._values().get(key)

    def values(self) -> Dict[str, str]:
        return dict(self._values())

    def reload(self) -> None:
        self._cache = None
        self._values()

    def _values(self) -> Dict[str, str]:
        if self._cache is None:
            cache: Dict[str, str] = {}
            paths = [self._path]
            if self._load_local:
                paths.append(self._path.with_name(self._path.name + ".local"))
            for p in paths:
                if not p.is_file():
                    continue
                for k, v in dotenv_values(p).items():
                    if v is not None:
                        cache[k] = v
            self._cache = cache
        return self._cache
