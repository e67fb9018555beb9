# infrastructure/sources/project_env_source.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

PROJECT_ENV_PRIORITY = 300


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Nested mappings become dot keys (api.baseUrl). None values are skipped."""
    out: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            out.update(flatten(value, full_key))
        elif isinstance(value, bool):
            out[full_key] = "true" if value else "false"
        else:
            out[full_key] = str(value)
    return out


class ProjectEnvSource:
    """Variables from <project_root>/environment.rd (YAML)."""

    name = "ProjectEnv"

    def __init__(
        self,
        project_root: Union[str, Path],
        env_name: str = "environment",
        priority: int = PROJECT_ENV_PRIORITY,
    ):
        self._path = Path(project_root) / f"{env_name}.rd"
        self.priority = priority
        self._cache: Optional[Dict[str, str]] = None

    def get(self, key: str) -> Optional[str]:
        return self._values().get(key)

    def reload(self) -> None:
        self._cache = None
        self._values()

    def _values(self) -> Dict[str, str]:
        if self._cache is None:
            data: Any = None
            if self._path.is_file():
                with self._path.open("r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            self._cache = flatten(data) if isinstance(data, dict) else {}
        return self._cache
