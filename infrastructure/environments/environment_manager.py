# infrastructure/environments/environment_manager.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml

from application.exceptions import EnvironmentNotFoundError
from application.services.redactor import MASK

ENVIRONMENT_PRIORITY = 400
ENVIRONMENTS_DIR = "environments"


@dataclass(frozen=True)
class EnvironmentProfile:
    name: str
    base_url: Optional[str] = None
    variables: Dict[str, str] = field(default_factory=dict)
    secrets: List[str] = field(default_factory=list)


class EnvironmentVariableSource:
    def __init__(self, profile: EnvironmentProfile, priority: int = ENVIRONMENT_PRIORITY):
        self._profile = profile
        self.name = f"Environment:{profile.name}"
        self.priority = priority

    def get(self, key: str) -> Optional[str]:
        if key == "baseUrl":
            return self._profile.base_url
        return self._profile.variables.get(key)


class EnvironmentManager:
    """
    environments/<name>.rd のプロファイルを読み込み、secrets に挙げた変数の値をマスクする。
    """

    def __init__(self, project_root: Union[str, Path], environments_dir: str = ENVIRONMENTS_DIR):
        self._dir = Path(project_root) / environments_dir
        self._profile: Optional[EnvironmentProfile] = None
        self._secret_values: Set[str] = set()

    @property
    def profile(self) -> Optional[EnvironmentProfile]:
        return self._profile

    def load(self, name: str) -> EnvironmentProfile:
        path = self._dir / f"{name}.rd"
        if not path.is_file():
            raise EnvironmentNotFoundError(f"Environment not found: {name} ({path})")

        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise EnvironmentNotFoundError(f"Environment file is invalid: {path}")

        variables = {
            str(k): _to_text(v)
            for k, v in (data.get("variables") or {}).items()
            if v is not None
        }
        base_url = data.get("baseUrl")
        self._profile = EnvironmentProfile(
            name=str(data.get("name") or name),
            base_url=str(base_url) if base_url is not None else None,
            variables=variables,
            secrets=[str(s) for s in (data.get("secrets") or [])],
        )

        self._secret_values = {
            variables[key] for key in self._profile.secrets if variables.get(key)
        }
        return self._profile

    def get_variable_source(self) -> Optional[EnvironmentVariableSource]:
        if self._profile is None:
            return None
        return EnvironmentVariableSource(self._profile)

    def is_secret(self, name: str) -> bool:
        return self._profile is not None and name in self._profile.secrets

    def mask_secrets(self, text: str) -> str:
        # 長い値から置換する（部分一致で短い値が先に潰さないように）
        for secret in sorted(self._secret_values, key=len, reverse=True):
            text = text.replace(secret, MASK)
        return text

    def mask_secrets_in_object(self, obj: Any) -> Any:
        if isinstance(obj, str):
            return self.mask_secrets(obj)
        if isinstance(obj, dict):
            return {k: self.mask_secrets_in_object(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self.mask_secrets_in_object(v) for v in obj]
        return obj

    def list_profiles(self) -> List[str]:
        if not self._dir.is_dir():
            return []
        return sorted(p.stem for p in self._dir.iterdir() if p.is_file() and p.suffix == ".rd")


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
