# infrastructure/sources/system_env_source.py
from __future__ import annotations

import os
from typing import Mapping, Optional

SYSTEM_ENV_PRIORITY = 100


class SystemEnvSource:
    """Process environment variables (lowest priority)."""

    name = "SystemEnv"

    def __init__(self, priority: int = SYSTEM_ENV_PRIORITY, environ: Optional[Mapping[str, str]] = None):
        self.priority = priority
        # テスト用に差し替え可能。既定では毎回 os.environ を見る
        self._environ = environ

    def get(self, key: str) -> Optional[str]:
        environ = os.environ if self._environ is None else self._environ
        return environ.get(key)
