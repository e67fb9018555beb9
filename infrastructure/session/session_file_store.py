# infrastructure/session/session_file_store.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from application.exceptions import RunnerError
from domain.session import Session


class SessionFileError(RunnerError):
    pass


class SessionFileStore:
    """Session の変数を JSON ファイルへ保存／読み込みする（--save-vars / --load-vars）"""

    def save(self, session: Session, path: Union[str, Path]) -> None:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with p.open("w", encoding="utf-8") as f:
            json.dump(session.get_all(), f, ensure_ascii=False, indent=2)
            f.write("\n")

    def load_into(self, session: Session, path: Union[str, Path]) -> int:
        """Merge the file's variables into session; returns how many were loaded."""
        p = Path(path)
        if not p.is_file():
            raise SessionFileError(f"Variables file not found: {path}")

        with p.open("r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SessionFileError(f"Variables file is not valid JSON: {path}: {e}") from e

        if not isinstance(data, dict):
            raise SessionFileError(f"Variables file must contain a JSON object: {path}")

        session.merge(data)
        return len(data)
