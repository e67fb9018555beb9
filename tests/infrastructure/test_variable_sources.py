from __future__ import annotations

import os

from infrastructure.sources.dotenv_source import DotEnvSource
from infrastructure.sources.project_env_source import ProjectEnvSource, flatten
from infrastructure.sources.system_env_source import SystemEnvSource


class TestSystemEnvSource:
    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("RADIUS_TEST_VAR", "from-os")
        source = SystemEnvSource()
        assert source.name == "SystemEnv"
        assert source.priority == 100
        assert source.get("RADIUS_TEST_VAR") == "from-os"

    def test_missing_is_none(self, monkeypatch) -> None:
        monkeypatch.delenv("RADIUS_TEST_VAR", raising=False)
        assert SystemEnvSource().get("RADIUS_TEST_VAR") is None

    def test_custom_mapping(self) -> None:
        assert SystemEnvSource(environ={"A": "1"}).get("A") == "1"


class TestDotEnvSource:
    def test_local_overrides_base(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("API_URL=http://base\nTOKEN=base-token\n", encoding="utf-8")
        (tmp_path / ".env.local").write_text("TOKEN=local-token\n", encoding="utf-8")

        source = DotEnvSource(tmp_path / ".env")

        assert source.name == "DotEnv"
        assert source.priority == 200
        assert source.get("API_URL") == "http://base"
        assert source.get("TOKEN") == "local-token"

    def test_local_can_be_disabled(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("TOKEN=base\n", encoding="utf-8")
        (tmp_path / ".env.local").write_text("TOKEN=local\n", encoding="utf-8")
        assert DotEnvSource(tmp_path / ".env", load_local=False).get("TOKEN") == "base"

    def test_missing_file_is_empty(self, tmp_path) -> None:
        assert DotEnvSource(tmp_path / ".env").get("ANY") is None

    def test_does_not_touch_os_environ(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("ONLY_IN_DOTENV", raising=False)
        (tmp_path / ".env").write_text("ONLY_IN_DOTENV=1\n", encoding="utf-8")

        DotEnvSource(tmp_path / ".env").get("ONLY_IN_DOTENV")

        assert "ONLY_IN_DOTENV" not in os.environ

    def test_reload_picks_up_changes(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text("A=1\n", encoding="utf-8")
        source = DotEnvSource(env)
        assert source.get("A") == "1"

        env.write_text("A=2\n", encoding="utf-8")
        assert source.get("A") == "1"
        source.reload()
        assert source.get("A") == "2"


class TestProjectEnvSource:
    def test_nested_keys_are_flattened(self, tmp_path) -> None:
        (tmp_path / "environment.rd").write_text(
            "baseUrl: http://api\napi:\n  version: 2\n  debug: true\nempty: null\n",
            encoding="utf-8",
        )

        source = ProjectEnvSource(tmp_path)

        assert source.name == "ProjectEnv"
        assert source.priority == 300
        assert source.get("baseUrl") == "http://api"
        assert source.get("api.version") == "2"
        assert source.get("api.debug") == "true"
        assert source.get("empty") is None

    def test_missing_file_is_empty(self, tmp_path) -> None:
        assert ProjectEnvSource(tmp_path).get("baseUrl") is None

    def test_flatten(self) -> None:
        assert flatten({"a": {"b": {"c": 1}}, "l": [1, 2]}) == {"a.b.c": "1", "l": "[1, 2]"}
