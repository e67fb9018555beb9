from __future__ import annotations

from textwrap import dedent

import pytest

from application.exceptions import EnvironmentNotFoundError
from infrastructure.environments.environment_manager import EnvironmentManager

STAGING = dedent(
    """
    name: Staging
    baseUrl: https://staging.example.com
    variables:
      apiKey: sk-staging-123
      userId: 42
      debug: false
    secrets:
      - apiKey
    """
)


@pytest.fixture
def project(tmp_path):
    env_dir = tmp_path / "environments"
    env_dir.mkdir()
    (env_dir / "staging.rd").write_text(STAGING, encoding="utf-8")
    (env_dir / "local.rd").write_text("variables: {}\n", encoding="utf-8")
    return tmp_path


class TestLoad:
    def test_profile_fields(self, project) -> None:
        profile = EnvironmentManager(project).load("staging")

        assert profile.name == "Staging"
        assert profile.base_url == "https://staging.example.com"
        assert profile.variables == {"apiKey": "sk-staging-123", "userId": "42", "debug": "false"}
        assert profile.secrets == ["apiKey"]

    def test_name_defaults_to_file_name(self, project) -> None:
        assert EnvironmentManager(project).load("local").name == "local"

    def test_missing_profile(self, project) -> None:
        with pytest.raises(EnvironmentNotFoundError, match="Environment not found: prod"):
            EnvironmentManager(project).load("prod")

    def test_list_profiles(self, project) -> None:
        assert EnvironmentManager(project).list_profiles() == ["local", "staging"]

    def test_list_profiles_without_directory(self, tmp_path) -> None:
        assert EnvironmentManager(tmp_path).list_profiles() == []


class TestVariableSource:
    def test_none_before_load(self, project) -> None:
        assert EnvironmentManager(project).get_variable_source() is None

    def test_lookup_and_base_url(self, project) -> None:
        manager = EnvironmentManager(project)
        manager.load("staging")
        source = manager.get_variable_source()

        assert source.name == "Environment:Staging"
        assert source.priority == 400
        assert source.get("userId") == "42"
        assert source.get("baseUrl") == "https://staging.example.com"
        assert source.get("missing") is None


class TestMasking:
    def test_mask_secrets(self, project) -> None:
        manager = EnvironmentManager(project)
        manager.load("staging")

        assert manager.is_secret("apiKey") is True
        assert manager.is_secret("userId") is False
        assert manager.mask_secrets("key=sk-staging-123; again sk-staging-123") == "key=********; again ********"

    def test_mask_secrets_in_object(self, project) -> None:
        manager = EnvironmentManager(project)
        manager.load("staging")

        masked = manager.mask_secrets_in_object({"h": {"X-Key": "sk-staging-123"}, "l": ["sk-staging-123", 1], "n": None})

        assert masked == {"h": {"X-Key": "********"}, "l": ["********", 1], "n": None}

    def test_no_profile_masks_nothing(self, project) -> None:
        assert EnvironmentManager(project).mask_secrets("sk-staging-123") == "sk-staging-123"
