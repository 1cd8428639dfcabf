"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- load_config() precedence: kwargs > env > yaml > defaults
- Validation failures surfacing as ConfigError
"""

from __future__ import annotations

from pathlib import Path

import pytest

from agentprep.config.loader import GLOBAL_CONFIG_PATH, _load_yaml, load_config
from agentprep.core.errors import ConfigError, ErrorCode


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("agent:\n  namespace: default\n")

        assert _load_yaml(yaml_file) == {"agent": {"namespace": "default"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("agent:\n  namespace:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR


class TestLoadConfig:
    """Tests for load_config precedence."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in (
            "AGENTPREP__DISPATCH__GRACE_SEC",
            "AGENTPREP__AGENT__NAMESPACE",
            "AGENTPREP__LOGGING__LEVEL",
        ):
            monkeypatch.delenv(var, raising=False)

    def test_global_config_path_under_home(self) -> None:
        assert GLOBAL_CONFIG_PATH.name == "config.yaml"
        assert GLOBAL_CONFIG_PATH.parent.name == "agentprep"

    def test_given_no_sources_when_load_then_defaults(self, tmp_path: Path) -> None:
        """Missing YAML yields built-in defaults."""
        # Given
        missing = tmp_path / "missing.yaml"

        # When
        config = load_config(missing)

        # Then
        assert config.dispatch.grace_sec == 1.0
        assert config.agent.namespace == "chaosblade"
        assert config.report.type_tag == "JAVA_AGENT_PREPARE"

    def test_given_yaml_when_load_then_yaml_applied(self, tmp_path: Path) -> None:
        # Given
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("dispatch:\n  grace_sec: 2.5\nagent:\n  namespace: qa\n")

        # When
        config = load_config(yaml_file)

        # Then
        assert config.dispatch.grace_sec == 2.5
        assert config.agent.namespace == "qa"

    def test_given_env_and_yaml_when_load_then_env_wins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Environment variables override the YAML file."""
        # Given
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("agent:\n  namespace: qa\n")
        monkeypatch.setenv("AGENTPREP__AGENT__NAMESPACE", "prod")

        # When
        config = load_config(yaml_file)

        # Then
        assert config.agent.namespace == "prod"

    def test_given_kwargs_when_load_then_kwargs_win(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given
        monkeypatch.setenv("AGENTPREP__LOGGING__LEVEL", "ERROR")

        # When
        config = load_config(tmp_path / "missing.yaml", logging={"level": "DEBUG"})

        # Then
        assert config.logging.level == "DEBUG"

    def test_given_invalid_value_when_load_then_config_error(self, tmp_path: Path) -> None:
        """Validation failures name the offending field."""
        # Given
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("dispatch:\n  grace_sec: -1\n")

        # When
        with pytest.raises(ConfigError) as exc_info:
            load_config(yaml_file)

        # Then
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "dispatch" in exc_info.value.details["field"]
