"""Tests for operator configuration loading."""

from datetime import timedelta

import pytest
import yaml

from transportca.config import CONFIG_ENV_VAR, OperatorConfig, load_config
from transportca.exceptions import ConfigurationError


def _write(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestLoadConfig:

    def test_defaults_without_file(self, monkeypatch) -> None:
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        config = load_config()

        assert config == OperatorConfig()
        assert config.storage.backend == "memory"
        assert config.rotation.validity == timedelta(days=365)

    def test_yaml_file(self, tmp_path) -> None:
        path = _write(
            tmp_path,
            {
                "rotation": {"validity": "P90D", "rotate_before": "P10D"},
                "storage": {"backend": "redis", "redis_host": "redis.internal"},
                "cluster_suffix": "es",
                "pass_timeout_seconds": 15,
            },
        )

        config = load_config(path)

        assert config.rotation.rotate_before == timedelta(days=10)
        assert config.storage.redis_host == "redis.internal"
        assert config.namer().suffix("prod", "transport") == "prod-es-transport"
        assert config.pass_timeout_seconds == 15

    def test_env_var(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, _write(tmp_path, {"log_level": "DEBUG"}))

        assert load_config().log_level == "DEBUG"

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(str(path)) == OperatorConfig()

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="cannot read config"):
            load_config(str(tmp_path / "absent.yaml"))

    def test_malformed_yaml(self, tmp_path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("rotation: [unclosed\n")

        with pytest.raises(ConfigurationError, match="cannot read config"):
            load_config(str(path))

    def test_invalid_rotation(self, tmp_path) -> None:
        path = _write(tmp_path, {"rotation": {"validity": "P1D", "rotate_before": "P2D"}})

        with pytest.raises(ConfigurationError, match="invalid config"):
            load_config(path)


class TestNewContext:

    def test_without_pass_timeout(self) -> None:
        ctx = OperatorConfig(operation_timeout_seconds=5).new_context()

        assert ctx.deadline is None
        assert ctx.operation_timeout == 5

    def test_with_pass_timeout(self) -> None:
        ctx = OperatorConfig(pass_timeout_seconds=2).new_context()

        assert ctx.deadline is not None
        assert 0 < ctx.remaining() <= 2
