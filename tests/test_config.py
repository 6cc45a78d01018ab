"""Tests for InstanceConfig."""

import pytest

from tempdb.commands import SwitchMethod
from tempdb.config import InstanceConfig
from tempdb.locator import StaticBinaryLocator


class TestInstanceConfig:
    def test_defaults(self):
        config = InstanceConfig()
        assert config.database == "test"
        assert config.retry_attempts == 1000
        assert config.retry_interval == pytest.approx(0.01)
        assert config.readiness_budget == pytest.approx(10.0)
        assert config.switch_method is SwitchMethod.SETUID
        assert config.locator is None

    def test_from_env(self, tmp_path):
        config = InstanceConfig.from_env(
            {
                "TEMPDB_DATABASE": "ci",
                "TEMPDB_RETRY_ATTEMPTS": "3000",
                "TEMPDB_RETRY_INTERVAL": "0.02",
                "TEMPDB_SHUTDOWN_TIMEOUT": "5",
                "TEMPDB_SERVICE_ACCOUNT": "pgsql",
                "TEMPDB_SWITCH_METHOD": "su",
                "TEMPDB_TMPDIR": str(tmp_path),
                "TEMPDB_BIN_DIR": "/usr/lib/postgresql/16/bin",
            }
        )
        assert config.database == "ci"
        assert config.retry_attempts == 3000
        assert config.readiness_budget == pytest.approx(60.0)
        assert config.shutdown_timeout == 5.0
        assert config.service_account == "pgsql"
        assert config.switch_method is SwitchMethod.SU
        assert config.temp_dir == str(tmp_path)
        assert isinstance(config.locator, StaticBinaryLocator)

    def test_from_env_ignores_empty_values(self):
        config = InstanceConfig.from_env({"TEMPDB_RETRY_ATTEMPTS": ""})
        assert config.retry_attempts == 1000

    def test_switch_method_from_string(self):
        assert InstanceConfig(switch_method="su").switch_method is SwitchMethod.SU

    @pytest.mark.parametrize(
        "env",
        [
            {"TEMPDB_RETRY_ATTEMPTS": "many"},
            {"TEMPDB_RETRY_ATTEMPTS": "0"},
            {"TEMPDB_RETRY_INTERVAL": "-1"},
            {"TEMPDB_SHUTDOWN_TIMEOUT": "0"},
            {"TEMPDB_SWITCH_METHOD": "sudo"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ValueError):
            InstanceConfig.from_env(env)
