"""Instance configuration with environment overrides."""

import os
from dataclasses import dataclass
from typing import Mapping

from tempdb.commands import SwitchMethod
from tempdb.locator import BinaryLocator, StaticBinaryLocator

DEFAULT_DATABASE = "test"
DEFAULT_RETRY_ATTEMPTS = 1000
DEFAULT_RETRY_INTERVAL = 0.01
DEFAULT_SHUTDOWN_TIMEOUT = 30.0

ENV_PREFIX = "TEMPDB_"


@dataclass
class InstanceConfig:
    """Knobs for one instance. Every field has a working default.

    The readiness budget (retry_attempts x retry_interval, about 10s by
    default) can be raised on slow CI hosts.
    """

    database: str = DEFAULT_DATABASE
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT
    service_account: str | None = None
    switch_method: SwitchMethod = SwitchMethod.SETUID
    temp_dir: str | None = None
    locator: BinaryLocator | None = None

    def __post_init__(self) -> None:
        self.switch_method = SwitchMethod(self.switch_method)
        self.validate()

    def validate(self) -> None:
        if not self.database:
            raise ValueError("database name must not be empty")
        if self.retry_attempts < 1:
            raise ValueError(f"retry_attempts must be at least 1, got {self.retry_attempts}")
        if self.retry_interval < 0:
            raise ValueError(f"retry_interval must not be negative, got {self.retry_interval}")
        if self.shutdown_timeout <= 0:
            raise ValueError(f"shutdown_timeout must be positive, got {self.shutdown_timeout}")

    @property
    def readiness_budget(self) -> float:
        """Approximate upper bound, in seconds, on waiting for readiness."""
        return self.retry_attempts * self.retry_interval

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "InstanceConfig":
        """Build a config from TEMPDB_* environment variables.

        Unset variables keep their defaults; malformed numbers raise ValueError.
        """
        env = os.environ if environ is None else environ

        def get(key: str) -> str | None:
            value = env.get(ENV_PREFIX + key)
            return value if value else None

        kwargs: dict = {}
        if get("DATABASE"):
            kwargs["database"] = get("DATABASE")
        if get("RETRY_ATTEMPTS"):
            kwargs["retry_attempts"] = int(get("RETRY_ATTEMPTS"))
        if get("RETRY_INTERVAL"):
            kwargs["retry_interval"] = float(get("RETRY_INTERVAL"))
        if get("SHUTDOWN_TIMEOUT"):
            kwargs["shutdown_timeout"] = float(get("SHUTDOWN_TIMEOUT"))
        if get("SERVICE_ACCOUNT"):
            kwargs["service_account"] = get("SERVICE_ACCOUNT")
        if get("SWITCH_METHOD"):
            kwargs["switch_method"] = SwitchMethod(get("SWITCH_METHOD"))
        if get("TMPDIR"):
            kwargs["temp_dir"] = get("TMPDIR")
        if get("BIN_DIR"):
            kwargs["locator"] = StaticBinaryLocator(get("BIN_DIR"))
        return cls(**kwargs)
