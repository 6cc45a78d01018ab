"""Throwaway database servers for tests: factory and public API."""

from tempdb.config import InstanceConfig
from tempdb.engine import EngineVariant
from tempdb.exceptions import (
    BootstrapError,
    HostEnvironmentError,
    NotInstalledError,
    ProcessExitedError,
    ProvisioningError,
    ServiceAccountError,
    ShutdownError,
    StartupError,
    TempDBError,
)
from tempdb.instance import Instance, stop


def create_engine(name: str) -> EngineVariant:
    """Create an EngineVariant by name.

    Supported names:
    - postgres / postgresql
    - mysql / mariadb
    """
    name = name.lower()
    if name in ("postgres", "postgresql"):
        from tempdb.postgres_engine import PostgresEngine

        return PostgresEngine()
    elif name in ("mysql", "mariadb"):
        from tempdb.mysql_engine import MySQLEngine

        return MySQLEngine()
    else:
        raise ValueError(f"Unsupported database engine: {name}")


def start(engine: str | EngineVariant = "postgres", config: InstanceConfig | None = None) -> Instance:
    """Start a fresh server and return an Instance connected to its test database.

    Without an explicit config, settings come from TEMPDB_* environment
    variables.
    """
    if isinstance(engine, str):
        engine = create_engine(engine)
    return Instance(engine, config or InstanceConfig.from_env()).start()


__all__ = [
    "BootstrapError",
    "EngineVariant",
    "HostEnvironmentError",
    "Instance",
    "InstanceConfig",
    "NotInstalledError",
    "ProcessExitedError",
    "ProvisioningError",
    "ServiceAccountError",
    "ShutdownError",
    "StartupError",
    "TempDBError",
    "create_engine",
    "start",
    "stop",
]
