"""Abstract EngineVariant interface."""

from abc import ABC, abstractmethod
from contextlib import closing

from tempdb.commands import Command, CommandRunner
from tempdb.process import ServerProcess
from tempdb.storage import StorageLayout
from tempdb.types import Connection, Params


class EngineVariant(ABC):
    """Everything engine-specific about running a throwaway server.

    Design principles:
    - Stateless: all per-instance state lives in StorageLayout and Instance
    - Command-line only: engine binaries are driven through a CommandRunner
    - Driver-light: the supervisor only opens, pings and executes
    """

    name: str
    display_name: str
    marker_executable: str
    service_account: str
    admin_database: str
    directory_mode: int = 0o700
    config_filename: str | None = None
    fallback_bin_globs: tuple[str, ...] = ()

    @property
    @abstractmethod
    def transient_errors(self) -> tuple[type[BaseException], ...]:
        """Driver exceptions that mean "not ready yet, try again"."""

    def config_contents(self, layout: StorageLayout) -> str | None:
        """Contents of the engine config file, for engines that need one."""
        return None

    @abstractmethod
    def socket_path(self, layout: StorageLayout) -> str:
        """Path of the unix socket the server will listen on."""

    def log_files(self, layout: StorageLayout) -> list[str]:
        """Engine log files worth attaching to startup diagnostics."""
        return []

    @abstractmethod
    def bootstrap(self, runner: CommandRunner, layout: StorageLayout) -> None:
        """Create the data directory. Raises BootstrapError on failure."""

    @abstractmethod
    def server_command(self, runner: CommandRunner, layout: StorageLayout) -> Command:
        """Command that runs the server in the foreground, socket only."""

    def shutdown(
        self,
        runner: CommandRunner,
        process: ServerProcess,
        layout: StorageLayout,
        timeout: float,
    ) -> None:
        """Stop the server and wait for it to exit. Raises ShutdownError."""
        process.interrupt()
        process.wait(timeout)

    @abstractmethod
    def connection_url(self, layout: StorageLayout, database: str) -> str:
        """URL form of the connection parameters, for handing to other tools."""

    @abstractmethod
    def connect(self, layout: StorageLayout, database: str) -> Connection:
        """Open an autocommit DB-API connection to `database` over the socket."""

    def ping(self, conn: Connection) -> None:
        with closing(conn.cursor()) as cur:
            cur.execute("SELECT 1")

    @abstractmethod
    def create_database(self, conn: Connection, name: str) -> None:
        """Create the dedicated test database."""

    def execute(self, conn: Connection, sql: str, params: Params | None = None) -> None:
        with closing(conn.cursor()) as cur:
            cur.execute(sql, params or ())
