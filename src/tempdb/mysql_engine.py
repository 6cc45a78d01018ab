"""MySQL / MariaDB implementation of EngineVariant."""

import logging
from urllib.parse import quote

import pymysql

from tempdb.commands import Command, CommandRunner
from tempdb.engine import EngineVariant
from tempdb.exceptions import BootstrapError, ShutdownError
from tempdb.process import ServerProcess
from tempdb.storage import StorageLayout
from tempdb.types import Connection

logger = logging.getLogger(__name__)

SOCKET_NAME = "mysql.sock"
GENERAL_LOG_NAME = "general.log"
ERROR_LOG_NAME = "error.log"

# Logs live next to the socket: the data directory must be empty for
# --initialize, and the storage root is not writable by the service account.
CONFIG_TEMPLATE = """[mysqld]
datadir = {data_dir}
socket = {socket}
general_log_file = {general_log}
general_log = 1
log-error = {error_log}
skip-networking
loose-mysqlx = OFF
"""


class MySQLEngine(EngineVariant):
    """MySQL and MariaDB backend using PyMySQL.

    The server is run through mysqld_safe with a generated my.cnf, so the
    host's own configuration is never read. mysqld_safe does not pass
    signals on to mysqld, so shutdown goes through mysqladmin.
    """

    name = "mysql"
    display_name = "MySQL / MariaDB"
    marker_executable = "mysqld_safe"
    service_account = "mysql"
    admin_database = "mysql"
    directory_mode = 0o711
    config_filename = "my.cnf"
    fallback_bin_globs = ("/usr/local/mysql/bin", "/opt/mysql/*/bin")

    @property
    def transient_errors(self) -> tuple[type[BaseException], ...]:
        return (pymysql.err.OperationalError,)

    def socket_path(self, layout: StorageLayout) -> str:
        return str(layout.socket_dir / SOCKET_NAME)

    def config_contents(self, layout: StorageLayout) -> str:
        return CONFIG_TEMPLATE.format(
            data_dir=layout.data_dir,
            socket=self.socket_path(layout),
            general_log=layout.socket_dir / GENERAL_LOG_NAME,
            error_log=layout.socket_dir / ERROR_LOG_NAME,
        )

    def log_files(self, layout: StorageLayout) -> list[str]:
        return [str(layout.socket_dir / ERROR_LOG_NAME)]

    def is_mariadb(self, runner: CommandRunner) -> bool:
        out = runner.check(
            "mysql", "--version", error=BootstrapError, message="Failed to get version"
        )
        return "MariaDB" in out

    def bootstrap(self, runner: CommandRunner, layout: StorageLayout) -> None:
        defaults = f"--defaults-file={layout.config_file}"
        datadir = f"--datadir={layout.data_dir}"
        if self.is_mariadb(runner):
            logger.debug("Detected MariaDB, initializing with mysql_install_db")
            runner.check(
                "mysql_install_db",
                defaults,
                datadir,
                error=BootstrapError,
                message="Failed to initialize DB",
            )
        else:
            runner.check(
                "mysqld_safe",
                defaults,
                "--initialize-insecure",
                datadir,
                error=BootstrapError,
                message="Failed to initialize DB",
            )

    def server_command(self, runner: CommandRunner, layout: StorageLayout) -> Command:
        return runner.command("mysqld_safe", f"--defaults-file={layout.config_file}")

    def shutdown(
        self,
        runner: CommandRunner,
        process: ServerProcess,
        layout: StorageLayout,
        timeout: float,
    ) -> None:
        try:
            result = runner.run("mysqladmin", "-u", "root", "-S", self.socket_path(layout), "shutdown")
        except OSError as exc:
            process.abort(timeout)
            raise ShutdownError(f"Failed to shutdown DB: {exc}") from exc

        if result.returncode != 0:
            process.abort(timeout)
            raise ShutdownError(
                f"Failed to shutdown DB: exit status {result.returncode} -> {result.stdout}"
            )
        process.wait(timeout)

    def connection_url(self, layout: StorageLayout, database: str) -> str:
        socket = quote(self.socket_path(layout), safe="")
        return f"mysql+pymysql://root@localhost/{database}?unix_socket={socket}"

    def connect(self, layout: StorageLayout, database: str) -> Connection:
        return pymysql.connect(
            unix_socket=self.socket_path(layout),
            user="root",
            database=database,
            autocommit=True,
        )

    def ping(self, conn: Connection) -> None:
        conn.ping(reconnect=False)

    def create_database(self, conn: Connection, name: str) -> None:
        quoted = name.replace("`", "``")
        with conn.cursor() as cur:
            cur.execute(f"CREATE DATABASE IF NOT EXISTS `{quoted}`")
