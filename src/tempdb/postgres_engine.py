"""PostgreSQL implementation of EngineVariant."""

from urllib.parse import quote

import psycopg2
from psycopg2 import sql

from tempdb.commands import Command, CommandRunner
from tempdb.engine import EngineVariant
from tempdb.exceptions import BootstrapError
from tempdb.storage import StorageLayout
from tempdb.types import Connection

SUPERUSER = "postgres"
PORT = 5432


class PostgresEngine(EngineVariant):
    """PostgreSQL backend using psycopg2.

    The server listens on a unix socket in the private socket directory
    only (no TCP), runs without fsync, and is stopped with SIGINT, which
    PostgreSQL treats as a fast shutdown.
    """

    name = "postgres"
    display_name = "PostgreSQL"
    marker_executable = "initdb"
    service_account = "postgres"
    admin_database = "postgres"
    directory_mode = 0o700
    # Debian/Ubuntu and the PGDG RPMs keep initdb out of PATH
    fallback_bin_globs = (
        "/usr/lib/postgresql/*/bin",
        "/usr/pgsql-*/bin",
        "/usr/local/pgsql/bin",
    )

    @property
    def transient_errors(self) -> tuple[type[BaseException], ...]:
        return (psycopg2.OperationalError,)

    def socket_path(self, layout: StorageLayout) -> str:
        return str(layout.socket_dir / f".s.PGSQL.{PORT}")

    def bootstrap(self, runner: CommandRunner, layout: StorageLayout) -> None:
        runner.check(
            "initdb",
            "-D",
            str(layout.data_dir),
            "--no-sync",
            f"--username={SUPERUSER}",
            "--auth=trust",
            error=BootstrapError,
            message="Failed to initialize DB",
        )

    def server_command(self, runner: CommandRunner, layout: StorageLayout) -> Command:
        return runner.command(
            "postgres",
            "-D",
            str(layout.data_dir),
            "-k",
            str(layout.socket_dir),
            "-h",
            "",  # no TCP listener
            "-F",  # no fsync
        )

    def connection_url(self, layout: StorageLayout, database: str) -> str:
        return f"postgresql://{SUPERUSER}@/{database}?host={quote(str(layout.socket_dir), safe='')}"

    def connect(self, layout: StorageLayout, database: str) -> Connection:
        conn = psycopg2.connect(host=str(layout.socket_dir), dbname=database, user=SUPERUSER)
        conn.autocommit = True
        return conn

    def create_database(self, conn: Connection, name: str) -> None:
        with conn.cursor() as cur:
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(name)))
