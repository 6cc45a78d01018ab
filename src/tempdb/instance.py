"""The Instance handle: start, use and stop one throwaway database server."""

import logging
import os
from contextlib import ExitStack, closing
from pathlib import Path

from tempdb.commands import CommandRunner
from tempdb.config import InstanceConfig
from tempdb.engine import EngineVariant
from tempdb.exceptions import StartupError, TempDBError
from tempdb.locator import PathBinaryLocator
from tempdb.privilege import CALLER, resolve_identity
from tempdb.process import ServerProcess
from tempdb.retry import retry
from tempdb.storage import StorageLayout, provision_storage
from tempdb.types import Connection, Params, ProcessState

logger = logging.getLogger(__name__)


class Instance:
    """One single-use database server, its private storage and a live connection.

    Instances are not thread-safe: only the code that started an instance
    should use or stop it. Separate instances share nothing and may run
    side by side.
    """

    def __init__(self, engine: EngineVariant, config: InstanceConfig | None = None):
        self.engine = engine
        self.config = config or InstanceConfig()
        self.identity = CALLER
        self.bin_dir: str | None = None
        self.runner: CommandRunner | None = None
        self.layout: StorageLayout | None = None
        self.process: ServerProcess | None = None
        self.connection: Connection | None = None
        self.state = ProcessState.CREATED

    def __repr__(self) -> str:
        return f"<Instance {self.engine.name} {self.state.value} root={self.root}>"

    @property
    def root(self) -> Path | None:
        return self.layout.root if self.layout else None

    @property
    def socket_path(self) -> str | None:
        return self.engine.socket_path(self.layout) if self.layout else None

    @property
    def url(self) -> str:
        if self.layout is None:
            raise TempDBError("Instance has no storage yet")
        return self.engine.connection_url(self.layout, self.config.database)

    def start(self) -> "Instance":
        """Provision, bootstrap and launch the server, then connect to a fresh test database.

        On failure everything acquired so far is released before the error
        propagates, so the caller never has anything to clean up.
        """
        if self.state is not ProcessState.CREATED:
            raise TempDBError(f"Instance cannot be started twice (state: {self.state.value})")

        config = self.config
        with ExitStack() as stack:
            stack.callback(self._mark_failed)

            self.identity = resolve_identity(config.service_account or self.engine.service_account)
            locator = config.locator or PathBinaryLocator(self.engine.fallback_bin_globs)
            self.bin_dir = locator.locate(self.engine.marker_executable)
            self.runner = CommandRunner(self.bin_dir, self.identity, config.switch_method)

            self.layout = provision_storage(self.engine, self.identity, config.temp_dir)
            stack.callback(self.layout.remove)

            self.state = ProcessState.INITIALIZING
            self.engine.bootstrap(self.runner, self.layout)

            self.state = ProcessState.STARTING
            self.process = ServerProcess.spawn(self.engine.server_command(self.runner, self.layout))
            stack.callback(self.process.close)
            stack.callback(self.process.abort, config.shutdown_timeout)
            logger.info("Started %s (pid %d) in %s", self.engine.display_name, self.process.pid, self.root)

            self.state = ProcessState.AWAITING_READY
            try:
                self.connection = self._await_ready()
            except Exception as exc:
                self.process.abort(config.shutdown_timeout)
                raise StartupError(
                    f"Failed to connect to {config.database} database: {exc}\n{self._diagnostics()}"
                ) from exc

            self.state = ProcessState.READY
            stack.pop_all()

        logger.info("%s ready at %s", self.engine.display_name, self.socket_path)
        return self

    def _mark_failed(self) -> None:
        self.connection = None
        self.state = ProcessState.FAILED

    def _open(self, database: str) -> Connection:
        self.process.ensure_running()
        conn = self.engine.connect(self.layout, database)
        try:
            self.engine.ping(conn)
        except BaseException:
            conn.close()
            raise
        return conn

    def _create_on_fresh_admin(self) -> None:
        # A failed attempt may leave the admin connection dead, so every
        # attempt opens and closes its own.
        with closing(self._open(self.engine.admin_database)) as admin:
            self.engine.create_database(admin, self.config.database)

    def _await_ready(self) -> Connection:
        # The server accepts connections slightly before it accepts DDL, so
        # database creation is retried on its own as well.
        config = self.config
        admin_database = self.engine.admin_database

        def attempt(fn, description):
            return retry(
                fn,
                config.retry_attempts,
                config.retry_interval,
                retry_on=self.engine.transient_errors,
                description=description,
            )

        attempt(lambda: self._open(admin_database).close(), f"connect to {admin_database}")
        attempt(self._create_on_fresh_admin, f"create database {config.database}")
        return attempt(lambda: self._open(config.database), f"connect to {config.database}")

    def _diagnostics(self) -> str:
        parts = [self.process.diagnostics()]
        for path in self.engine.log_files(self.layout):
            if not os.path.exists(path):
                continue
            try:
                parts.append(f"LOG {path}: {Path(path).read_text(errors='replace')}")
            except OSError as e:
                logger.debug("Could not read %s: %s", path, e)
        return "\n".join(parts)

    def execute(self, sql: str, params: Params | None = None) -> None:
        """Run one statement on the test database connection."""
        if self.state is not ProcessState.READY:
            raise TempDBError(f"Instance is not ready (state: {self.state.value})")
        self.engine.execute(self.connection, sql, params)

    def stop(self) -> None:
        """Shut the server down and delete its storage.

        Storage removal is always attempted, even when shutdown fails, and
        its own failures are ignored. Stopping an instance that was never
        started or is already stopped does nothing.
        """
        if self.state in (ProcessState.CREATED, ProcessState.STOPPED, ProcessState.FAILED):
            return

        self.state = ProcessState.STOPPING
        # Callbacks run last-registered first: connection close, then shutdown,
        # then storage removal. A shutdown failure is what propagates; an
        # earlier close failure stays attached as its __context__.
        with ExitStack() as stack:
            stack.callback(self._release)
            stack.callback(
                self.engine.shutdown,
                self.runner,
                self.process,
                self.layout,
                self.config.shutdown_timeout,
            )
            if self.connection is not None:
                stack.callback(self.connection.close)
        logger.info("Stopped %s, removed %s", self.engine.display_name, self.root)

    def _release(self) -> None:
        self.connection = None
        self.process.close()
        self.layout.remove()
        self.state = ProcessState.STOPPED

    def __enter__(self) -> "Instance":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def stop(instance: Instance | None) -> None:
    """Stop `instance`; None is accepted and ignored."""
    if instance is None:
        return
    instance.stop()
