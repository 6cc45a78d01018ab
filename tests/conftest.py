"""Shared test fixtures.

Most tests run against FakeEngine: its "binaries" are shell scripts in a
temporary bin directory and its connections are sqlite3 files inside the
instance's storage, so the real process supervision and cleanup paths are
exercised without a database server installed.
"""

import os
import sqlite3
import stat

import pytest

from tempdb.commands import CommandRunner
from tempdb.config import InstanceConfig
from tempdb.engine import EngineVariant
from tempdb.exceptions import BootstrapError
from tempdb.locator import StaticBinaryLocator

READY_MARKER = "ready"

FAKE_INITDB = """#!/bin/sh
echo "initializing $1"
[ -d "$1" ] || exit 1
touch "$1/VERSION"
"""

FAKE_SERVER = """#!/bin/sh
echo "listening in $1"
touch "$1/{ready}"
exec sleep 600
""".format(ready=READY_MARKER)


class FakeEngine(EngineVariant):
    """An engine whose server is `sleep` and whose databases are sqlite files."""

    name = "fake"
    display_name = "Fake"
    marker_executable = "fake_initdb"
    service_account = "nobody"
    admin_database = "admin"
    config_filename = "fake.cnf"

    def __init__(self, initdb: str = "fake_initdb", server: str = "fake_server"):
        self.initdb = initdb
        self.server = server
        self.created: list[str] = []

    @property
    def transient_errors(self):
        return (sqlite3.OperationalError,)

    def config_contents(self, layout):
        return f"socket_dir = {layout.socket_dir}\n"

    def socket_path(self, layout):
        return str(layout.socket_dir / READY_MARKER)

    def bootstrap(self, runner: CommandRunner, layout) -> None:
        runner.check(
            self.initdb, str(layout.data_dir), error=BootstrapError, message="Failed to initialize DB"
        )

    def server_command(self, runner: CommandRunner, layout):
        return runner.command(self.server, str(layout.socket_dir))

    def connection_url(self, layout, database):
        return f"sqlite:///{layout.data_dir / database}.db"

    def connect(self, layout, database):
        if not os.path.exists(self.socket_path(layout)):
            raise sqlite3.OperationalError("server is not accepting connections")
        return sqlite3.connect(
            layout.data_dir / f"{database}.db", isolation_level=None, check_same_thread=False
        )

    def create_database(self, conn, name):
        self.created.append(name)


@pytest.fixture(autouse=True)
def not_superuser(monkeypatch):
    """Run as the caller even when the test suite itself runs as root."""
    monkeypatch.setattr("tempdb.privilege.is_superuser", lambda: False)


@pytest.fixture
def fake_bin(tmp_path):
    """A bin directory with healthy fake engine scripts; returns a writer for more."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def write(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text(body)
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    write("fake_initdb", FAKE_INITDB)
    write("fake_server", FAKE_SERVER)
    write.bin_dir = bin_dir
    return write


@pytest.fixture
def roots(tmp_path):
    """Parent directory for instance storage roots."""
    path = tmp_path / "roots"
    path.mkdir()
    return path


@pytest.fixture
def fake_config(fake_bin, roots):
    return InstanceConfig(
        locator=StaticBinaryLocator(fake_bin.bin_dir),
        temp_dir=str(roots),
        retry_attempts=500,
        retry_interval=0.01,
        shutdown_timeout=10.0,
    )


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def engine_factory():
    """FakeEngine itself, for tests that swap in misbehaving scripts."""
    return FakeEngine
