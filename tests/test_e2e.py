"""E2E tests that run real PostgreSQL and MySQL / MariaDB servers.

Requires: the engine binaries installed (they need not be running)
Run with: pytest tests/test_e2e.py -v -m e2e
"""

import pytest

import tempdb
from tempdb import InstanceConfig, NotInstalledError, create_engine
from tempdb.locator import PathBinaryLocator

pytestmark = pytest.mark.e2e


@pytest.fixture(autouse=True)
def not_superuser():
    """Real engines must drop privileges when the suite runs as root."""


def installed_engine(name):
    engine = create_engine(name)
    try:
        PathBinaryLocator(engine.fallback_bin_globs).locate(engine.marker_executable)
    except NotInstalledError as e:
        pytest.skip(str(e))
    return engine


@pytest.fixture(params=["postgres", "mysql"])
def engine(request):
    return installed_engine(request.param)


@pytest.fixture
def config():
    return InstanceConfig(retry_attempts=3000, retry_interval=0.01)


class TestRealEngines:
    def test_start_execute_stop(self, engine, config):
        instance = tempdb.start(engine, config)
        root = instance.root
        try:
            instance.engine.ping(instance.connection)
            instance.execute("CREATE TABLE test (val text)")
            instance.execute("INSERT INTO test (val) VALUES (%s)", ("hello",))
        finally:
            instance.stop()
        assert not root.exists()

    def test_fresh_database_each_time(self, engine, config):
        with tempdb.start(engine, config) as first:
            first.execute("CREATE TABLE leftover (id integer)")
        with tempdb.start(engine, config) as second:
            second.execute("CREATE TABLE leftover (id integer)")

    def test_two_instances_side_by_side(self, engine, config):
        with tempdb.start(engine, config) as first, tempdb.start(engine, config) as second:
            assert first.root != second.root
            assert first.socket_path != second.socket_path
            first.execute("CREATE TABLE a (id integer)")
            second.execute("CREATE TABLE a (id integer)")
