"""Supervising the long-running database server process."""

import logging
import signal
import subprocess
import tempfile

from tempdb.commands import Command
from tempdb.exceptions import ProcessExitedError, ShutdownError, StartupError

logger = logging.getLogger(__name__)


class ServerProcess:
    """One spawned server process and its captured output.

    stdout and stderr go to anonymous temporary files rather than pipes, so
    a chatty server can never block on a full pipe while nobody reads it.
    """

    def __init__(self, command: Command):
        self.command = command
        self._stdout = tempfile.TemporaryFile()
        self._stderr = tempfile.TemporaryFile()
        self._popen: subprocess.Popen | None = None
        self._signalled: int | None = None

    @classmethod
    def spawn(cls, command: Command) -> "ServerProcess":
        process = cls(command)
        process.start()
        return process

    def start(self) -> None:
        logger.debug("Starting %s", self.command)
        try:
            self._popen = subprocess.Popen(
                self.command.argv,
                stdin=subprocess.DEVNULL,
                stdout=self._stdout,
                stderr=self._stderr,
                **self.command.popen_kwargs(),
            )
        except OSError as exc:
            self.close()
            raise StartupError(f"Failed to start database: {exc}") from exc

    @property
    def pid(self) -> int | None:
        return self._popen.pid if self._popen else None

    @property
    def returncode(self) -> int | None:
        return self._popen.poll() if self._popen else None

    @property
    def running(self) -> bool:
        return self._popen is not None and self._popen.poll() is None

    def ensure_running(self) -> None:
        """Raise ProcessExitedError if the server is already gone."""
        rc = self.returncode
        if rc is not None:
            raise ProcessExitedError(f"Database process exited with status {rc}")

    def interrupt(self, sig: int = signal.SIGINT) -> None:
        if self.running:
            logger.debug("Sending signal %d to pid %d", sig, self._popen.pid)
            self._popen.send_signal(sig)
            self._signalled = sig

    def wait(self, timeout: float) -> int:
        """Block until the server exits.

        Exit status 0, or death by the signal we sent, is a clean exit.
        Anything else raises ShutdownError, as does exceeding `timeout`
        (the process is killed first).
        """
        try:
            rc = self._popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            logger.warning("Database pid %d did not exit within %.1fs, killing", self._popen.pid, timeout)
            self._popen.kill()
            self._popen.wait()
            raise ShutdownError(
                f"Database did not exit within {timeout}s and was killed\n{self.diagnostics()}"
            ) from exc

        if rc != 0 and (self._signalled is None or rc != -self._signalled):
            raise ShutdownError(f"Database exited with status {rc}\n{self.diagnostics()}")
        logger.debug("Database pid %d exited with status %d", self._popen.pid, rc)
        return rc

    def abort(self, timeout: float) -> None:
        """Interrupt and reap the process, killing it if it lingers. Never raises."""
        if self._popen is None or self._popen.returncode is not None:
            return
        self.interrupt()
        try:
            self._popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Database pid %d ignored interrupt, killing", self._popen.pid)
            self._popen.kill()
            self._popen.wait()

    def diagnostics(self) -> str:
        return f"OUT: {self._read(self._stdout)}\nERR: {self._read(self._stderr)}"

    @staticmethod
    def _read(stream) -> str:
        if stream.closed:
            return ""
        stream.seek(0)
        return stream.read().decode("utf-8", errors="replace")

    def close(self) -> None:
        self._stdout.close()
        self._stderr.close()
