"""Building and running engine commands under the right identity."""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tempdb.exceptions import TempDBError
from tempdb.privilege import CALLER, ExecutionIdentity

logger = logging.getLogger(__name__)


class SwitchMethod(str, Enum):
    """How an engine command is moved onto the service account."""

    SETUID = "setuid"
    SU = "su"


@dataclass(frozen=True)
class Command:
    """An executable command: argv plus the identity and cwd to run it with."""

    argv: list[str]
    user: int | None = None
    group: int | None = None
    cwd: str | None = None

    def popen_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}
        if self.user is not None:
            kwargs["user"] = self.user
            kwargs["group"] = self.group
            kwargs["extra_groups"] = []
        if self.cwd is not None:
            kwargs["cwd"] = self.cwd
        return kwargs

    def __str__(self) -> str:
        return shell_join(self.argv)


def shell_join(argv: list[str]) -> str:
    """Compose argv into one shell command line that splits back into argv.

    Each argument is quoted on its own, so an empty string survives as ''
    instead of vanishing when the shell re-splits the line.
    """
    return " ".join(shlex.quote(arg) for arg in argv)


def wrap_command(
    identity: ExecutionIdentity,
    executable: str,
    args: list[str] | tuple[str, ...] = (),
    method: SwitchMethod = SwitchMethod.SETUID,
) -> Command:
    """Build the command that runs `executable args` as `identity`."""
    argv = [executable, *args]
    if not identity.switched:
        return Command(argv)

    if method is SwitchMethod.SU:
        return Command(
            [
                "su",
                "--login",
                "--shell",
                "/bin/sh",
                "--command",
                shell_join(argv),
                identity.account,
            ]
        )

    # The service account usually cannot enter the caller's cwd (e.g. /root).
    return Command(argv, user=identity.uid, group=identity.gid, cwd="/")


@dataclass
class CommandRunner:
    """Runs binaries from one engine bin directory as one identity."""

    bin_dir: str
    identity: ExecutionIdentity = CALLER
    method: SwitchMethod = SwitchMethod.SETUID

    def command(self, name: str, *args: str) -> Command:
        return wrap_command(self.identity, os.path.join(self.bin_dir, name), args, self.method)

    def run(self, name: str, *args: str) -> subprocess.CompletedProcess:
        """Run a one-shot command synchronously, capturing stdout and stderr together."""
        command = self.command(name, *args)
        logger.debug("Running %s", command)
        return subprocess.run(
            command.argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
            **command.popen_kwargs(),
        )

    def check(
        self,
        name: str,
        *args: str,
        error: type[TempDBError] = TempDBError,
        message: str = "Command failed",
    ) -> str:
        """Run a command and return its output, raising `error` on failure."""
        try:
            result = self.run(name, *args)
        except OSError as exc:
            raise error(f"{message}: {exc}") from exc

        if result.returncode != 0:
            raise error(f"{message}: exit status {result.returncode} -> {result.stdout}")
        return result.stdout
