"""Locating the directory that holds an engine's executables."""

import glob
import logging
import os
import re
import shutil
from abc import ABC, abstractmethod

from tempdb.exceptions import NotInstalledError

logger = logging.getLogger(__name__)


class BinaryLocator(ABC):
    """Resolves the directory containing an engine's administrative binaries."""

    @abstractmethod
    def locate(self, executable: str) -> str:
        """Return the directory containing `executable`.

        Raises NotInstalledError when it cannot be found.
        """


def _version_key(path: str) -> list:
    # /usr/lib/postgresql/16/bin sorts above /usr/lib/postgresql/9.6/bin
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", path)]


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


class PathBinaryLocator(BinaryLocator):
    """Searches the command search path, then engine-specific fallback globs.

    Some distributions (Debian and Ubuntu for PostgreSQL) intentionally keep
    administrative binaries such as initdb out of PATH, so the fallback globs
    list the versioned directories they install into. When several versions
    match, the highest one wins.
    """

    def __init__(self, fallback_globs: tuple[str, ...] = (), path: str | None = None):
        self._fallback_globs = tuple(fallback_globs)
        self._path = path

    def locate(self, executable: str) -> str:
        found = shutil.which(executable, path=self._path)
        if found:
            return os.path.dirname(found)

        for pattern in self._fallback_globs:
            candidates = glob.glob(os.path.join(pattern, executable))
            for candidate in sorted(candidates, key=_version_key, reverse=True):
                if _is_executable(candidate):
                    logger.debug("Found %s outside PATH at %s", executable, candidate)
                    return os.path.dirname(candidate)

        searched = ", ".join(self._fallback_globs) or "no fallback directories"
        raise NotInstalledError(
            f"Did not find {executable} on PATH or in {searched}; "
            "is the database engine installed?"
        )


class StaticBinaryLocator(BinaryLocator):
    """Always answers with one directory, after checking the executable is there."""

    def __init__(self, directory: str | os.PathLike):
        self._directory = os.fspath(directory)

    def locate(self, executable: str) -> str:
        if not _is_executable(os.path.join(self._directory, executable)):
            raise NotInstalledError(f"Did not find executable {executable} in {self._directory}")
        return self._directory
