"""Deciding which identity the engine runs as.

Database engines refuse to run as root, so when the caller is the
superuser every engine command is executed as the engine's service
account instead.
"""

import logging
import os
import pwd
from dataclasses import dataclass

from tempdb.exceptions import ServiceAccountError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionIdentity:
    """Either the caller itself (all fields None) or a resolved service account."""

    uid: int | None = None
    gid: int | None = None
    account: str | None = None

    @property
    def switched(self) -> bool:
        return self.uid is not None


CALLER = ExecutionIdentity()


def is_superuser() -> bool:
    return os.geteuid() == 0


def resolve_identity(account: str) -> ExecutionIdentity:
    """Return CALLER, or the service account's identity when running as superuser."""
    if not is_superuser():
        return CALLER

    try:
        entry = pwd.getpwnam(account)
    except KeyError as exc:
        raise ServiceAccountError(
            f"Could not find {account} user, which is required when running as root"
        ) from exc

    logger.info("Running as root, engine commands will run as %s (uid %d)", account, entry.pw_uid)
    return ExecutionIdentity(uid=entry.pw_uid, gid=entry.pw_gid, account=account)
