"""Private temporary storage for one database instance."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from tempdb.exceptions import ProvisioningError
from tempdb.privilege import ExecutionIdentity

if TYPE_CHECKING:
    from tempdb.engine import EngineVariant

logger = logging.getLogger(__name__)

DATA_DIRNAME = "data"
SOCKET_DIRNAME = "socket"
TRAVERSE_MODE = 0o711
CONFIG_FILE_MODE = 0o644


@dataclass(frozen=True)
class StorageLayout:
    """<root>/data, <root>/socket and, for some engines, <root>/<config file>."""

    root: Path
    data_dir: Path
    socket_dir: Path
    config_file: Path | None = None

    @classmethod
    def under(cls, root: Path, config_filename: str | None = None) -> StorageLayout:
        return cls(
            root=root,
            data_dir=root / DATA_DIRNAME,
            socket_dir=root / SOCKET_DIRNAME,
            config_file=root / config_filename if config_filename else None,
        )

    @property
    def exists(self) -> bool:
        return self.root.exists()

    def remove(self) -> None:
        """Delete the whole root. Best effort, safe to call repeatedly."""
        shutil.rmtree(self.root, ignore_errors=True)
        logger.debug("Removed storage %s", self.root)


def provision_storage(
    engine: EngineVariant,
    identity: ExecutionIdentity,
    temp_dir: str | os.PathLike | None = None,
) -> StorageLayout:
    """Allocate a fresh storage root for `engine`, owned by `identity`.

    On any filesystem failure the partially built root is removed before
    ProvisioningError is raised.
    """
    try:
        root = Path(tempfile.mkdtemp(prefix=f"{engine.name}test", dir=temp_dir))
    except OSError as exc:
        raise ProvisioningError(f"Failed to allocate temporary directory: {exc}") from exc

    layout = StorageLayout.under(root, engine.config_filename)
    try:
        for directory in (layout.data_dir, layout.socket_dir):
            directory.mkdir(mode=engine.directory_mode)
            # mkdir's mode is filtered through the umask
            os.chmod(directory, engine.directory_mode)

        if identity.switched:
            os.chmod(root, TRAVERSE_MODE)
            for directory in (layout.data_dir, layout.socket_dir):
                os.chown(directory, identity.uid, identity.gid)

        contents = engine.config_contents(layout)
        if layout.config_file is not None and contents is not None:
            layout.config_file.write_text(contents)
            os.chmod(layout.config_file, CONFIG_FILE_MODE)
    except OSError as exc:
        layout.remove()
        raise ProvisioningError(f"Failed to prepare storage in {root}: {exc}") from exc

    logger.info("Allocated %s storage in %s", engine.display_name, root)
    return layout
