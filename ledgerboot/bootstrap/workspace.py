# MIT License
# Copyright (c) 2025 Hashborn

"""
Workspace layout and the advisory lock that keeps runs from sharing it.
"""

import fcntl
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from ..protocol.types.common import WorkspaceError, WorkspaceLockedError

logger = logging.getLogger(__name__)

LOCK_FILENAME = ".ledgerboot.lock"


class WorkspaceConfig:
    """
    All paths a run touches, derived from one config root.

    Layout:
    - <root>/latest-snapshot/       (archives fetched from the cluster)
    - <root>/bootstrap-validator/   (keys, patched genesis, rebuilt snapshot)
    - <root>/faucet.json
    """

    def __init__(self, root: str):
        self.root = Path(root).expanduser().resolve()

    @property
    def staging_dir(self) -> Path:
        return self.root / "latest-snapshot"

    @property
    def bootstrap_dir(self) -> Path:
        return self.root / "bootstrap-validator"

    @property
    def faucet_keypair(self) -> Path:
        return self.root / "faucet.json"

    @property
    def identity_keypair(self) -> Path:
        return self.bootstrap_dir / "identity.json"

    @property
    def vote_keypair(self) -> Path:
        return self.bootstrap_dir / "vote-account.json"

    @property
    def stake_keypair(self) -> Path:
        return self.bootstrap_dir / "stake-account.json"

    @property
    def manifest_path(self) -> Path:
        return self.bootstrap_dir / "bootstrap.json"

    @property
    def lock_path(self) -> Path:
        return self.root / LOCK_FILENAME

    def reset_dir(self, path: Path) -> Path:
        """
        Removes a directory with all its content and recreates it empty.

        Raises:
            WorkspaceError: If the directory cannot be removed or created
        """
        try:
            if path.is_dir():
                logger.debug(f"Discarding previous content of {path}")
                shutil.rmtree(path)
            path.mkdir(parents=True)
        except OSError as e:
            raise WorkspaceError(f"Unable to reset {path}: {e}")
        return path

    def lock(self) -> "WorkspaceLock":
        return WorkspaceLock(self.lock_path)


class WorkspaceLock:
    """
    Exclusive, non-blocking flock on a file in the workspace root.
    Held for a whole pipeline run.
    """

    def __init__(self, path: Path):
        self.path = path
        self._fd: Optional[int] = None

    def acquire(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise WorkspaceError(f"Unable to open workspace lock {self.path}: {e}")
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise WorkspaceLockedError(
                f"Workspace {self.path.parent} is in use by another run (lock: {self.path})"
            )
        self._fd = fd
        logger.debug(f"Acquired workspace lock {self.path}")

    def release(self):
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug(f"Released workspace lock {self.path}")

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> "WorkspaceLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
