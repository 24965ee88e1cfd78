# MIT License
# Copyright (c) 2025 Hashborn

"""
Artifact Fetcher

Stages the cluster's genesis and latest snapshot archives in a clean directory.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from ..protocol.config.params import (
    CONNECT_TIMEOUT_SEC,
    DOWNLOAD_CHUNK_SIZE,
    GENESIS_ARCHIVE,
    READ_TIMEOUT_SEC,
    SNAPSHOT_ARCHIVE,
)
from ..protocol.crypto.hash import sha256_file
from ..protocol.types.artifacts import SnapshotArchive
from ..protocol.types.common import FetchError
from .workspace import WorkspaceConfig

logger = logging.getLogger(__name__)

_DISPOSITION_RE = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


def server_filename(response: requests.Response) -> str:
    """
    Name the server chose for a download: Content-Disposition first, then the
    last path segment of the final (post-redirect) URL.
    """
    disposition = response.headers.get("Content-Disposition", "")
    match = _DISPOSITION_RE.search(disposition)
    if match:
        name = unquote(match.group(1))
    else:
        name = unquote(urlparse(response.url or "").path.rsplit("/", 1)[-1])
    name = os.path.basename(name.strip())
    if name in ("", ".", ".."):
        raise FetchError(f"Server returned no usable filename for {response.url}")
    return name


class ArtifactFetcher:
    """
    Downloads genesis.tar.bz2 and the server-named snapshot archive.

    No retries: a partial or missing archive aborts the run.
    """

    def __init__(self,
                 source_url: str,
                 workspace: WorkspaceConfig,
                 session: Optional[requests.Session] = None):
        self.source_url = source_url.rstrip("/")
        self.workspace = workspace
        self.session = session or requests.Session()
        self.timeout = (CONNECT_TIMEOUT_SEC, READ_TIMEOUT_SEC)

    def fetch(self) -> SnapshotArchive:
        """
        Recreates the staging directory and fetches both archives into it.

        Returns:
            SnapshotArchive with slot still unset

        Raises:
            FetchError: If either archive cannot be retrieved or is empty
        """
        staging = self.workspace.reset_dir(self.workspace.staging_dir)
        logger.info(f"Fetching cluster archives from {self.source_url} into {staging}")

        genesis_path = self._download(GENESIS_ARCHIVE, staging, trust_server_name=False)
        snapshot_path = self._download(SNAPSHOT_ARCHIVE, staging, trust_server_name=True)

        archive = SnapshotArchive(
            genesis_path=genesis_path,
            snapshot_path=snapshot_path,
            source_url=self.source_url,
            genesis_sha256=sha256_file(genesis_path),
            snapshot_sha256=sha256_file(snapshot_path),
        )
        logger.info(f"Staged {genesis_path.name} and {snapshot_path.name}")
        return archive

    def _download(self, artifact: str, target_dir: Path, trust_server_name: bool) -> Path:
        url = f"{self.source_url}/{artifact}"
        logger.info(f"GET {url}")
        try:
            with self.session.get(url, stream=True, timeout=self.timeout, allow_redirects=True) as resp:
                resp.raise_for_status()
                name = server_filename(resp) if trust_server_name else artifact
                path = target_dir / name
                written = 0
                with open(path, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {artifact} from {url}: {e}")
        except OSError as e:
            raise FetchError(f"Failed to write {artifact} into {target_dir}: {e}")

        if written == 0:
            raise FetchError(f"Fetched {artifact} from {url} is empty")

        logger.debug(f"Wrote {written / 1024:.2f} KB to {path}")
        return path
