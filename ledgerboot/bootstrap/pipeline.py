# MIT License
# Copyright (c) 2025 Hashborn

"""
Bootstrap Pipeline

Fetch -> slot -> keys -> genesis -> snapshot, strictly in that order. Every
stage either succeeds completely or aborts the run; nothing is resumable
because each run resets its directories.
"""

import logging
from typing import Optional

import requests

from ..protocol.config.params import FAUCET_LAMPORTS
from ..protocol.types.artifacts import BootstrapSnapshot, RunManifest
from ..protocol.types.common import Role, WorkspaceError
from .fetcher import ArtifactFetcher
from .genesis import GenesisMutator
from .keys import KeyProvisioner
from .slot import extract_slot, find_snapshot
from .snapshot_builder import SnapshotBuilder
from .tools import KeygenTool, LedgerTool
from .workspace import WorkspaceConfig

logger = logging.getLogger(__name__)


class BootstrapPipeline:
    def __init__(self,
                 workspace: WorkspaceConfig,
                 source_url: str,
                 ledger_tool: LedgerTool,
                 keygen: KeygenTool,
                 faucet_override: Optional[str] = None,
                 identity_override: Optional[str] = None,
                 operating_mode: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.workspace = workspace
        self.fetcher = ArtifactFetcher(source_url, workspace, session=session)
        self.provisioner = KeyProvisioner(
            workspace,
            keygen,
            faucet_override=faucet_override,
            identity_override=identity_override,
        )
        self.mutator = GenesisMutator(ledger_tool, operating_mode=operating_mode)
        self.builder = SnapshotBuilder(ledger_tool, workspace, faucet_lamports=FAUCET_LAMPORTS)

    def run(self) -> BootstrapSnapshot:
        """
        Runs every stage under the workspace lock.

        Raises:
            BootstrapError: Any stage failure; the run is aborted
        """
        with self.workspace.lock():
            return self._run_locked()

    def _run_locked(self) -> BootstrapSnapshot:
        ws = self.workspace

        logger.info("[1/5] fetch")
        archive = self.fetcher.fetch()

        logger.info("[2/5] slot")
        snapshot_file = find_snapshot(ws.staging_dir)
        archive = archive.with_slot(extract_slot(snapshot_file))
        logger.info(f"Snapshot {snapshot_file.name} pins slot {archive.slot}")

        logger.info("[3/5] keys")
        # Overrides may point into the bootstrap dir (e.g. last run's identity.json)
        self.provisioner.load_overrides()
        ws.reset_dir(ws.bootstrap_dir)
        keypairs = self.provisioner.provision_all()

        logger.info("[4/5] genesis")
        genesis = self.mutator.mutate(archive.genesis_path, ws.bootstrap_dir)

        logger.info("[5/5] snapshot")
        snapshot = self.builder.build(
            snapshot_ledger=ws.staging_dir,
            output_dir=ws.bootstrap_dir,
            slot=archive.slot,
            faucet=self.provisioner.keypair(Role.FAUCET),
            identity=self.provisioner.keypair(Role.IDENTITY),
            vote=self.provisioner.keypair(Role.VOTE),
            stake=self.provisioner.keypair(Role.STAKE),
        )

        manifest = RunManifest(archive=archive, keypairs=keypairs, genesis=genesis, snapshot=snapshot)
        try:
            with open(ws.manifest_path, "w") as f:
                f.write(manifest.model_dump_json(indent=2))
        except OSError as e:
            raise WorkspaceError(f"Unable to write run manifest {ws.manifest_path}: {e}")
        logger.info(f"Bootstrap ledger ready in {ws.bootstrap_dir} (slot {snapshot.slot})")
        return snapshot


def load_manifest(workspace: WorkspaceConfig) -> RunManifest:
    """
    Raises:
        FileNotFoundError: If no run has completed in this workspace
    """
    path = workspace.manifest_path
    if not path.exists():
        raise FileNotFoundError(f"No bootstrap manifest at {path}")
    with open(path, "r") as f:
        return RunManifest.model_validate_json(f.read())
