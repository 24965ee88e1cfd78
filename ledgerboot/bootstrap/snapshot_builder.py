# MIT License
# Copyright (c) 2025 Hashborn

"""
Snapshot Builder

Emits the bootstrap snapshot at the pinned slot with the faucet funded and the
validator identity, vote and stake accounts registered.
"""

import logging
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from ..protocol.config.params import FAUCET_LAMPORTS, HASHES_PER_TICK
from ..protocol.types.artifacts import BootstrapSnapshot, Keypair, SnapshotRequest
from ..protocol.types.common import BootstrapError, ParseError, ToolInvocationError
from .slot import extract_slot, find_snapshot
from .tools import LedgerTool
from .workspace import WorkspaceConfig

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    The ledger tool writes into a private build directory; its output is only
    moved into the bootstrap ledger once it has been checked. A failed build
    leaves nothing behind.
    """

    def __init__(self,
                 ledger_tool: LedgerTool,
                 workspace: WorkspaceConfig,
                 faucet_lamports: int = FAUCET_LAMPORTS):
        self.ledger_tool = ledger_tool
        self.workspace = workspace
        self.faucet_lamports = faucet_lamports

    def build(self,
              snapshot_ledger: Path,
              output_dir: Path,
              slot: int,
              faucet: Keypair,
              identity: Keypair,
              vote: Keypair,
              stake: Keypair) -> BootstrapSnapshot:
        """
        Args:
            snapshot_ledger: Directory holding the fetched genesis and snapshot
            output_dir: Bootstrap ledger directory receiving the new snapshot
            slot: Slot recovered from the fetched snapshot

        Raises:
            ToolInvocationError: If create-snapshot fails or produces the wrong output
            BootstrapError: If the build output cannot be staged or moved
        """
        try:
            self.workspace.root.mkdir(parents=True, exist_ok=True)
            build_dir = Path(tempfile.mkdtemp(prefix=".snapshot-build-", dir=self.workspace.root))
        except OSError as e:
            raise BootstrapError(f"Unable to create a snapshot build directory: {e}", stage="snapshot")
        request = SnapshotRequest(
            ledger_dir=snapshot_ledger,
            output_dir=build_dir,
            slot=slot,
            faucet=faucet,
            faucet_lamports=self.faucet_lamports,
            identity=identity,
            vote=vote,
            stake=stake,
            tick_mode=HASHES_PER_TICK,
        )

        logger.info(f"Creating bootstrap snapshot at slot {slot}...")
        try:
            self.ledger_tool.create_snapshot(request)
            produced = self._check_output(build_dir, slot)
            output_dir.mkdir(parents=True, exist_ok=True)
            try:
                for entry in sorted(build_dir.iterdir()):
                    self._move_into(entry, output_dir)
            except OSError as e:
                raise BootstrapError(f"Unable to move the snapshot into {output_dir}: {e}", stage="snapshot")
        finally:
            shutil.rmtree(build_dir, ignore_errors=True)

        snapshot_path = output_dir / produced.name
        logger.info(f"Bootstrap snapshot written to {snapshot_path}")
        return BootstrapSnapshot(
            ledger_dir=output_dir,
            slot=slot,
            snapshot_path=snapshot_path,
            faucet_pubkey=faucet.public_key,
            faucet_lamports=self.faucet_lamports,
            bootstrap_pubkeys={
                "identity": identity.public_key,
                "vote": vote.public_key,
                "stake": stake.public_key,
            },
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    def _check_output(self, build_dir: Path, slot: int) -> Path:
        try:
            produced = find_snapshot(build_dir)
            produced_slot = extract_slot(produced)
        except ParseError as e:
            raise ToolInvocationError(
                "create-snapshot", [], 0, stage="snapshot",
                message=f"create-snapshot produced no usable snapshot: {e}",
            )
        if produced_slot != slot:
            raise ToolInvocationError(
                "create-snapshot", [], 0, stage="snapshot",
                message=f"create-snapshot produced {produced.name}, expected slot {slot}",
            )
        return produced

    @staticmethod
    def _move_into(entry: Path, output_dir: Path):
        dest = output_dir / entry.name
        if dest.is_dir():
            shutil.rmtree(dest)
        elif dest.exists():
            dest.unlink()
        shutil.move(str(entry), str(dest))
