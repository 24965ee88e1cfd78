# MIT License
# Copyright (c) 2025 Hashborn

"""
Bootstrap Pipeline Data Structures
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..config.params import FAUCET_LAMPORTS, HASHES_PER_TICK
from .common import Provenance, Role


class SnapshotArchive(BaseModel):
    """
    Archives staged from the remote cluster. `slot` stays unset until the
    snapshot filename has been parsed.
    """
    genesis_path: Path = Field(..., description="Staged genesis.tar.bz2")
    snapshot_path: Path = Field(..., description="Staged snapshot-<slot>-<hash>.tar.bz2")
    slot: Optional[int] = Field(default=None, description="Slot recovered from the snapshot filename")
    source_url: str = Field(..., description="Base URL the archives were fetched from")
    genesis_sha256: str = Field(..., description="SHA256 of the genesis archive")
    snapshot_sha256: str = Field(..., description="SHA256 of the snapshot archive")

    def with_slot(self, slot: int) -> "SnapshotArchive":
        return self.model_copy(update={"slot": slot})


class Keypair(BaseModel):
    role: Role
    file_path: Path
    public_key: str = Field(..., description="Base58 public key")
    provenance: Provenance


class GenesisConfig(BaseModel):
    ledger_dir: Path
    tick_mode: str = Field(default=HASHES_PER_TICK, description="--hashes-per-tick value")
    operating_mode: Optional[str] = Field(default=None, description="Optional --operating-mode value")


class SnapshotRequest(BaseModel):
    """
    Everything the ledger tool needs to emit the bootstrap snapshot.
    """
    ledger_dir: Path = Field(..., description="Directory holding the remote genesis and snapshot")
    output_dir: Path = Field(..., description="Directory the new snapshot is written to")
    slot: int
    faucet: Keypair
    faucet_lamports: int = FAUCET_LAMPORTS
    identity: Keypair
    vote: Keypair
    stake: Keypair
    tick_mode: str = HASHES_PER_TICK


class BootstrapSnapshot(BaseModel):
    """
    Terminal artifact handed to the validator launcher.
    """
    ledger_dir: Path
    slot: int
    snapshot_path: Path
    faucet_pubkey: str
    faucet_lamports: int = FAUCET_LAMPORTS
    bootstrap_pubkeys: Dict[str, str] = Field(..., description="identity/vote/stake -> base58 pubkey")
    created_at: str = Field(..., description="ISO 8601 timestamp")


class RunManifest(BaseModel):
    """
    Written next to the bootstrap ledger after a successful run.
    """
    archive: SnapshotArchive
    keypairs: List[Keypair]
    genesis: GenesisConfig
    snapshot: BootstrapSnapshot
