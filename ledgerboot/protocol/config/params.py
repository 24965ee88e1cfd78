# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict, Optional

# Snapshot construction constants
FAUCET_LAMPORTS = 500_000_000_000_000_000
HASHES_PER_TICK = "sleep"   # wall-clock ticks, no PoH hashing delay

# Remote archive names
GENESIS_ARCHIVE = "genesis.tar.bz2"
SNAPSHOT_ARCHIVE = "snapshot.tar.bz2"

# Download tuning
CONNECT_TIMEOUT_SEC = 10
READ_TIMEOUT_SEC = 30
DOWNLOAD_CHUNK_SIZE = 1024 * 1024

# External binaries
DEFAULT_LEDGER_TOOL = "solana-ledger-tool"
DEFAULT_KEYGEN = "solana-keygen"

# Environment variable names
ENV_CONFIG_DIR = "LEDGERBOOT_CONFIG_DIR"
ENV_SOURCE_URL = "LEDGERBOOT_SOURCE_URL"
ENV_LEDGER_TOOL = "LEDGERBOOT_LEDGER_TOOL"
ENV_KEYGEN = "LEDGERBOOT_KEYGEN"
ENV_FAUCET_KEYPAIR = "FAUCET_KEYPAIR"
ENV_IDENTITY_KEYPAIR = "BOOTSTRAP_VALIDATOR_IDENTITY_KEYPAIR"

DEFAULT_CONFIG_DIR = "./config"


class ClusterConfig:
    def __init__(self,
                 name: str,
                 source_url: str,
                 production: bool = False):
        self.name = name
        self.source_url = source_url
        # Snapshots from a production cluster are still rebuilt with sleep ticks;
        # the flag only drives the warning in the CLI.
        self.production = production


CLUSTERS: Dict[str, ClusterConfig] = {
    "mainnet-beta": ClusterConfig(
        name="mainnet-beta",
        source_url="http://api.mainnet-beta.solana.com",
        production=True,
    ),
    "testnet": ClusterConfig(
        name="testnet",
        source_url="http://api.testnet.solana.com",
    ),
    "devnet": ClusterConfig(
        name="devnet",
        source_url="http://api.devnet.solana.com",
    ),
}

# Default to mainnet-beta, the cluster the bootstrap flow was built against
CURRENT_CLUSTER = CLUSTERS["mainnet-beta"]


def env_path(name: str) -> Optional[str]:
    """Returns the env var value, treating an empty string as unset."""
    value = os.environ.get(name)
    if not value:
        return None
    return value


def resolve_source_url(cluster: Optional[str] = None, url: Optional[str] = None) -> str:
    """
    Picks the archive source: explicit URL, named cluster, env, then the default cluster.

    Raises:
        KeyError: If the cluster name is unknown
    """
    if url:
        return url.rstrip("/")
    if cluster:
        return CLUSTERS[cluster].source_url
    from_env = env_path(ENV_SOURCE_URL)
    if from_env:
        return from_env.rstrip("/")
    return CURRENT_CLUSTER.source_url
