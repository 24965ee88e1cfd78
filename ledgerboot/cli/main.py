# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import logging
import os
import sys

from pydantic import ValidationError

from ..bootstrap.pipeline import BootstrapPipeline, load_manifest
from ..bootstrap.slot import extract_slot
from ..bootstrap.tools import NativeKeygen, SubprocessKeygen, SubprocessLedgerTool
from ..bootstrap.workspace import WorkspaceConfig
from ..protocol.config.params import (
    CLUSTERS,
    CURRENT_CLUSTER,
    DEFAULT_CONFIG_DIR,
    DEFAULT_KEYGEN,
    DEFAULT_LEDGER_TOOL,
    ENV_CONFIG_DIR,
    ENV_FAUCET_KEYPAIR,
    ENV_IDENTITY_KEYPAIR,
    ENV_KEYGEN,
    ENV_LEDGER_TOOL,
    env_path,
    resolve_source_url,
)
from ..protocol.types.common import BootstrapError

logger = logging.getLogger(__name__)

def build_keygen(name: str):
    if name == "native":
        return NativeKeygen()
    return SubprocessKeygen(name)

def cmd_run(args) -> int:
    """Fetch the cluster snapshot and rebuild a bootstrap ledger from it."""
    workspace = WorkspaceConfig(args.config_dir)
    source_url = resolve_source_url(cluster=args.cluster, url=args.url)
    cluster = CLUSTERS[args.cluster] if args.cluster else CURRENT_CLUSTER
    if cluster.production and source_url == cluster.source_url:
        logger.warning(f"Rebuilding {cluster.name} state with sleep ticks; never use the result as a production genesis")

    pipeline = BootstrapPipeline(
        workspace=workspace,
        source_url=source_url,
        ledger_tool=SubprocessLedgerTool(args.ledger_tool),
        keygen=build_keygen(args.keygen),
        faucet_override=args.faucet_keypair,
        identity_override=args.identity_keypair,
        operating_mode=args.operating_mode,
    )
    try:
        snapshot = pipeline.run()
    except BootstrapError as e:
        logger.error(f"{e.stage} stage failed: {e}")
        return 1

    print(f"Bootstrap ledger: {snapshot.ledger_dir}")
    print(f"Snapshot:         {snapshot.snapshot_path.name} (slot {snapshot.slot})")
    print(f"Faucet:           {snapshot.faucet_pubkey} ({snapshot.faucet_lamports} lamports)")
    for role, pubkey in snapshot.bootstrap_pubkeys.items():
        print(f"{role.capitalize() + ':':<18}{pubkey}")
    return 0

def cmd_slot(args) -> int:
    """Print the slot encoded in a snapshot filename."""
    try:
        print(extract_slot(args.filename))
    except BootstrapError as e:
        logger.error(f"{e.stage} stage failed: {e}")
        return 1
    return 0

def cmd_show(args) -> int:
    """Show the manifest of the last successful run."""
    workspace = WorkspaceConfig(args.config_dir)
    try:
        manifest = load_manifest(workspace)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1
    except (OSError, ValidationError) as e:
        print(f"Error: unreadable manifest {workspace.manifest_path}: {e}")
        return 1

    if args.json:
        print(manifest.model_dump_json(indent=2))
        return 0

    print(f"Source:  {manifest.archive.source_url}")
    print(f"Slot:    {manifest.snapshot.slot}")
    print(f"Created: {manifest.snapshot.created_at}")
    print(f"{'Role':<10} {'Provenance':<11} {'Pubkey':<45} Path")
    print("-" * 100)
    for kp in manifest.keypairs:
        print(f"{kp.role.value:<10} {kp.provenance.value:<11} {kp.public_key:<45} {kp.file_path}")
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bootstrap validator genesis/snapshot builder")
    parser.add_argument(
        "--config-dir",
        default=os.environ.get(ENV_CONFIG_DIR, DEFAULT_CONFIG_DIR),
        help=f"Config root holding the staged and bootstrap ledgers (env {ENV_CONFIG_DIR})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Run command
    run_parser = subparsers.add_parser("run", help="Fetch the latest snapshot and build the bootstrap ledger")
    run_parser.add_argument("--cluster", choices=sorted(CLUSTERS), help="Cluster to fetch from (default: mainnet-beta)")
    run_parser.add_argument("--url", help="Archive source base URL, overrides --cluster")
    run_parser.add_argument(
        "--faucet-keypair",
        default=env_path(ENV_FAUCET_KEYPAIR),
        help=f"Reuse this faucet keypair file (env {ENV_FAUCET_KEYPAIR})",
    )
    run_parser.add_argument(
        "--identity-keypair",
        default=env_path(ENV_IDENTITY_KEYPAIR),
        help=f"Reuse this validator identity keypair file (env {ENV_IDENTITY_KEYPAIR})",
    )
    run_parser.add_argument(
        "--ledger-tool",
        default=os.environ.get(ENV_LEDGER_TOOL, DEFAULT_LEDGER_TOOL),
        help="Ledger tool binary",
    )
    run_parser.add_argument(
        "--keygen",
        default=os.environ.get(ENV_KEYGEN, DEFAULT_KEYGEN),
        help="Keygen binary, or 'native' to generate keys in-process",
    )
    run_parser.add_argument("--operating-mode", help="Pass --operating-mode to modify-genesis")

    # Slot command
    slot_parser = subparsers.add_parser("slot", help="Print the slot of a snapshot archive filename")
    slot_parser.add_argument("filename")

    # Show command
    show_parser = subparsers.add_parser("show", help="Show the last run's manifest")
    show_parser.add_argument("--json", action="store_true", help="Print the raw manifest")

    return parser

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "slot":
        return cmd_slot(args)
    elif args.command == "show":
        return cmd_show(args)
    return 1

if __name__ == "__main__":
    sys.exit(main())
