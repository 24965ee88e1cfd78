# MIT License
# Copyright (c) 2025 Hashborn

"""
External Tool Capabilities

The pipeline only talks to the ledger tool and the key generator through the
protocols below. The subprocess implementations shell out to the cluster's
binaries; NativeKeygen generates keys in-process.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Protocol

from ..protocol.config.params import DEFAULT_KEYGEN, DEFAULT_LEDGER_TOOL
from ..protocol.types.artifacts import GenesisConfig, SnapshotRequest
from ..protocol.types.common import ToolInvocationError
from .keystore import write_new_keypair_file

logger = logging.getLogger(__name__)


class LedgerTool(Protocol):
    def modify_genesis(self, config: GenesisConfig) -> None:
        ...

    def create_snapshot(self, request: SnapshotRequest) -> None:
        ...


class KeygenTool(Protocol):
    def new_keypair(self, outfile: Path, force: bool = False, silent: bool = True) -> None:
        ...


def run_tool(argv: List[str], stage: str) -> subprocess.CompletedProcess:
    """
    Runs an external binary to completion and checks its exit code.

    Raises:
        ToolInvocationError: If the binary is missing or exits non-zero
    """
    tool = Path(argv[0]).name
    logger.info(f"Running {' '.join(str(a) for a in argv)}")
    try:
        result = subprocess.run(argv, capture_output=True, text=True)
    except OSError as e:
        raise ToolInvocationError(tool, argv, None, stderr=str(e), stage=stage)

    if result.stdout:
        logger.debug(result.stdout.rstrip())
    if result.returncode != 0:
        if result.stderr:
            logger.error(result.stderr.rstrip())
        raise ToolInvocationError(tool, argv, result.returncode, stderr=result.stderr or "", stage=stage)
    if result.stderr:
        logger.debug(result.stderr.rstrip())
    return result


class SubprocessLedgerTool:
    """Drives `<ledger-tool> modify-genesis` and `<ledger-tool> create-snapshot`."""

    def __init__(self, binary: str = DEFAULT_LEDGER_TOOL):
        self.binary = binary

    def modify_genesis_argv(self, config: GenesisConfig) -> List[str]:
        argv = [
            self.binary, "modify-genesis",
            "--ledger", str(config.ledger_dir),
            "--hashes-per-tick", config.tick_mode,
        ]
        if config.operating_mode:
            argv += ["--operating-mode", config.operating_mode]
        return argv

    def create_snapshot_argv(self, request: SnapshotRequest) -> List[str]:
        return [
            self.binary, "create-snapshot",
            "--hashes-per-tick", request.tick_mode,
            "--ledger", str(request.ledger_dir),
            "--faucet-pubkey", str(request.faucet.file_path),
            "--faucet-lamports", str(request.faucet_lamports),
            "--bootstrap-validator",
            str(request.identity.file_path),
            str(request.vote.file_path),
            str(request.stake.file_path),
            str(request.slot),
            str(request.output_dir),
        ]

    def modify_genesis(self, config: GenesisConfig) -> None:
        run_tool(self.modify_genesis_argv(config), stage="genesis")

    def create_snapshot(self, request: SnapshotRequest) -> None:
        run_tool(self.create_snapshot_argv(request), stage="snapshot")


class SubprocessKeygen:
    """Drives `<keygen> new --no-passphrase`."""

    def __init__(self, binary: str = DEFAULT_KEYGEN):
        self.binary = binary

    def new_keypair_argv(self, outfile: Path, force: bool = False, silent: bool = True) -> List[str]:
        argv = [self.binary, "new", "--no-passphrase"]
        if force:
            argv.append("-f")
        if silent:
            argv.append("-s")
        argv += ["-o", str(outfile)]
        return argv

    def new_keypair(self, outfile: Path, force: bool = False, silent: bool = True) -> None:
        run_tool(self.new_keypair_argv(outfile, force=force, silent=silent), stage="keys")


class NativeKeygen:
    """Generates Ed25519 keypair files without an external binary."""

    name = "native-keygen"

    def new_keypair(self, outfile: Path, force: bool = False, silent: bool = True) -> None:
        try:
            pubkey = write_new_keypair_file(outfile, force=force)
        except OSError as e:
            raise ToolInvocationError(self.name, ["new", str(outfile)], 1, stderr=str(e), stage="keys")
        if not silent:
            logger.info(f"Wrote new keypair to {outfile}: pubkey {pubkey}")
