"""
Genesis Mutator

Copies the staged genesis into the bootstrap ledger and switches it to sleep
ticks so it boots without proof-of-history hashing delay. Only meant for local
bootstrap clusters.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..protocol.config.params import GENESIS_ARCHIVE, HASHES_PER_TICK
from ..protocol.types.artifacts import GenesisConfig
from ..protocol.types.common import BootstrapError, FetchError
from .tools import LedgerTool

logger = logging.getLogger(__name__)


class GenesisMutator:
    def __init__(self, ledger_tool: LedgerTool, operating_mode: Optional[str] = None):
        self.ledger_tool = ledger_tool
        self.operating_mode = operating_mode

    def mutate(self, staged_genesis: Path, ledger_dir: Path) -> GenesisConfig:
        """
        Raises:
            FetchError: If the staged genesis archive is gone
            BootstrapError: If the genesis cannot be copied into the ledger
            ToolInvocationError: If modify-genesis fails
        """
        if not staged_genesis.is_file():
            raise FetchError(f"Staged genesis archive {staged_genesis} is missing")

        try:
            ledger_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(staged_genesis, ledger_dir / GENESIS_ARCHIVE)
        except OSError as e:
            raise BootstrapError(f"Unable to copy genesis into {ledger_dir}: {e}", stage="genesis")

        config = GenesisConfig(
            ledger_dir=ledger_dir,
            tick_mode=HASHES_PER_TICK,
            operating_mode=self.operating_mode,
        )
        logger.info(f"Patching genesis in {ledger_dir} to --hashes-per-tick {config.tick_mode}")
        self.ledger_tool.modify_genesis(config)
        return config
