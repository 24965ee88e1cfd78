# MIT License
# Copyright (c) 2025 Hashborn

"""
Key Provisioner

Resolves the faucet and bootstrap validator keypairs for a run, reusing a
caller-supplied file where one is given and generating a new one otherwise.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..protocol.types.artifacts import Keypair
from ..protocol.types.common import KeyProvisionError, Provenance, Role, ToolInvocationError
from .keystore import load_keypair_file_bytes, read_keypair_file
from .tools import KeygenTool
from .workspace import WorkspaceConfig

logger = logging.getLogger(__name__)

# Provisioning order; faucet first so it lands before the validator keys
ROLE_ORDER = [Role.FAUCET, Role.IDENTITY, Role.VOTE, Role.STAKE]

# Roles whose file is overwritten in place if it already exists
FORCE_ROLES = {Role.FAUCET}


class KeyProvisioner:
    """
    Provisions one keypair per role.

    Only the faucet and identity roles accept an override path; vote and stake
    accounts are always freshly generated.
    """

    def __init__(self,
                 workspace: WorkspaceConfig,
                 keygen: KeygenTool,
                 faucet_override: Optional[str] = None,
                 identity_override: Optional[str] = None):
        self.workspace = workspace
        self.keygen = keygen
        self.overrides: Dict[Role, Optional[str]] = {
            Role.FAUCET: faucet_override or None,
            Role.IDENTITY: identity_override or None,
        }
        self._keypairs: Dict[Role, Keypair] = {}
        self._override_data: Dict[Role, Tuple[bytes, str]] = {}

    def default_path(self, role: Role) -> Path:
        return {
            Role.FAUCET: self.workspace.faucet_keypair,
            Role.IDENTITY: self.workspace.identity_keypair,
            Role.VOTE: self.workspace.vote_keypair,
            Role.STAKE: self.workspace.stake_keypair,
        }[role]

    def load_overrides(self):
        """
        Reads and validates every override into memory. Called before the
        bootstrap directory is reset, so an override that lives inside it
        survives the reset.

        Raises:
            KeyProvisionError: If an override file is missing, unreadable or corrupt
        """
        for role, override in self.overrides.items():
            if override and role not in self._override_data:
                self._override_data[role] = self._load_override(role, Path(override))

    def provision_all(self) -> List[Keypair]:
        """
        Resolves every role in order.

        Raises:
            KeyProvisionError: If an override file is missing, unreadable or corrupt
            ToolInvocationError: If the key generator fails
        """
        keypairs = [self.provision(role) for role in ROLE_ORDER]
        self._warn_on_shared_keys(keypairs)
        return keypairs

    def provision(self, role: Role) -> Keypair:
        target = self.default_path(role)
        override = self.overrides.get(role)
        if override:
            keypair = self._reuse(role, Path(override), target)
        else:
            keypair = self._generate(role, target)

        self._keypairs[role] = keypair
        logger.info(f"{role.value} keypair {keypair.provenance.value}: {keypair.public_key}")
        return keypair

    def _load_override(self, role: Role, source: Path) -> Tuple[bytes, str]:
        if not source.is_file() or not os.access(source, os.R_OK):
            raise KeyProvisionError(f"{role.value} keypair {source} does not exist or is not readable")
        try:
            return load_keypair_file_bytes(source)
        except (OSError, ValueError) as e:
            raise KeyProvisionError(f"{role.value} keypair {source} is not a valid keypair file: {e}")

    def _reuse(self, role: Role, source: Path, target: Path) -> Keypair:
        if role not in self._override_data:
            self._override_data[role] = self._load_override(role, source)
        content, pubkey = self._override_data[role]

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as f:
            f.write(content)
        os.chmod(target, 0o600)
        return Keypair(role=role, file_path=target, public_key=pubkey, provenance=Provenance.REUSED)

    def _generate(self, role: Role, target: Path) -> Keypair:
        target.parent.mkdir(parents=True, exist_ok=True)
        self.keygen.new_keypair(target, force=role in FORCE_ROLES, silent=True)
        try:
            _, pubkey = read_keypair_file(target)
        except (OSError, ValueError) as e:
            raise ToolInvocationError(
                type(self.keygen).__name__, [str(target)], 0, stage="keys",
                message=f"Key generator produced an unusable {role.value} keypair at {target}: {e}",
            )
        return Keypair(role=role, file_path=target, public_key=pubkey, provenance=Provenance.GENERATED)

    def keypair(self, role: Role) -> Keypair:
        """Cached keypair for a provisioned role."""
        try:
            return self._keypairs[role]
        except KeyError:
            raise KeyProvisionError(f"{role.value} keypair has not been provisioned")

    def public_keys(self) -> Dict[Role, str]:
        return {role: kp.public_key for role, kp in self._keypairs.items()}

    def _warn_on_shared_keys(self, keypairs: List[Keypair]):
        seen: Dict[str, Role] = {}
        for kp in keypairs:
            if kp.public_key in seen:
                logger.warning(
                    f"{kp.role.value} and {seen[kp.public_key].value} keypairs share pubkey {kp.public_key}"
                )
            else:
                seen[kp.public_key] = kp.role
