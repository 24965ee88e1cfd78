import pytest

from conftest import FakeLedgerTool
from ledgerboot.bootstrap.keys import KeyProvisioner
from ledgerboot.bootstrap.slot import extract_slot
from ledgerboot.bootstrap.snapshot_builder import SnapshotBuilder
from ledgerboot.bootstrap.tools import NativeKeygen
from ledgerboot.protocol.types.common import Role, ToolInvocationError


@pytest.fixture
def keypairs(workspace):
    provisioner = KeyProvisioner(workspace, NativeKeygen())
    provisioner.provision_all()
    return {role: provisioner.keypair(role) for role in Role}


def build(builder, workspace, keypairs, slot=12345):
    return builder.build(
        snapshot_ledger=workspace.staging_dir,
        output_dir=workspace.bootstrap_dir,
        slot=slot,
        faucet=keypairs[Role.FAUCET],
        identity=keypairs[Role.IDENTITY],
        vote=keypairs[Role.VOTE],
        stake=keypairs[Role.STAKE],
    )


def leftover_build_dirs(workspace):
    return [p for p in workspace.root.iterdir() if p.name.startswith(".snapshot-build-")]


def test_builds_snapshot_at_pinned_slot(workspace, keypairs, ledger_tool):
    snapshot = build(SnapshotBuilder(ledger_tool, workspace), workspace, keypairs)

    assert snapshot.slot == 12345
    assert extract_slot(snapshot.snapshot_path) == 12345
    assert snapshot.snapshot_path.parent == workspace.bootstrap_dir
    assert snapshot.snapshot_path.exists()
    assert snapshot.faucet_lamports == 500000000000000000
    assert snapshot.faucet_pubkey == keypairs[Role.FAUCET].public_key
    assert snapshot.bootstrap_pubkeys == {
        "identity": keypairs[Role.IDENTITY].public_key,
        "vote": keypairs[Role.VOTE].public_key,
        "stake": keypairs[Role.STAKE].public_key,
    }
    assert leftover_build_dirs(workspace) == []


def test_request_carries_faucet_and_validator_keys(workspace, keypairs, ledger_tool):
    build(SnapshotBuilder(ledger_tool, workspace), workspace, keypairs)

    request = ledger_tool.snapshot_calls[0]
    assert request.ledger_dir == workspace.staging_dir
    assert request.slot == 12345
    assert request.faucet_lamports == 500000000000000000
    assert request.tick_mode == "sleep"
    assert request.faucet.file_path == workspace.faucet_keypair
    assert request.identity.file_path == workspace.identity_keypair
    assert request.vote.file_path == workspace.vote_keypair
    assert request.stake.file_path == workspace.stake_keypair


def test_tool_failure_leaves_no_output(workspace, keypairs):
    tool = FakeLedgerTool(fail_snapshot=True)

    with pytest.raises(ToolInvocationError) as exc:
        build(SnapshotBuilder(tool, workspace), workspace, keypairs)

    assert exc.value.stage == "snapshot"
    assert list(workspace.bootstrap_dir.glob("snapshot-*.tar.bz2")) == []
    assert not (workspace.bootstrap_dir / "partial.tmp").exists()
    assert leftover_build_dirs(workspace) == []


def test_wrong_slot_output_is_rejected(workspace, keypairs):
    tool = FakeLedgerTool(produced_slot=999)

    with pytest.raises(ToolInvocationError, match="expected slot 12345"):
        build(SnapshotBuilder(tool, workspace), workspace, keypairs)

    assert list(workspace.bootstrap_dir.glob("snapshot-*.tar.bz2")) == []
    assert leftover_build_dirs(workspace) == []


def test_missing_output_is_rejected(workspace, keypairs):
    class SilentTool(FakeLedgerTool):
        def create_snapshot(self, request):
            self.snapshot_calls.append(request)

    with pytest.raises(ToolInvocationError, match="no usable snapshot"):
        build(SnapshotBuilder(SilentTool(), workspace), workspace, keypairs)
