import pytest
import requests
from pathlib import Path

from ledgerboot.bootstrap.keystore import write_new_keypair_file
from ledgerboot.bootstrap.workspace import WorkspaceConfig
from ledgerboot.protocol.types.common import ToolInvocationError

SOURCE_URL = "http://cluster.test"
SNAPSHOT_NAME = "snapshot-12345-abcd.tar.bz2"


class FakeResponse:
    def __init__(self, url, body=b"", status_code=200, headers=None):
        self.url = url
        self.body = body
        self.status_code = status_code
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Serves canned responses keyed by request URL; unknown URLs fail to connect."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if url not in self.routes:
            raise requests.ConnectionError(f"Connection refused: {url}")
        return self.routes[url]


class FakeLedgerTool:
    """Records calls; create_snapshot writes snapshot-<slot>-<hash>.tar.bz2 like the real tool."""

    def __init__(self, fail_genesis=False, fail_snapshot=False, produced_slot=None):
        self.fail_genesis = fail_genesis
        self.fail_snapshot = fail_snapshot
        self.produced_slot = produced_slot
        self.genesis_calls = []
        self.snapshot_calls = []

    def modify_genesis(self, config):
        self.genesis_calls.append(config)
        if self.fail_genesis:
            raise ToolInvocationError("ledger-tool", ["modify-genesis"], 1, stderr="bad genesis", stage="genesis")

    def create_snapshot(self, request):
        self.snapshot_calls.append(request)
        if self.fail_snapshot:
            # Partial output that must not survive the failure
            (Path(request.output_dir) / "partial.tmp").write_bytes(b"junk")
            raise ToolInvocationError("ledger-tool", ["create-snapshot"], 1, stderr="bank error", stage="snapshot")
        slot = request.slot if self.produced_slot is None else self.produced_slot
        (Path(request.output_dir) / f"snapshot-{slot}-newhash.tar.bz2").write_bytes(b"rebuilt snapshot")


def cluster_routes(snapshot_name=SNAPSHOT_NAME, base=SOURCE_URL):
    return {
        f"{base}/genesis.tar.bz2": FakeResponse(f"{base}/genesis.tar.bz2", b"genesis-bytes"),
        f"{base}/snapshot.tar.bz2": FakeResponse(f"{base}/{snapshot_name}", b"snapshot-bytes" * 100),
    }


@pytest.fixture
def workspace(tmp_path):
    return WorkspaceConfig(str(tmp_path / "config"))


@pytest.fixture
def session():
    return FakeSession(cluster_routes())


@pytest.fixture
def ledger_tool():
    return FakeLedgerTool()


@pytest.fixture
def keypair_file(tmp_path):
    """A valid keypair file outside the workspace, as a caller would supply it."""
    path = tmp_path / "supplied" / "keypair.json"
    write_new_keypair_file(path)
    return path
