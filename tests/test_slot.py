import pytest

from ledgerboot.bootstrap.slot import extract_slot, find_snapshot, MAX_SLOT
from ledgerboot.protocol.types.common import ParseError


@pytest.mark.parametrize("name,slot", [
    ("snapshot-12345-abcd.tar.bz2", 12345),
    ("snapshot-0-deadbeef.tar.bz2", 0),
    ("snapshot-007-x.tar.bz2", 7),
    ("snapshot-98765432-4Hb9s1tXwLdxq3HvVj3wrQ3QA2cF4bqbSZoaWr7cVn8p.tar.bz2", 98765432),
    ("/var/cache/latest-snapshot/snapshot-42-h.tar.bz2", 42),
])
def test_extract_slot_valid(name, slot):
    assert extract_slot(name) == slot


@pytest.mark.parametrize("name", [
    "snapshot-abc-xyz.tar.bz2",
    "snapshot--abcd.tar.bz2",
    "snapshot-12345.tar.bz2",
    "snapshot-12345-abcd.tar.gz",
    "snapshot-12345-abcd.tar.bz2.part",
    "genesis.tar.bz2",
    "old-snapshot-12345-abcd.tar.bz2",
    "",
])
def test_extract_slot_rejects_malformed_names(name):
    with pytest.raises(ParseError) as exc:
        extract_slot(name)
    assert exc.value.stage == "slot"


def test_non_numeric_slot_is_never_zero():
    with pytest.raises(ParseError, match="snapshot-abc-xyz.tar.bz2"):
        extract_slot("snapshot-abc-xyz.tar.bz2")


def test_extract_slot_u64_bounds():
    assert extract_slot(f"snapshot-{MAX_SLOT}-h.tar.bz2") == MAX_SLOT
    with pytest.raises(ParseError):
        extract_slot(f"snapshot-{MAX_SLOT + 1}-h.tar.bz2")


def test_find_snapshot_single(tmp_path):
    (tmp_path / "genesis.tar.bz2").write_bytes(b"g")
    (tmp_path / "snapshot-12345-abcd.tar.bz2").write_bytes(b"s")

    found = find_snapshot(tmp_path)

    assert found.name == "snapshot-12345-abcd.tar.bz2"
    assert extract_slot(found) == 12345


def test_find_snapshot_missing(tmp_path):
    (tmp_path / "genesis.tar.bz2").write_bytes(b"g")
    with pytest.raises(ParseError, match="Unable to find"):
        find_snapshot(tmp_path)


def test_find_snapshot_ambiguous(tmp_path):
    (tmp_path / "snapshot-100-a.tar.bz2").write_bytes(b"s")
    (tmp_path / "snapshot-200-b.tar.bz2").write_bytes(b"s")

    with pytest.raises(ParseError, match="Ambiguous snapshot selection") as exc:
        find_snapshot(tmp_path)
    assert "snapshot-100-a.tar.bz2" in str(exc.value)
    assert "snapshot-200-b.tar.bz2" in str(exc.value)


def test_find_snapshot_returns_unparseable_name_for_diagnosis(tmp_path):
    (tmp_path / "snapshot-abc-xyz.tar.bz2").write_bytes(b"s")

    found = find_snapshot(tmp_path)
    with pytest.raises(ParseError, match="snapshot-abc-xyz"):
        extract_slot(found)
