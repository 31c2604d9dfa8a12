from pathlib import Path

import pytest

from undofile.errors import CorruptTreeError, StaleClientError
from undofile.history import Revision
from undofile.storage import EMPTY_HASH, hash_bytes
from undofile.sync import Freshness, SessionStore, SyncState, check, require_fresh


def make_state(**overrides: object) -> SyncState:
    values = dict(
        client_id="client-a",
        last_synced_file_hash=EMPTY_HASH,
        divergence_id=0,
        cursor=0,
    )
    values.update(overrides)
    return SyncState(**values)  # type: ignore[arg-type]


def test_matching_hash_is_fresh() -> None:
    assert check(make_state(), EMPTY_HASH) is Freshness.FRESH


def test_external_edit_makes_client_stale() -> None:
    assert check(make_state(), hash_bytes(b"edited elsewhere")) is Freshness.STALE


def test_require_fresh_raises_with_both_hashes() -> None:
    current = hash_bytes(b"edited elsewhere")

    with pytest.raises(StaleClientError) as excinfo:
        require_fresh(make_state(), current)

    assert excinfo.value.expected == EMPTY_HASH
    assert excinfo.value.actual == current


def test_session_store_round_trip(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / ".sessions" / "doc.txt.a.json", fsync=False)
    suffix = [Revision(id=4, parent_id=1, payload="ref", file_hash=hash_bytes(b"x"))]
    state = make_state(divergence_id=1, cursor=4, suffix=suffix)

    store.save(state)
    loaded = store.load()

    assert loaded == state
    assert loaded is not None and loaded.has_unmerged


def test_session_store_missing_file_is_none(tmp_path: Path) -> None:
    assert SessionStore(tmp_path / "none.json").load() is None


def test_session_store_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text("[1, 2")

    with pytest.raises(CorruptTreeError):
        SessionStore(path).load()


def test_session_store_rejects_missing_fields(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text('{"version": 1, "client_id": "a"}')

    with pytest.raises(CorruptTreeError):
        SessionStore(path).load()


def test_session_store_rejects_newer_versions(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text('{"version": 99}')

    with pytest.raises(CorruptTreeError):
        SessionStore(path).load()


def test_session_store_discard(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "session.json")
    store.save(make_state())

    store.discard()
    store.discard()

    assert store.load() is None
