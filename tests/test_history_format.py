import json

import pytest

from undofile.errors import (
    CorruptTreeError,
    InvalidChecksumError,
    InvalidHeaderError,
    OutdatedFormatError,
)
from undofile.history import FORMAT_VERSION, MAGIC, UndoTree
from undofile.history.format import _canonical, decode
from undofile.storage import EMPTY_HASH, hash_bytes


def make_node(rev_id: int, parent: int | None, text: str = "") -> dict:
    return {
        "id": rev_id,
        "parent": parent,
        "payload": None,
        "created_at": 0.0,
        "file_hash": hash_bytes(text.encode()) if text else EMPTY_HASH,
    }


def encode_body(**overrides: object) -> bytes:
    body = {
        "version": FORMAT_VERSION,
        "root": 0,
        "cursor": 0,
        "next_id": 2,
        "nodes": [make_node(0, None), make_node(1, 0, "one")],
    }
    body.update(overrides)
    return MAGIC + _canonical(dict(body, checksum=hash_bytes(_canonical(body))))


def test_encoding_starts_with_magic_and_is_deterministic() -> None:
    tree = UndoTree.new()
    tree.create_revision("ref", 0, file_hash=hash_bytes(b"x"), created_at=1.0)

    first = tree.serialize()
    second = tree.copy().serialize()

    assert first.startswith(MAGIC)
    assert first == second


def test_decode_accepts_hand_built_body() -> None:
    record = decode(encode_body())

    assert record.root == 0
    assert sorted(record.nodes) == [0, 1]
    assert record.next_id == 2


def test_bad_magic_is_an_invalid_header() -> None:
    with pytest.raises(InvalidHeaderError):
        UndoTree.deserialize(b"NOTUNDO\n{}")


def test_newer_version_is_outdated() -> None:
    with pytest.raises(OutdatedFormatError) as excinfo:
        UndoTree.deserialize(encode_body(version=FORMAT_VERSION + 1))

    assert excinfo.value.supported == FORMAT_VERSION


def test_tampered_body_fails_checksum() -> None:
    data = encode_body().replace(b'"cursor":0', b'"cursor":1')

    with pytest.raises(InvalidChecksumError):
        UndoTree.deserialize(data)


def test_garbage_body_is_corrupt() -> None:
    with pytest.raises(CorruptTreeError):
        UndoTree.deserialize(MAGIC + b"{not json")


@pytest.mark.parametrize(
    "nodes",
    [
        [],
        [make_node(0, None), make_node(1, None, "two roots")],
        [make_node(0, None), make_node(2, 1, "orphan")],
        [make_node(0, None), make_node(1, 0, "a"), make_node(1, 0, "dup")],
        [make_node(0, None), make_node(1, 3, "forward parent")],
    ],
)
def test_invalid_shapes_are_corrupt(nodes: list) -> None:
    with pytest.raises(CorruptTreeError):
        UndoTree.deserialize(encode_body(nodes=nodes))


def test_cursor_must_name_a_revision() -> None:
    with pytest.raises(CorruptTreeError):
        UndoTree.deserialize(encode_body(cursor=7))


def test_header_root_must_match() -> None:
    with pytest.raises(CorruptTreeError):
        UndoTree.deserialize(encode_body(root=1))


def test_corrupt_errors_carry_reason() -> None:
    with pytest.raises(CorruptTreeError) as excinfo:
        UndoTree.deserialize(encode_body(nodes=[make_node(0, None), make_node(2, 1)]))

    assert "missing parent" in excinfo.value.reason


def test_body_is_plain_json() -> None:
    tree = UndoTree.new()
    document = json.loads(tree.serialize()[len(MAGIC) :])

    assert document["version"] == FORMAT_VERSION
    assert document["nodes"][0]["parent"] is None


@pytest.mark.parametrize(
    "nodes",
    [
        {"a": 1},
        "nodes",
        None,
        ["not a record"],
        [make_node(0, None), 5],
    ],
)
def test_nodes_that_are_not_records_are_corrupt(nodes: object) -> None:
    with pytest.raises(CorruptTreeError):
        UndoTree.deserialize(encode_body(nodes=nodes))
