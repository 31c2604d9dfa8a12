"""On-disk encoding of an undo tree.

An undo file is the magic line ``UNDOFILE`` followed by one JSON object::

    {"version": 1, "root": 0, "cursor": 3, "next_id": 4,
     "nodes": [{"id": 0, "parent": null, ...}, ...],
     "checksum": "<digest of the canonical body>"}

Nodes are written sorted by id so the encoding of a tree is deterministic.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping

from undofile.errors import (
    CorruptTreeError,
    InvalidChecksumError,
    InvalidHeaderError,
    OutdatedFormatError,
)
from undofile.storage.hashing import hash_bytes

from .revision import Revision

MAGIC = b"UNDOFILE\n"
FORMAT_VERSION = 1


@dataclass(slots=True)
class TreeRecord:
    """Decoded, shape-checked contents of an undo file."""

    nodes: Dict[int, Revision]
    root: int
    cursor: int
    next_id: int
    version: int = FORMAT_VERSION


def _canonical(body: Mapping[str, Any]) -> bytes:
    return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")


def validate_shape(nodes: Mapping[int, Revision]) -> int:
    """Check the single-root/valid-parent invariant and return the root id."""

    if not nodes:
        raise CorruptTreeError("Undo tree has no revisions")
    roots = [rev.id for rev in nodes.values() if rev.parent_id is None]
    if len(roots) != 1:
        raise CorruptTreeError(f"Expected exactly one root revision, found {len(roots)}")
    for rev in nodes.values():
        if rev.parent_id is not None and rev.parent_id not in nodes:
            raise CorruptTreeError(
                f"Revision {rev.id} references missing parent {rev.parent_id}"
            )
    # parent ids are always smaller than child ids, so every chain ends at the root
    return roots[0]


def encode(nodes: Iterable[Revision], *, cursor: int, next_id: int) -> bytes:
    ordered = sorted(nodes, key=lambda rev: rev.id)
    root = next(rev.id for rev in ordered if rev.parent_id is None)
    body = {
        "version": FORMAT_VERSION,
        "root": root,
        "cursor": cursor,
        "next_id": next_id,
        "nodes": [rev.to_dict() for rev in ordered],
    }
    document = dict(body, checksum=hash_bytes(_canonical(body)))
    return MAGIC + _canonical(document)


def decode(data: bytes) -> TreeRecord:
    if not data.startswith(MAGIC):
        raise InvalidHeaderError()
    try:
        document = json.loads(data[len(MAGIC) :].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptTreeError(f"Undo file body is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise CorruptTreeError("Undo file body must be a JSON object")

    version = document.get("version")
    if not isinstance(version, int):
        raise CorruptTreeError("Undo file is missing its format version")
    if version > FORMAT_VERSION:
        raise OutdatedFormatError(version, FORMAT_VERSION)

    checksum = document.pop("checksum", None)
    actual = hash_bytes(_canonical(document))
    if checksum != actual:
        raise InvalidChecksumError(str(checksum), actual)

    raw_nodes = document.get("nodes")
    if not isinstance(raw_nodes, list):
        raise CorruptTreeError("Undo file nodes must be a JSON array")
    try:
        nodes: Dict[int, Revision] = {}
        for raw in raw_nodes:
            if not isinstance(raw, dict):
                raise CorruptTreeError(f"Revision record {raw!r} is not an object")
            rev = Revision.from_dict(raw)
            if rev.id in nodes:
                raise CorruptTreeError(f"Duplicate revision id {rev.id}")
            nodes[rev.id] = rev
        root = int(document["root"])
        cursor = int(document["cursor"])
        next_id = int(document["next_id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise CorruptTreeError(f"Malformed revision record: {exc}") from exc

    actual_root = validate_shape(nodes)
    if actual_root != root:
        raise CorruptTreeError(f"Header names root {root} but the root is {actual_root}")
    if cursor not in nodes:
        raise CorruptTreeError(f"Cursor {cursor} does not name a revision")
    if next_id <= max(nodes):
        raise CorruptTreeError(f"next_id {next_id} is not above every revision id")
    return TreeRecord(
        nodes=nodes, root=root, cursor=cursor, next_id=next_id, version=version
    )


__all__ = ["FORMAT_VERSION", "MAGIC", "TreeRecord", "decode", "encode", "validate_shape"]
