"""Grafts a client's unmerged revisions onto the master tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from undofile.errors import DivergenceNotFoundError
from undofile.history import Revision, UndoTree
from undofile.runtime import telemetry


@dataclass(slots=True)
class MergeResult:
    master: UndoTree
    id_remap: Dict[int, int] = field(default_factory=dict)

    @property
    def tip(self) -> Optional[int]:
        """Master id of the last grafted revision, if anything was grafted."""

        if not self.id_remap:
            return None
        return self.id_remap[max(self.id_remap)]


def causal_order(suffix: Iterable[Revision]) -> List[Revision]:
    # parents always carry smaller ids than their children
    return sorted(suffix, key=lambda rev: rev.id)


def merge(
    client_suffix: Iterable[Revision],
    divergence_id: int,
    master: UndoTree,
) -> MergeResult:
    """Append ``client_suffix`` below ``divergence_id`` as new master revisions.

    ``master`` itself is left untouched; the extended copy is returned along
    with the mapping from client-local ids to the newly assigned master ids.
    Existing revisions keep their ids and parents, and grafted branches become
    siblings of whatever already hangs off the divergence point.
    """

    ordered = causal_order(client_suffix)
    with telemetry.span(
        "sync::merge",
        component="sync",
        metadata={"divergence_id": divergence_id, "suffix": len(ordered)},
    ) as handle:
        if divergence_id not in master:
            handle.add_metadata("missing", divergence_id)
            raise DivergenceNotFoundError(divergence_id)

        merged = master.copy()
        remap: Dict[int, int] = {}
        for revision in ordered:
            parent = revision.parent_id
            if parent in remap:
                new_parent = remap[parent]
            elif parent is not None and parent in master:
                new_parent = parent
            else:
                handle.add_metadata("missing", parent)
                raise DivergenceNotFoundError(
                    divergence_id if parent is None else parent
                )
            new_id = merged.next_id
            merged.graft(revision.relink(id=new_id, parent_id=new_parent))
            remap[revision.id] = new_id

        merged.cursor = remap[ordered[-1].id] if ordered else divergence_id
        handle.add_metadata("grafted", len(remap))
        return MergeResult(master=merged, id_remap=remap)


__all__ = ["MergeResult", "causal_order", "merge"]
