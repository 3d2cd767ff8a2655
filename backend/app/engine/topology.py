from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Sequence


@dataclass(slots=True)
class OrderingResult:
    order: list[str] = field(default_factory=list)
    # Blocks on, or downstream of, a cycle. Kept in input order.
    residue: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.residue


def topological_order(block_ids: Sequence[str], edges: Iterable[tuple[str, str]]) -> OrderingResult:
    """Order ``block_ids`` so every edge's source precedes its target.

    Ready blocks are taken first-in first-out: the initial queue follows
    ``block_ids`` order and newly freed blocks follow edge order, so equal
    inputs always produce equal orderings. When the edges are not acyclic the
    blocks that could be ordered are returned in ``order`` and the rest in
    ``residue``; callers decide how to report them.
    """
    indegree: dict[str, int] = {block_id: 0 for block_id in block_ids}
    adjacency: dict[str, list[str]] = {block_id: [] for block_id in block_ids}

    for source_id, target_id in edges:
        if source_id not in indegree or target_id not in indegree:
            continue
        adjacency[source_id].append(target_id)
        indegree[target_id] += 1

    queue = deque(block_id for block_id, degree in indegree.items() if degree == 0)
    ordered: list[str] = []

    while queue:
        block_id = queue.popleft()
        ordered.append(block_id)
        for target_id in adjacency[block_id]:
            indegree[target_id] -= 1
            if indegree[target_id] == 0:
                queue.append(target_id)

    placed = set(ordered)
    residue = [block_id for block_id in indegree if block_id not in placed]
    return OrderingResult(order=ordered, residue=residue)
