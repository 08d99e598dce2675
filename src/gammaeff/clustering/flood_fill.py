# src/gammaeff/clustering/flood_fill.py
from __future__ import annotations
from typing import Hashable, Iterable, List, Sequence, Set

from gammaeff.geometry.locators import NeighbourProvider, neighbours_of
from gammaeff.physics.hits import CalorimeterHit


def build_clusters(
    hits: Iterable[CalorimeterHit],
    providers: Sequence[NeighbourProvider],
) -> List[List[Hashable]]:
    """
    Partition the hit blocks of one event into geometric clusters.

    Two blocks end up in the same cluster iff they are linked by a chain of
    adjacent blocks that all carry a calibrated hit. Adjacency of a block is
    the union of the neighbours reported by the providers owning it.

    Clusters are seeded in hit order; within a cluster, blocks appear in
    the order the depth-first traversal reached them.
    """
    hits = list(hits)
    present: Set[Hashable] = {h.block for h in hits}
    visited: Set[Hashable] = set()
    clusters: List[List[Hashable]] = []

    for h in hits:
        seed = h.block
        if seed in visited:
            continue
        visited.add(seed)
        cluster = [seed]
        stack = [seed]
        while stack:
            current = stack.pop()
            # sorted so the traversal order does not depend on set iteration
            found = sorted(
                n for n in neighbours_of(providers, current)
                if n in present and n not in visited
            )
            for n in found:
                visited.add(n)
                cluster.append(n)
            # reversed so the smallest neighbour is expanded first
            stack.extend(reversed(found))
        clusters.append(cluster)

    return clusters
