# src/gammaeff/clustering/temporal.py
from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple

from gammaeff.geometry.locators import NeighbourProvider
from gammaeff.physics.events import GammaDict
from gammaeff.physics.hits import CalorimeterHit
from .flood_fill import build_clusters

DEFAULT_TIME_GAP_NS = 2.5


def _time_ordered(cluster: Iterable[Hashable], times: Mapping[Hashable, float]) -> List[Tuple[float, Hashable]]:
    # a set keyed on (time, block), as a block appears once per cluster
    return sorted({(float(times[b]), b) for b in cluster})


def _split_pairs(pairs: List[Tuple[float, Hashable]], gap_ns: float) -> List[List[Hashable]]:
    if len(pairs) < 2:
        return [[b for _, b in pairs]]

    subs: List[List[Hashable]] = [[]]
    t1 = 0.0
    for t, b in pairs:
        t0, t1 = t1, t
        # 0.0 doubles as "no previous hit": a genuine hit at t=0 never opens a split
        if t0 != 0 and t1 != 0 and t1 - t0 > gap_ns:
            subs.append([])
        subs[-1].append(b)
    return subs


def split_by_time(
    cluster: Sequence[Hashable],
    times: Mapping[Hashable, float],
    gap_ns: float = DEFAULT_TIME_GAP_NS,
) -> List[List[Hashable]]:
    """
    Split a geometric cluster wherever two consecutive hits (in time order)
    are more than `gap_ns` apart.

    Returns the sub-clusters in time order, each listing its blocks by
    ascending hit time (ties broken on block order). A gap of exactly
    `gap_ns` does not split.
    """
    return _split_pairs(_time_ordered(cluster, times), gap_ns)


def cluster_gammas(
    hits: Iterable[CalorimeterHit],
    providers: Sequence[NeighbourProvider],
    gap_ns: float = DEFAULT_TIME_GAP_NS,
) -> Tuple[GammaDict, List[List[Hashable]]]:
    """
    Clustering view of one event.

    Geometric clusters are time ordered, sorted lexicographically on their
    (time, block) lists, then split in time; every sub-cluster gets its own
    label starting at 1.

    Returns (gamma dict, geometric clusters).
    """
    hits = list(hits)
    times: Dict[Hashable, float] = {}
    for h in hits:
        # first hit on a block wins, duplicates are the same block
        times.setdefault(h.block, h.t_ns)

    geometric = build_clusters(hits, providers)
    ordered = sorted(_time_ordered(c, times) for c in geometric)

    gammas: GammaDict = {}
    label = 0
    for pairs in ordered:
        for sub in _split_pairs(pairs, gap_ns):
            label += 1
            gammas[label] = tuple(sub)
    return gammas, geometric
