# src/gammaeff/analysis/diagnostics.py
"""
Per-event and per-run diagnostics that accompany the efficiency counters.

EventDiagnostics is a typed side table built for each scored event;
DiagnosticsBook folds those tables into fixed-bin numpy histograms that are
written next to the efficiency report.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np

from gammaeff.physics.events import EventRecord, GammaDict


@dataclass
class SkipDiagnostics:
    total_events: int = 0
    scored_events: int = 0
    skipped_events: int = 0
    reasons: Dict[str, int] = field(default_factory=dict)

    def inc(self, reason: str) -> None:
        self.skipped_events += 1
        self.reasons[reason] = self.reasons.get(reason, 0) + 1


@dataclass
class EventDiagnostics:
    n_calibrated_hits: int = 0
    n_gamma_calos: int = 0             # calorimeter hits attached to neutral tracks
    n_clusters: int = 0                # temporal clusters of the clustering view
    cluster_sizes: List[int] = field(default_factory=list)
    n_reco_gammas: int = 0
    total_gamma_energy: float = 0.0
    # (number of calos, summed energy) per neutral track, emission order
    gamma_energies: List[Tuple[int, float]] = field(default_factory=list)

    @classmethod
    def from_event(cls, event: EventRecord, clustered: GammaDict) -> "EventDiagnostics":
        neutral = event.neutral_tracks()
        per_gamma = [
            (len(t.calorimeter_hits), float(sum(h.energy for h in t.calorimeter_hits)))
            for t in neutral
        ]
        return cls(
            n_calibrated_hits=len(event.calibrated_hits or []),
            n_gamma_calos=sum(n for n, _ in per_gamma),
            n_clusters=len(clustered),
            cluster_sizes=[len(s) for s in clustered.values()],
            n_reco_gammas=len(neutral),
            total_gamma_energy=float(sum(e for _, e in per_gamma)),
            gamma_energies=per_gamma,
        )


class Histogram1D:
    """Fixed-bin histogram with underflow/overflow counters."""

    def __init__(self, name: str, edges: Sequence[float]) -> None:
        self.name = name
        self.edges = np.asarray(edges, dtype=np.float64)
        if self.edges.ndim != 1 or len(self.edges) < 2 or np.any(np.diff(self.edges) <= 0):
            raise ValueError(f"Histogram {name!r} needs strictly increasing edges")
        self.counts = np.zeros(len(self.edges) - 1, dtype=np.int64)
        self.underflow = 0
        self.overflow = 0

    @classmethod
    def linear(cls, name: str, n_bins: int, lo: float, hi: float) -> "Histogram1D":
        return cls(name, np.linspace(lo, hi, n_bins + 1))

    def fill(self, value: float) -> None:
        v = float(value)
        if v < self.edges[0]:
            self.underflow += 1
            return
        if v >= self.edges[-1]:
            self.overflow += 1
            return
        i = int(np.searchsorted(self.edges, v, side="right")) - 1
        self.counts[i] += 1

    @property
    def entries(self) -> int:
        return int(self.counts.sum()) + self.underflow + self.overflow


def _count_hist(name: str, n_max: int = 20) -> Histogram1D:
    # one bin per integer value 0..n_max-1
    return Histogram1D(name, np.arange(n_max + 1, dtype=np.float64) - 0.5)


def _energy_hist(name: str) -> Histogram1D:
    return Histogram1D.linear(name, 100, 0.0, 5.0)


@dataclass
class DiagnosticsBook:
    """
    Run-level histograms, filled once per scored event.

    The min/mid/max gamma energies are only filled for three-gamma events,
    all three bucketed by the calorimeter multiplicity of the lowest-energy
    gamma.
    """
    number_of_calos: Histogram1D = field(default_factory=lambda: _count_hist("number_of_calos"))
    number_of_gamma_calos: Histogram1D = field(default_factory=lambda: _count_hist("number_of_gamma_calos"))
    number_of_gamma_clusters: Histogram1D = field(default_factory=lambda: _count_hist("number_of_gamma_clusters"))
    clusters_size: Histogram1D = field(default_factory=lambda: _count_hist("clusters_size"))
    number_of_gammas: Histogram1D = field(default_factory=lambda: _count_hist("number_of_gammas"))
    total_gamma_energy: Histogram1D = field(default_factory=lambda: _energy_hist("total_gamma_energy"))
    gamma_energy_min: Dict[int, Histogram1D] = field(default_factory=dict)
    gamma_energy_mid: Dict[int, Histogram1D] = field(default_factory=dict)
    gamma_energy_max: Dict[int, Histogram1D] = field(default_factory=dict)

    def _bucket(self, table: Dict[int, Histogram1D], kind: str, n_calos: int) -> Histogram1D:
        if n_calos not in table:
            table[n_calos] = _energy_hist(f"{n_calos}_gamma_energy_{kind}")
        return table[n_calos]

    def fill(self, d: EventDiagnostics) -> None:
        self.number_of_calos.fill(d.n_calibrated_hits)
        self.number_of_gamma_calos.fill(d.n_gamma_calos)
        self.number_of_gamma_clusters.fill(d.n_clusters)
        for size in d.cluster_sizes:
            self.clusters_size.fill(size)
        self.number_of_gammas.fill(d.n_reco_gammas)
        self.total_gamma_energy.fill(d.total_gamma_energy)

        if len(d.gamma_energies) == 3:
            lo, mid, hi = sorted(d.gamma_energies, key=lambda ne: ne[1])
            n_calos = lo[0]
            for table, kind, energy in (
                (self.gamma_energy_min, "min", lo[1]),
                (self.gamma_energy_mid, "mid", mid[1]),
                (self.gamma_energy_max, "max", hi[1]),
            ):
                if energy > 0:
                    self._bucket(table, kind, n_calos).fill(energy)

    def histograms(self) -> Iterator[Histogram1D]:
        yield self.number_of_calos
        yield self.number_of_gamma_calos
        yield self.number_of_gamma_clusters
        yield self.clusters_size
        yield self.number_of_gammas
        yield self.total_gamma_energy
        for table in (self.gamma_energy_min, self.gamma_energy_mid, self.gamma_energy_max):
            for n_calos in sorted(table):
                yield table[n_calos]
