# src/gammaeff/analysis/efficiency.py
from __future__ import annotations
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional

from .compare import ComparisonResult


@dataclass
class EfficiencyCounters:
    n_events: int = 0        # events scored
    n_total: int = 0         # truth gammas over all events
    n_gamma: int = 0         # primary gammas simulated over all events
    n_good: int = 0          # candidate gammas identical to a truth gamma
    n_miss: int = 0          # events where no gamma was seen by either view
    n_good_event: int = 0    # events with every truth gamma matched
    n_event_gammas: int = 0  # events with at least one truth gamma


def _ratio(num: int, den: int) -> Optional[float]:
    if den == 0:
        return None
    return num / den


@dataclass(frozen=True)
class EfficiencyReport:
    """
    Counters of one view at teardown plus the derived rates.

    Rates are plain fractions, None when the denominator is zero.
    good_gamma_rate can exceed 1 when candidates double count a truth gamma.
    """
    name: str
    counters: EfficiencyCounters
    good_gamma_rate: Optional[float]
    missed_rate: Optional[float]
    good_event_rate: Optional[float]
    good_event_over_all_rate: Optional[float]

    def as_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = {"name": self.name}
        out.update(asdict(self.counters))
        for k in ("good_gamma_rate", "missed_rate", "good_event_rate", "good_event_over_all_rate"):
            out[k] = getattr(self, k)
        return out

    def summary_lines(self) -> list[str]:
        c = self.counters

        def pct(r: Optional[float]) -> str:
            return "undefined" if r is None else f"{100.0 * r:.2f} %"

        return [
            f"[efficiency:{self.name}] gammas well reconstructed = "
            f"{c.n_good} / {c.n_total} ({pct(self.good_gamma_rate)})",
            f"[efficiency:{self.name}] gammas missed = "
            f"{c.n_miss} / {c.n_events} ({pct(self.missed_rate)})",
            f"[efficiency:{self.name}] events successfully reconstructed = "
            f"{c.n_good_event} / {c.n_events} ({pct(self.good_event_over_all_rate)})",
            f"[efficiency:{self.name}] events with gammas successfully reconstructed = "
            f"{c.n_good_event} / {c.n_event_gammas} ({pct(self.good_event_rate)})",
        ]


class EfficiencyAccumulator:
    """
    Run-long efficiency counters for one candidate view (tracking or clustering).

    Call update() once per scored event, finalize() once at teardown.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.counters = EfficiencyCounters()

    def update(self, result: ComparisonResult, n_gamma: int = 0) -> None:
        c = self.counters
        c.n_events += 1
        c.n_gamma += n_gamma
        if result.no_gammas:
            c.n_miss += 1
            return
        c.n_total += result.n_truth
        c.n_good += result.matched
        if result.n_truth > 0:
            c.n_event_gammas += 1
        if result.fully_matched:
            c.n_good_event += 1

    def merge(self, other: "EfficiencyAccumulator") -> None:
        """Add the counters of another accumulator (reduction across workers)."""
        for f in fields(EfficiencyCounters):
            setattr(self.counters, f.name,
                    getattr(self.counters, f.name) + getattr(other.counters, f.name))

    def report(self) -> EfficiencyReport:
        c = EfficiencyCounters(**asdict(self.counters))
        return EfficiencyReport(
            name=self.name,
            counters=c,
            good_gamma_rate=_ratio(c.n_good, c.n_total),
            missed_rate=_ratio(c.n_miss, c.n_events),
            good_event_rate=_ratio(c.n_good_event, c.n_event_gammas),
            good_event_over_all_rate=_ratio(c.n_good_event, c.n_events),
        )

    def finalize(self) -> EfficiencyReport:
        """Report the counters and reset them to zero."""
        rep = self.report()
        self.counters = EfficiencyCounters()
        return rep
