# src/gammaeff/analysis/compare.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Hashable, List, Sequence, Tuple

from gammaeff.physics.events import GammaDict


def same_sequence(a: Sequence[Hashable], b: Sequence[Hashable]) -> bool:
    """Ordered equality: same size, same blocks, same order."""
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


@dataclass(slots=True)
class ComparisonResult:
    """
    Outcome of scoring one candidate view against the truth view of an event.

    matched: number of candidate sequences that found an identical truth sequence
    pairs: (candidate label, truth label) for every match, candidate order
    """
    matched: int = 0
    n_candidates: int = 0
    n_truth: int = 0
    pairs: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def no_gammas(self) -> bool:
        return self.n_candidates == 0 and self.n_truth == 0

    @property
    def fully_matched(self) -> bool:
        return self.n_truth > 0 and self.matched == self.n_truth


def compare_sequences(candidates: GammaDict, truth: GammaDict) -> ComparisonResult:
    """
    Count the candidate sequences that exactly match a truth sequence.

    Each candidate stops at the first identical truth sequence (truth
    scanned in label order). A matched truth sequence stays available, so
    two identical candidates both count against the same truth gamma; the
    efficiency figures are defined with this double counting included.
    """
    res = ComparisonResult(n_candidates=len(candidates), n_truth=len(truth))
    truth_items = sorted(truth.items())
    for c_label, c_seq in candidates.items():
        for t_label, t_seq in truth_items:
            if same_sequence(c_seq, t_seq):
                res.matched += 1
                res.pairs.append((c_label, t_label))
                break
    return res
