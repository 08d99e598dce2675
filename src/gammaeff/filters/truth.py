# src/gammaeff/filters/truth.py
from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Literal, Optional, Set

from gammaeff.errors import EventSkip, MissingPrimaryTrackId
from gammaeff.physics.events import DEFAULT_STEP_HIT_LABEL, GammaDict, SimulatedData
from gammaeff.physics.hits import CalorimeterHit, StepHit

TrackIdPriority = Literal["track_id", "parent_track_id"]


def resolve_primary_index(hit: StepHit, priority: TrackIdPriority = "track_id") -> int:
    """
    Index of the primary particle a step hit belongs to.

    The preferred key is tried first and the other one is the fallback;
    a hit carrying neither is a broken simulation record.
    """
    if priority == "track_id":
        first, second = hit.track_id, hit.parent_track_id
    else:
        first, second = hit.parent_track_id, hit.track_id
    idx = first if first is not None else second
    if idx is None:
        raise MissingPrimaryTrackId(
            f"Missing primary track id for step hit in block {hit.block}"
        )
    return idx


def extract_true_gammas(
    simulated: Optional[SimulatedData],
    calibrated_hits: Iterable[CalorimeterHit],
    *,
    label: str = DEFAULT_STEP_HIT_LABEL,
    primary_sentinel: int = 0,
    track_id_priority: TrackIdPriority = "track_id",
) -> GammaDict:
    """
    Ground-truth gamma sequences from the simulated calorimeter step hits.

    Keeps, in step order, the first step hit of each block that also has a
    calibrated hit, attributed to the primary index resolved from the
    step auxiliaries. Steps of the primary vertex sentinel are ignored.

    Raises EventSkip when the simulated data or its calorimeter step hits
    are missing, or when a step belongs to a particle beyond the number
    of primary gammas (secondary particle lighting up a new block).
    """
    if simulated is None:
        raise EventSkip("no_simulated_data")
    if not simulated.has_step_hits(label) or not simulated.get_step_hits(label):
        raise EventSkip("no_simulated_calo_hits", label)

    n_gammas = simulated.n_primary_gammas
    calibrated: Set[Hashable] = {h.block for h in calibrated_hits}
    owned: Set[Hashable] = set()
    sequences: Dict[int, List[Hashable]] = {}

    for step in simulated.get_step_hits(label):
        idx = resolve_primary_index(step, track_id_priority)
        if idx == primary_sentinel:
            continue
        gid = step.block
        # below calibration threshold
        if gid not in calibrated:
            continue
        if gid in owned:
            continue
        if idx > n_gammas:
            raise EventSkip(
                "secondary_particle",
                f"track {idx} with {n_gammas} primary gamma(s)",
            )
        owned.add(gid)
        sequences.setdefault(idx, []).append(gid)

    return {k: tuple(v) for k, v in sequences.items()}
