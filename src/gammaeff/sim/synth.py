from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from ..geometry.geom_id import GeomId
from ..physics.events import DEFAULT_STEP_HIT_LABEL, EventRecord, ParticleTrack, SimulatedData
from ..physics.hits import CalorimeterHit, StepHit, TRACK_ID_KEY, PARENT_TRACK_ID_KEY

_STEPS = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass
class SynthCfg:
    n_columns: int = 20
    n_rows: int = 13
    module: int = 0
    max_gammas: int = 3
    max_blocks_per_gamma: int = 3
    p_below_threshold: float = 0.05  # step hit without calibrated hit
    p_merge: float = 0.05            # reconstruction merges a gamma into the previous one
    p_swap: float = 0.05             # reconstruction swaps the first two blocks
    p_parent_only: float = 0.2       # step hit carries only the parent track id


def _walk(
    start: Tuple[int, int],
    length: int,
    taken: Set[Tuple[int, int]],
    cfg: SynthCfg,
    rng: np.random.Generator,
) -> List[Tuple[int, int]]:
    path = [start]
    taken.add(start)
    while len(path) < length:
        c, r = path[-1]
        free = [
            (c + dc, r + dr) for dc, dr in _STEPS
            if 0 <= c + dc < cfg.n_columns and 0 <= r + dr < cfg.n_rows
            and (c + dc, r + dr) not in taken
        ]
        if not free:
            break
        nxt = free[int(rng.integers(len(free)))]
        path.append(nxt)
        taken.add(nxt)
    return path


def synth_event(event_id: int, cfg: SynthCfg, rng: np.random.Generator) -> EventRecord:
    """
    One toy event: each primary gamma walks over adjacent main-wall blocks,
    leaving step hits (track id = gamma index, starting at 1) with increasing
    times, a calibrated hit per block above threshold, and one neutral track.
    """
    n_gammas = int(rng.integers(1, cfg.max_gammas + 1))
    side = int(rng.integers(2))
    taken: Set[Tuple[int, int]] = set()

    steps: List[StepHit] = []
    calibrated: List[CalorimeterHit] = []
    tracks: List[ParticleTrack] = []

    for g in range(1, n_gammas + 1):
        free = [(c, r) for c in range(cfg.n_columns) for r in range(cfg.n_rows) if (c, r) not in taken]
        if not free:
            break
        start = free[int(rng.integers(len(free)))]
        length = int(rng.integers(1, cfg.max_blocks_per_gamma + 1))
        path = _walk(start, length, taken, cfg, rng)

        # strictly positive times, well separated from other gammas
        t = float(rng.uniform(1.0, 3.0)) + 20.0 * (g - 1)
        trk_hits: List[CalorimeterHit] = []
        for c, r in path:
            gid = GeomId.calo(cfg.module, side, c, r)
            e = float(rng.uniform(0.05, 1.5))
            if rng.random() < cfg.p_parent_only:
                aux = {PARENT_TRACK_ID_KEY: g}
            else:
                aux = {TRACK_ID_KEY: g}
            steps.append(StepHit(block=gid, t_ns=t, energy=e, auxiliaries=aux))
            if rng.random() >= cfg.p_below_threshold:
                hit = CalorimeterHit(block=gid, t_ns=t, energy=e)
                calibrated.append(hit)
                trk_hits.append(hit)
            t += float(rng.uniform(0.1, 1.0))

        if not trk_hits:
            continue
        if len(trk_hits) > 1 and rng.random() < cfg.p_swap:
            trk_hits[0], trk_hits[1] = trk_hits[1], trk_hits[0]
        if tracks and rng.random() < cfg.p_merge:
            tracks[-1].calorimeter_hits.extend(trk_hits)
        else:
            tracks.append(ParticleTrack(track_id=len(tracks), charge="neutral", calorimeter_hits=trk_hits))

    simulated = SimulatedData(
        primaries=["gamma"] * n_gammas,
        step_hits={DEFAULT_STEP_HIT_LABEL: steps},
    )
    return EventRecord(
        event_id=event_id,
        calibrated_hits=calibrated,
        simulated=simulated,
        particle_tracks=tracks,
    )


def synth_events(
    n_events: int,
    cfg: Optional[SynthCfg] = None,
    rng: np.random.Generator | None = None,
) -> list[EventRecord]:
    cfg = cfg or SynthCfg()
    rng = rng or np.random.default_rng()
    return [synth_event(i, cfg, rng) for i in range(n_events)]
