from __future__ import annotations
from typing import Dict, Hashable, List, Optional, Sequence

from gammaeff.errors import EventSkip
from gammaeff.physics.events import GammaDict, ParticleTrack


def extract_reconstructed_gammas(tracks: Optional[Sequence[ParticleTrack]]) -> GammaDict:
    """
    Reconstruction view: calorimeter blocks of every neutral track, keyed by
    track id, in the order the reconstruction attached them.

    Raises EventSkip if the track bank is absent or holds no neutral track.
    """
    if tracks is None:
        raise EventSkip("no_particle_track_data")
    neutral = [t for t in tracks if t.is_neutral]
    if not neutral:
        raise EventSkip("no_neutral_tracks")

    sequences: Dict[int, List[Hashable]] = {}
    for trk in neutral:
        seq = sequences.setdefault(trk.track_id, [])
        for hit in trk.calorimeter_hits:
            if hit.block not in seq:
                seq.append(hit.block)
    return {k: tuple(v) for k, v in sequences.items()}
