from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Optional

# Auxiliary keys attached to simulated step hits
TRACK_ID_KEY = "track.id"
PARENT_TRACK_ID_KEY = "track.parent_id"

@dataclass(frozen=True, slots=True)
class CalorimeterHit:
    """
    Calibrated calorimeter hit (physics layer).

    block: geometry id of the calorimeter block (GeomId or any hashable, ordered id)
    t_ns: hit time [ns]
    energy: calibrated energy [MeV]
    """
    block: Hashable
    t_ns: float
    energy: float = 0.0


@dataclass(slots=True)
class StepHit:
    """
    Simulated step hit registered in a calorimeter block.

    auxiliaries: per-step properties from the simulation, in particular
    TRACK_ID_KEY and/or PARENT_TRACK_ID_KEY used to resolve the primary.
    """
    block: Hashable
    t_ns: float = 0.0
    energy: float = 0.0
    auxiliaries: Dict[str, Any] = field(default_factory=dict)

    @property
    def track_id(self) -> Optional[int]:
        v = self.auxiliaries.get(TRACK_ID_KEY)
        return None if v is None else int(v)

    @property
    def parent_track_id(self) -> Optional[int]:
        v = self.auxiliaries.get(PARENT_TRACK_ID_KEY)
        return None if v is None else int(v)
