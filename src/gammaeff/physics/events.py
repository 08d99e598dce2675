# src/gammaeff/physics/events.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Literal, Optional, Tuple

from .hits import CalorimeterHit, StepHit

Charge = Literal["neutral", "positive", "negative", "undefined"]

# Label of the simulated calorimeter step hits collection
DEFAULT_STEP_HIT_LABEL = "__visu.tracks.calo"

# One gamma view: label -> ordered blocks. Tuples keep stored orders immutable.
GammaSequence = Tuple[Hashable, ...]
GammaDict = Dict[int, GammaSequence]


@dataclass(slots=True)
class ParticleTrack:
    """
    Particle track emitted by the upstream reconstruction.

    Gamma candidates are the neutral tracks; their calorimeter hits are kept
    in the order the reconstruction attached them.
    """
    track_id: int
    charge: Charge = "undefined"
    calorimeter_hits: List[CalorimeterHit] = field(default_factory=list)

    @property
    def is_neutral(self) -> bool:
        return self.charge == "neutral"


@dataclass(slots=True)
class SimulatedData:
    """
    Simulation bank: primary particle names and step hit collections.
    """
    primaries: List[str] = field(default_factory=list)
    step_hits: Dict[str, List[StepHit]] = field(default_factory=dict)

    @property
    def n_primary_gammas(self) -> int:
        return sum(1 for p in self.primaries if p == "gamma")

    def has_step_hits(self, label: str = DEFAULT_STEP_HIT_LABEL) -> bool:
        return label in self.step_hits

    def get_step_hits(self, label: str = DEFAULT_STEP_HIT_LABEL) -> List[StepHit]:
        return self.step_hits[label]


@dataclass(slots=True)
class EventRecord:
    """
    One detector event as handed over by the event source.

    A bank set to None is absent from the event (as opposed to present but
    empty), which the pipeline treats as a reason to skip the event.
    """
    event_id: int
    calibrated_hits: Optional[List[CalorimeterHit]] = None
    simulated: Optional[SimulatedData] = None
    particle_tracks: Optional[List[ParticleTrack]] = None

    def neutral_tracks(self) -> List[ParticleTrack]:
        return [t for t in (self.particle_tracks or []) if t.is_neutral]
