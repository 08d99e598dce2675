from pathlib import Path

import numpy as np
import pytest

from gammaeff.analysis.compare import compare_sequences
from gammaeff.analysis.diagnostics import DiagnosticsBook, EventDiagnostics, SkipDiagnostics
from gammaeff.analysis.efficiency import EfficiencyAccumulator
from gammaeff.geometry.geom_id import GeomId
from gammaeff.io.event_store import iter_events, write_events
from gammaeff.io.report_store import read_histogram, read_report, write_report
from gammaeff.physics.events import DEFAULT_STEP_HIT_LABEL, EventRecord, ParticleTrack, SimulatedData
from gammaeff.physics.hits import CalorimeterHit, StepHit, TRACK_ID_KEY, PARENT_TRACK_ID_KEY
from gammaeff.sim.synth import SynthCfg, synth_events


def _event():
    a = GeomId.calo(0, 1, 2, 3)
    b = GeomId.xcalo(0, 1, 0, 1, 15)
    cal = [CalorimeterHit(a, 1.5, 0.7), CalorimeterHit(b, 2.0, 0.2)]
    steps = [
        StepHit(a, 1.4, 0.7, {TRACK_ID_KEY: 1}),
        StepHit(b, 1.9, 0.2, {PARENT_TRACK_ID_KEY: 2}),
    ]
    return EventRecord(
        event_id=17,
        calibrated_hits=cal,
        simulated=SimulatedData(primaries=["gamma", "gamma", "e-"],
                                step_hits={DEFAULT_STEP_HIT_LABEL: steps}),
        particle_tracks=[ParticleTrack(4, "neutral", [cal[1], cal[0]]),
                         ParticleTrack(5, "negative", [])],
    )


def test_event_store_preserves_banks(tmp_path: Path):
    absent = EventRecord(event_id=18)
    path = write_events(tmp_path / "events.h5", [_event(), absent])
    back = list(iter_events(path))
    assert len(back) == 2

    ev = back[0]
    ref = _event()
    assert ev.event_id == 17
    assert ev.calibrated_hits == ref.calibrated_hits
    assert ev.simulated.primaries == ["gamma", "gamma", "e-"]
    steps = ev.simulated.get_step_hits()
    assert [s.block for s in steps] == [s.block for s in ref.simulated.get_step_hits()]
    assert steps[0].track_id == 1 and steps[0].parent_track_id is None
    assert steps[1].track_id is None and steps[1].parent_track_id == 2
    assert [t.track_id for t in ev.particle_tracks] == [4, 5]
    assert [h.block for h in ev.particle_tracks[0].calorimeter_hits] == [
        GeomId.xcalo(0, 1, 0, 1, 15), GeomId.calo(0, 1, 2, 3)]
    assert ev.particle_tracks[1].charge == "negative"

    empty = back[1]
    assert empty.calibrated_hits is None
    assert empty.simulated is None
    assert empty.particle_tracks is None


def test_event_store_max_events_and_plain_int_blocks(tmp_path: Path):
    evs = [EventRecord(event_id=i, calibrated_hits=[CalorimeterHit(i, 1.0, 0.1)]) for i in range(5)]
    path = write_events(tmp_path / "ints.h5", evs)
    back = list(iter_events(path, max_events=3))
    assert [e.event_id for e in back] == [0, 1, 2]
    assert back[2].calibrated_hits[0].block == 2


def test_synthetic_events_roundtrip(tmp_path: Path):
    events = synth_events(20, SynthCfg(), np.random.default_rng(3))
    path = write_events(tmp_path / "synth.h5", events)
    back = list(iter_events(path))
    for a, b in zip(events, back):
        assert a.calibrated_hits == b.calibrated_hits
        assert [t.track_id for t in a.particle_tracks] == [t.track_id for t in b.particle_tracks]


def test_report_roundtrip(tmp_path: Path):
    acc = EfficiencyAccumulator("tracking")
    acc.update(compare_sequences({0: (1, 2)}, {1: (1, 2)}))
    tracking = acc.finalize()
    clustering = EfficiencyAccumulator("clustering").finalize()

    book = DiagnosticsBook()
    book.fill(EventDiagnostics(n_calibrated_hits=2, n_clusters=1, cluster_sizes=[2], n_reco_gammas=1,
                               total_gamma_energy=1.1, gamma_energies=[(2, 1.1)]))
    skips = SkipDiagnostics(total_events=2, scored_events=1)
    skips.inc("no_neutral_tracks")

    out = write_report(tmp_path / "sub" / "report.h5", config_text="[run]\n",
                       tracking=tracking, clustering=clustering, skips=skips, book=book)
    rep = read_report(out)
    assert rep["tracking"]["n_good"] == 1
    assert rep["tracking"]["good_gamma_rate"] == pytest.approx(1.0)
    assert rep["clustering"]["good_gamma_rate"] is None

    edges, counts = read_histogram(out, "number_of_calos")
    assert counts.sum() == 1
    assert counts[np.searchsorted(edges, 2.0) - 1] == 1
