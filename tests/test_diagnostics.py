import numpy as np
import pytest

from gammaeff.analysis.diagnostics import DiagnosticsBook, EventDiagnostics, Histogram1D
from gammaeff.physics.events import EventRecord, ParticleTrack
from gammaeff.physics.hits import CalorimeterHit


def test_histogram_fill_with_under_and_overflow():
    h = Histogram1D.linear("x", 4, 0.0, 4.0)
    for v in (-1.0, 0.0, 0.5, 3.99, 4.0, 10.0):
        h.fill(v)
    assert h.counts.tolist() == [2, 0, 0, 1]
    assert h.underflow == 1
    assert h.overflow == 2
    assert h.entries == 6


def test_histogram_rejects_bad_edges():
    with pytest.raises(ValueError):
        Histogram1D("bad", [0.0, 0.0, 1.0])


def test_event_diagnostics_from_event():
    hits = [CalorimeterHit(i, 1.0, 0.25 * (i + 1)) for i in range(4)]
    ev = EventRecord(
        event_id=0,
        calibrated_hits=hits,
        particle_tracks=[
            ParticleTrack(0, "neutral", hits[:2]),
            ParticleTrack(1, "neutral", hits[2:3]),
            ParticleTrack(2, "negative", hits[3:]),
        ],
    )
    d = EventDiagnostics.from_event(ev, {1: (0, 1), 2: (2,), 3: (3,)})
    assert d.n_calibrated_hits == 4
    assert d.n_gamma_calos == 3
    assert d.n_clusters == 3
    assert d.cluster_sizes == [2, 1, 1]
    assert d.n_reco_gammas == 2
    assert d.total_gamma_energy == pytest.approx(0.25 + 0.5 + 0.75)
    assert d.gamma_energies == [(2, pytest.approx(0.75)), (1, pytest.approx(0.75))]


def test_three_gamma_energies_are_bucketed_by_lowest_energy_calo_count():
    book = DiagnosticsBook()
    book.fill(EventDiagnostics(n_reco_gammas=3, gamma_energies=[(2, 1.0), (1, 0.3), (3, 2.0)]))
    assert sorted(book.gamma_energy_min) == [1]
    assert sorted(book.gamma_energy_mid) == [1]
    assert sorted(book.gamma_energy_max) == [1]
    names = [h.name for h in book.histograms()]
    assert "1_gamma_energy_min" in names and "1_gamma_energy_max" in names
    assert book.gamma_energy_max[1].entries == 1
    assert len(names) == len(set(names))

    book.fill(EventDiagnostics(n_reco_gammas=2, gamma_energies=[(2, 1.0), (1, 0.3)]))
    assert book.gamma_energy_min[1].entries == 1
    assert np.sum(book.number_of_gammas.counts) == 2
