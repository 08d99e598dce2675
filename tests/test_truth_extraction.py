import pytest

from gammaeff.errors import EventSkip, MissingPrimaryTrackId
from gammaeff.filters.reconstructed import extract_reconstructed_gammas
from gammaeff.filters.truth import extract_true_gammas, resolve_primary_index
from gammaeff.physics.events import DEFAULT_STEP_HIT_LABEL, ParticleTrack, SimulatedData
from gammaeff.physics.hits import CalorimeterHit, StepHit, TRACK_ID_KEY, PARENT_TRACK_ID_KEY


def _step(block, tid=None, pid=None, t=1.0):
    aux = {}
    if tid is not None:
        aux[TRACK_ID_KEY] = tid
    if pid is not None:
        aux[PARENT_TRACK_ID_KEY] = pid
    return StepHit(block=block, t_ns=t, energy=0.1, auxiliaries=aux)


def _sim(steps, n_gammas=1):
    return SimulatedData(primaries=["gamma"] * n_gammas, step_hits={DEFAULT_STEP_HIT_LABEL: steps})


def _cal(*blocks):
    return [CalorimeterHit(b, 1.0, 0.5) for b in blocks]


def test_truth_keeps_step_order_and_first_owner():
    steps = [_step(7, tid=1), _step(5, tid=1), _step(7, tid=2), _step(9, tid=2)]
    truth = extract_true_gammas(_sim(steps, n_gammas=2), _cal(5, 7, 9))
    assert truth == {1: (7, 5), 2: (9,)}


def test_truth_drops_sentinel_and_uncalibrated_blocks():
    steps = [_step(3, tid=0), _step(4, tid=1), _step(5, tid=1)]
    truth = extract_true_gammas(_sim(steps), _cal(3, 5))
    assert truth == {1: (5,)}


def test_parent_id_is_a_fallback():
    assert resolve_primary_index(_step(1, pid=2)) == 2
    assert resolve_primary_index(_step(1, tid=3, pid=2)) == 3
    assert resolve_primary_index(_step(1, tid=3, pid=2), "parent_track_id") == 2


def test_missing_track_ids_is_fatal():
    with pytest.raises(MissingPrimaryTrackId):
        extract_true_gammas(_sim([_step(1)]), _cal(1))


def test_secondary_particle_skips_event():
    steps = [_step(1, tid=1), _step(2, tid=4)]
    with pytest.raises(EventSkip) as exc:
        extract_true_gammas(_sim(steps, n_gammas=1), _cal(1, 2))
    assert exc.value.reason == "secondary_particle"


def test_index_equal_to_gamma_count_is_kept():
    steps = [_step(1, tid=1), _step(2, tid=2)]
    truth = extract_true_gammas(_sim(steps, n_gammas=2), _cal(1, 2))
    assert truth == {1: (1,), 2: (2,)}


def test_index_one_past_gamma_count_skips_event():
    steps = [_step(1, tid=1), _step(2, tid=3)]
    with pytest.raises(EventSkip) as exc:
        extract_true_gammas(_sim(steps, n_gammas=2), _cal(1, 2))
    assert exc.value.reason == "secondary_particle"


def test_secondary_on_ignored_block_does_not_skip():
    # block 2 has no calibrated hit, so the secondary never counts
    steps = [_step(1, tid=1), _step(2, tid=4)]
    truth = extract_true_gammas(_sim(steps, n_gammas=1), _cal(1))
    assert truth == {1: (1,)}


def test_missing_simulation_skips():
    with pytest.raises(EventSkip) as exc:
        extract_true_gammas(None, _cal(1))
    assert exc.value.reason == "no_simulated_data"
    with pytest.raises(EventSkip) as exc:
        extract_true_gammas(SimulatedData(primaries=["gamma"]), _cal(1))
    assert exc.value.reason == "no_simulated_calo_hits"
    with pytest.raises(EventSkip):
        extract_true_gammas(_sim([]), _cal(1))


def test_reconstructed_gammas_keep_emission_order():
    tracks = [
        ParticleTrack(track_id=3, charge="neutral", calorimeter_hits=_cal(9, 2)),
        ParticleTrack(track_id=1, charge="negative", calorimeter_hits=_cal(4)),
        ParticleTrack(track_id=0, charge="neutral", calorimeter_hits=_cal(6)),
    ]
    assert extract_reconstructed_gammas(tracks) == {3: (9, 2), 0: (6,)}


def test_no_neutral_tracks_skips():
    with pytest.raises(EventSkip) as exc:
        extract_reconstructed_gammas([ParticleTrack(1, "negative", _cal(1))])
    assert exc.value.reason == "no_neutral_tracks"
    with pytest.raises(EventSkip) as exc:
        extract_reconstructed_gammas(None)
    assert exc.value.reason == "no_particle_track_data"
