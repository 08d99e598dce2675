# src/gammaeff/io/event_store.py
"""
gammaeff.io.event_store

Ragged (CSR-style) HDF5 storage of EventRecord objects.

Every variable-length collection is flattened into 1D columns plus an
`event_ptr` array of length N_events+1, so that the rows of event i are
`ptr[i]:ptr[i+1]`. Particle tracks add a second level of pointers
(`hit_ptr`, length N_tracks+1) into the flat track-hit columns.

Layout
------
/events/event_id, has_calibrated, has_simulated, has_step_hits, has_tracks   (N,)
/primaries/event_ptr (N+1), name (P,) str
/calo/event_ptr (N+1), block_type (M,), block_addr (M, 6), t_ns, energy
/steps/event_ptr (N+1), block_type, block_addr, t_ns, energy,
       track_id, parent_track_id            (-1 = key absent)
/tracks/event_ptr (N+1), track_id (T,), charge (T,) uint8, hit_ptr (T+1),
        block_type, block_addr, t_ns, energy

Block ids are GeomId (type + address padded with -1); plain integer ids are
stored with block_type = -1 and the value as first address field.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple

import h5py
import numpy as np

from gammaeff.config.schemas import IOCfg
from gammaeff.geometry.geom_id import GeomId, MAX_ADDRESS_DEPTH
from gammaeff.physics.events import (
    DEFAULT_STEP_HIT_LABEL,
    EventRecord,
    ParticleTrack,
    SimulatedData,
)
from gammaeff.physics.hits import (
    CalorimeterHit,
    StepHit,
    TRACK_ID_KEY,
    PARENT_TRACK_ID_KEY,
)

FORMAT_VERSION = "1.0"

_PLAIN_INT_TYPE = -1
_CHARGE_CODES = {"undefined": 0, "neutral": 1, "positive": 2, "negative": 3}
_CHARGE_NAMES = {v: k for k, v in _CHARGE_CODES.items()}


# ---------------------------------------------------------------------------
# Block id encoding
# ---------------------------------------------------------------------------

def _encode_blocks(blocks: Sequence[Hashable]) -> Tuple[np.ndarray, np.ndarray]:
    types = np.empty(len(blocks), dtype=np.int32)
    addr = np.full((len(blocks), MAX_ADDRESS_DEPTH), -1, dtype=np.int32)
    for i, b in enumerate(blocks):
        if isinstance(b, GeomId):
            if len(b.address) > MAX_ADDRESS_DEPTH:
                raise ValueError(f"Geometry id {b} deeper than {MAX_ADDRESS_DEPTH} levels")
            types[i] = b.type
            addr[i, :len(b.address)] = b.address
        elif isinstance(b, (int, np.integer)):
            types[i] = _PLAIN_INT_TYPE
            addr[i, 0] = int(b)
        else:
            raise TypeError(f"Unsupported block id type for storage: {type(b)}")
    return types, addr


def _decode_block(btype: int, addr_row: np.ndarray) -> Hashable:
    if btype == _PLAIN_INT_TYPE:
        return int(addr_row[0])
    return GeomId(int(btype), tuple(int(a) for a in addr_row if a >= 0))


def _ptr_from_counts(counts: Sequence[int]) -> np.ndarray:
    ptr = np.zeros(len(counts) + 1, dtype=np.int64)
    if len(counts):
        ptr[1:] = np.cumsum(np.asarray(counts, dtype=np.int64))
    return ptr


def _replace_or_create(grp: h5py.Group, name: str, data: np.ndarray) -> None:
    if name in grp:
        del grp[name]
    grp.create_dataset(name, data=data)


def _write_hit_columns(grp: h5py.Group, blocks, t_ns, energy) -> None:
    types, addr = _encode_blocks(blocks)
    _replace_or_create(grp, "block_type", types)
    _replace_or_create(grp, "block_addr", addr)
    _replace_or_create(grp, "t_ns", np.asarray(t_ns, dtype=np.float64))
    _replace_or_create(grp, "energy", np.asarray(energy, dtype=np.float64))


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------

def write_events(
    path: str | Path,
    events: Sequence[EventRecord],
    *,
    step_hit_label: str = DEFAULT_STEP_HIT_LABEL,
) -> Path:
    """
    Write events to `path` (overwritten). Only the step hit collection named
    `step_hit_label` is stored.
    """
    path = Path(path)
    N = len(events)

    event_id = np.array([ev.event_id for ev in events], dtype=np.int64)
    has_cal = np.array([ev.calibrated_hits is not None for ev in events], dtype=np.uint8)
    has_sim = np.array([ev.simulated is not None for ev in events], dtype=np.uint8)
    has_steps = np.array(
        [ev.simulated is not None and ev.simulated.has_step_hits(step_hit_label) for ev in events],
        dtype=np.uint8,
    )
    has_trk = np.array([ev.particle_tracks is not None for ev in events], dtype=np.uint8)

    primaries: List[str] = []
    prim_counts: List[int] = []
    calo: List[CalorimeterHit] = []
    calo_counts: List[int] = []
    steps: List[StepHit] = []
    step_counts: List[int] = []
    tracks: List[ParticleTrack] = []
    track_counts: List[int] = []

    for ev in events:
        cal = ev.calibrated_hits or []
        calo.extend(cal)
        calo_counts.append(len(cal))

        sim = ev.simulated
        names = list(sim.primaries) if sim is not None else []
        primaries.extend(names)
        prim_counts.append(len(names))
        st = sim.get_step_hits(step_hit_label) if (sim is not None and sim.has_step_hits(step_hit_label)) else []
        steps.extend(st)
        step_counts.append(len(st))

        trk = ev.particle_tracks or []
        tracks.extend(trk)
        track_counts.append(len(trk))

    track_hits = [h for t in tracks for h in t.calorimeter_hits]

    with h5py.File(path, "w") as f:
        f.attrs["format_version"] = FORMAT_VERSION
        f.attrs["step_hit_label"] = step_hit_label
        f.attrs["n_events"] = N

        g = f.require_group("events")
        _replace_or_create(g, "event_id", event_id)
        _replace_or_create(g, "has_calibrated", has_cal)
        _replace_or_create(g, "has_simulated", has_sim)
        _replace_or_create(g, "has_step_hits", has_steps)
        _replace_or_create(g, "has_tracks", has_trk)

        g = f.require_group("primaries")
        _replace_or_create(g, "event_ptr", _ptr_from_counts(prim_counts))
        _replace_or_create(g, "name", np.array(primaries, dtype=h5py.string_dtype()))

        g = f.require_group("calo")
        _replace_or_create(g, "event_ptr", _ptr_from_counts(calo_counts))
        _write_hit_columns(g, [h.block for h in calo], [h.t_ns for h in calo], [h.energy for h in calo])

        g = f.require_group("steps")
        _replace_or_create(g, "event_ptr", _ptr_from_counts(step_counts))
        _write_hit_columns(g, [h.block for h in steps], [h.t_ns for h in steps], [h.energy for h in steps])
        tid = np.array([-1 if h.track_id is None else h.track_id for h in steps], dtype=np.int32)
        pid = np.array([-1 if h.parent_track_id is None else h.parent_track_id for h in steps], dtype=np.int32)
        _replace_or_create(g, "track_id", tid)
        _replace_or_create(g, "parent_track_id", pid)

        g = f.require_group("tracks")
        _replace_or_create(g, "event_ptr", _ptr_from_counts(track_counts))
        _replace_or_create(g, "track_id", np.array([t.track_id for t in tracks], dtype=np.int32))
        _replace_or_create(g, "charge", np.array([_CHARGE_CODES[t.charge] for t in tracks], dtype=np.uint8))
        _replace_or_create(g, "hit_ptr", _ptr_from_counts([len(t.calorimeter_hits) for t in tracks]))
        _write_hit_columns(
            g,
            [h.block for h in track_hits],
            [h.t_ns for h in track_hits],
            [h.energy for h in track_hits],
        )

    return path


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------

def _load_group(f: h5py.File, name: str) -> Dict[str, np.ndarray]:
    if name not in f:
        raise KeyError(f"/{name} not found in event file {f.filename}")
    return {k: f[name][k][...] for k in f[name].keys()}


def _calo_hits(cols: Dict[str, np.ndarray], lo: int, hi: int) -> List[CalorimeterHit]:
    return [
        CalorimeterHit(
            block=_decode_block(int(cols["block_type"][w]), cols["block_addr"][w]),
            t_ns=float(cols["t_ns"][w]),
            energy=float(cols["energy"][w]),
        )
        for w in range(lo, hi)
    ]


def iter_events(path: str | Path, *, max_events: Optional[int] = None) -> Iterator[EventRecord]:
    """
    Yield EventRecord objects stored by write_events, in file order.
    """
    with h5py.File(str(path), "r") as f:
        version = f.attrs.get("format_version")
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported event file format_version {version!r} in {path}")
        label = str(f.attrs.get("step_hit_label", DEFAULT_STEP_HIT_LABEL))
        ev_cols = _load_group(f, "events")
        prim = _load_group(f, "primaries")
        calo = _load_group(f, "calo")
        steps = _load_group(f, "steps")
        trk = _load_group(f, "tracks")

    names = [n.decode() if isinstance(n, bytes) else str(n) for n in prim["name"]]
    N = len(ev_cols["event_id"])
    if max_events is not None:
        N = min(N, max_events)

    for i in range(N):
        calibrated = None
        if ev_cols["has_calibrated"][i]:
            calibrated = _calo_hits(calo, int(calo["event_ptr"][i]), int(calo["event_ptr"][i + 1]))

        simulated = None
        if ev_cols["has_simulated"][i]:
            p0, p1 = int(prim["event_ptr"][i]), int(prim["event_ptr"][i + 1])
            simulated = SimulatedData(primaries=names[p0:p1])
            if ev_cols["has_step_hits"][i]:
                hits: List[StepHit] = []
                for w in range(int(steps["event_ptr"][i]), int(steps["event_ptr"][i + 1])):
                    aux: Dict[str, Any] = {}
                    if steps["track_id"][w] >= 0:
                        aux[TRACK_ID_KEY] = int(steps["track_id"][w])
                    if steps["parent_track_id"][w] >= 0:
                        aux[PARENT_TRACK_ID_KEY] = int(steps["parent_track_id"][w])
                    hits.append(StepHit(
                        block=_decode_block(int(steps["block_type"][w]), steps["block_addr"][w]),
                        t_ns=float(steps["t_ns"][w]),
                        energy=float(steps["energy"][w]),
                        auxiliaries=aux,
                    ))
                simulated.step_hits[label] = hits

        tracks = None
        if ev_cols["has_tracks"][i]:
            tracks = []
            for k in range(int(trk["event_ptr"][i]), int(trk["event_ptr"][i + 1])):
                tracks.append(ParticleTrack(
                    track_id=int(trk["track_id"][k]),
                    charge=_CHARGE_NAMES.get(int(trk["charge"][k]), "undefined"),
                    calorimeter_hits=_calo_hits(trk, int(trk["hit_ptr"][k]), int(trk["hit_ptr"][k + 1])),
                ))

        yield EventRecord(
            event_id=int(ev_cols["event_id"][i]),
            calibrated_hits=calibrated,
            simulated=simulated,
            particle_tracks=tracks,
        )


class HDF5EventSource:
    """Event source reading the gammaeff HDF5 event layout."""

    def __init__(self, max_events: Optional[int] = None) -> None:
        self.max_events = max_events

    def iter_events(self, path: str) -> Iterator[EventRecord]:
        return iter_events(path, max_events=self.max_events)


def make_event_source(io_cfg: IOCfg, *, max_events: Optional[int] = None) -> HDF5EventSource:
    fmt = io_cfg.input_format
    if fmt == "hdf5_gammaeff":
        return HDF5EventSource(max_events=max_events)
    raise ValueError(f"Unknown input_format: {fmt!r}")
