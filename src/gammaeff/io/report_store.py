from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import h5py
import numpy as np

from gammaeff.analysis.diagnostics import DiagnosticsBook, SkipDiagnostics
from gammaeff.analysis.efficiency import EfficiencyReport

FORMAT_VERSION = "1.0"
SOFTWARE = "gamma-efficiency 0.1.0"


def _write_efficiency(grp: h5py.Group, rep: EfficiencyReport) -> None:
    for k, v in rep.as_dict().items():
        # undefined rates are stored as NaN
        grp.attrs[k] = np.nan if v is None else v


def write_report(
    path: str | Path,
    *,
    config_text: str,
    tracking: EfficiencyReport,
    clustering: EfficiencyReport,
    skips: SkipDiagnostics,
    book: Optional[DiagnosticsBook] = None,
) -> Path:
    """
    Write the per-run report.

    Layout:
      attrs: format_version, created_utc, software, config_text
      /efficiency/tracking, /efficiency/clustering : counters + rates as attrs
      /skips : totals as attrs, /skips/reasons : one attr per skip reason
      /histograms/<name>/{edges, counts} (+ underflow/overflow attrs)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with h5py.File(path, "w") as f:
        f.attrs["format_version"] = FORMAT_VERSION
        f.attrs["created_utc"] = datetime.now(timezone.utc).isoformat()
        f.attrs["software"] = SOFTWARE
        f.attrs["config_text"] = config_text

        eff = f.create_group("efficiency")
        _write_efficiency(eff.create_group("tracking"), tracking)
        _write_efficiency(eff.create_group("clustering"), clustering)

        sk = f.create_group("skips")
        sk.attrs["total_events"] = skips.total_events
        sk.attrs["scored_events"] = skips.scored_events
        sk.attrs["skipped_events"] = skips.skipped_events
        reasons = sk.create_group("reasons")
        for reason, n in sorted(skips.reasons.items()):
            reasons.attrs[reason] = n

        if book is not None:
            hg = f.create_group("histograms")
            for h in book.histograms():
                g = hg.create_group(h.name)
                g.create_dataset("edges", data=h.edges)
                g.create_dataset("counts", data=h.counts)
                g.attrs["underflow"] = h.underflow
                g.attrs["overflow"] = h.overflow
    return path


def read_report(path: str | Path) -> Dict[str, Dict[str, object]]:
    """
    Read back the efficiency attrs: {"tracking": {...}, "clustering": {...}}.
    NaN rates come back as None.
    """
    out: Dict[str, Dict[str, object]] = {}
    with h5py.File(str(path), "r") as f:
        if "efficiency" not in f:
            raise KeyError(f"/efficiency not found in {path}")
        for view in ("tracking", "clustering"):
            attrs: Dict[str, object] = {}
            for k, v in f["efficiency"][view].attrs.items():
                if isinstance(v, (float, np.floating)) and np.isnan(v):
                    attrs[k] = None
                elif isinstance(v, np.integer):
                    attrs[k] = int(v)
                elif isinstance(v, np.floating):
                    attrs[k] = float(v)
                else:
                    attrs[k] = v
            out[view] = attrs
    return out


def read_histogram(path: str | Path, name: str) -> tuple[np.ndarray, np.ndarray]:
    with h5py.File(str(path), "r") as f:
        key = f"/histograms/{name}"
        if key not in f:
            raise KeyError(f"{key} not found in {path}")
        return np.array(f[key]["edges"]), np.array(f[key]["counts"])
