from pathlib import Path

import numpy as np
import pytest
from pydantic import ValidationError

from gammaeff.io.event_store import write_events
from gammaeff.io.report_store import read_report
from gammaeff.pipelines.core import run_pipeline
from gammaeff.sim.synth import SynthCfg, synth_events
from gammaeff.vis.hdf import save_histograms_png


def _write_cfg(tmp_path: Path, png: bool) -> Path:
    cfg = tmp_path / "run.toml"
    cfg.write_text(
        "[run]\n"
        "diagnostics_level = 1\n"
        "\n"
        "[io]\n"
        'input_path = "events.h5"\n'
        'output_path = "out/report.h5"\n'
        "\n"
        "[report]\n"
        f"export_png_on_write = {'true' if png else 'false'}\n"
    )
    return cfg


def test_run_pipeline_on_perfect_synthetic_reconstruction(tmp_path: Path, capsys):
    synth = SynthCfg(p_below_threshold=0.0, p_merge=0.0, p_swap=0.0, p_parent_only=0.0)
    write_events(tmp_path / "events.h5", synth_events(50, synth, np.random.default_rng(1)))

    out = run_pipeline(str(_write_cfg(tmp_path, png=False)), max_events=40)
    assert out == tmp_path.resolve() / "out" / "report.h5"

    rep = read_report(out)
    trk = rep["tracking"]
    assert trk["n_events"] == 40
    assert trk["n_good"] == trk["n_total"]
    assert trk["good_event_rate"] == 1.0
    assert trk["n_miss"] == 0
    assert "[efficiency:clustering]" in capsys.readouterr().out


def test_histogram_png_export(tmp_path: Path):
    write_events(tmp_path / "events.h5", synth_events(10, SynthCfg(), np.random.default_rng(2)))
    out = run_pipeline(str(_write_cfg(tmp_path, png=False)), diagnostics_level=0)
    png = save_histograms_png(str(out))
    assert Path(png).exists()
    assert Path(png).suffix == ".png"


def test_negative_max_events_override_is_rejected(tmp_path: Path):
    write_events(tmp_path / "events.h5", synth_events(2, SynthCfg(), np.random.default_rng(3)))
    with pytest.raises(ValidationError):
        run_pipeline(str(_write_cfg(tmp_path, png=False)), max_events=-1)
