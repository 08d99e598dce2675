from pathlib import Path

from typer.testing import CliRunner

from gammaeff.cli.synth import app as synth_app
from gammaeff.cli.viz import app as viz_app
from gammaeff.io.event_store import iter_events
from gammaeff.pipelines.core import app as run_app

runner = CliRunner()


def test_synth_run_and_viz_commands(tmp_path: Path):
    events = tmp_path / "events.h5"
    res = runner.invoke(synth_app, [str(events), "--events", "15", "--seed", "4"])
    assert res.exit_code == 0, res.output
    assert len(list(iter_events(events))) == 15

    cfg = tmp_path / "run.toml"
    cfg.write_text(
        '[io]\ninput_path = "events.h5"\noutput_path = "report.h5"\n'
        "[report]\nexport_png_on_write = false\n"
    )
    res = runner.invoke(run_app, [str(cfg), "-d", "0"])
    assert res.exit_code == 0, res.output
    report = Path(res.output.strip().splitlines()[-1])
    assert report.exists()

    png = tmp_path / "hists.png"
    res = runner.invoke(viz_app, ["h5-to-png", str(report), "-o", str(png)])
    assert res.exit_code == 0, res.output
    assert png.exists()
