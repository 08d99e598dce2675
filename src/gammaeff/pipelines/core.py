from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence
import typer

from gammaeff.analysis.compare import ComparisonResult, compare_sequences
from gammaeff.analysis.diagnostics import DiagnosticsBook, EventDiagnostics, SkipDiagnostics
from gammaeff.analysis.efficiency import EfficiencyAccumulator, EfficiencyReport
from gammaeff.clustering.temporal import cluster_gammas
from gammaeff.config.load import load_config, snapshot_config_toml
from gammaeff.config.schemas import Config
from gammaeff.errors import EventSkip
from gammaeff.filters.reconstructed import extract_reconstructed_gammas
from gammaeff.filters.truth import extract_true_gammas
from gammaeff.geometry.locators import NeighbourProvider, make_locators
from gammaeff.io.event_store import make_event_source
from gammaeff.io.report_store import write_report
from gammaeff.physics.events import EventRecord, GammaDict
from gammaeff.vis.hdf import save_histograms_png


@dataclass
class EventScore:
    """Scores of one event for both candidate views."""
    event_id: int
    n_gamma: int
    truth: GammaDict
    reconstructed: GammaDict
    clustered: GammaDict
    tracking: ComparisonResult
    clustering: ComparisonResult
    diagnostics: EventDiagnostics


@dataclass
class RunResult:
    tracking: EfficiencyReport
    clustering: EfficiencyReport
    skips: SkipDiagnostics
    book: DiagnosticsBook = field(default_factory=DiagnosticsBook)


def process_event(
    event: EventRecord,
    providers: Sequence[NeighbourProvider],
    cfg: Config,
) -> EventScore:
    """
    Build the three gamma views of one event and score the two candidate
    views against the truth.

    Raises EventSkip when the event cannot be scored.
    """
    if event.calibrated_hits is None:
        raise EventSkip("no_calibrated_data")
    if not event.calibrated_hits:
        raise EventSkip("no_calorimeter_hits")

    clustered, _ = cluster_gammas(event.calibrated_hits, providers, cfg.clustering.time_gap_ns)

    truth = extract_true_gammas(
        event.simulated,
        event.calibrated_hits,
        label=cfg.truth.step_hit_label,
        primary_sentinel=cfg.truth.primary_sentinel,
        track_id_priority=cfg.truth.track_id_priority,
    )
    reconstructed = extract_reconstructed_gammas(event.particle_tracks)

    return EventScore(
        event_id=event.event_id,
        n_gamma=event.simulated.n_primary_gammas,
        truth=truth,
        reconstructed=reconstructed,
        clustered=clustered,
        tracking=compare_sequences(reconstructed, truth),
        clustering=compare_sequences(clustered, truth),
        diagnostics=EventDiagnostics.from_event(event, clustered),
    )


def run_events(events: Iterable[EventRecord], cfg: Config) -> RunResult:
    """
    Score a stream of events and return the finalized efficiency reports.

    Skipped events are counted per reason and leave the accumulators
    untouched; MissingPrimaryTrackId propagates and aborts the run.
    """
    diag_level = cfg.run.diagnostics_level
    providers = make_locators(cfg.geometry)
    tracking = EfficiencyAccumulator("tracking")
    clustering = EfficiencyAccumulator("clustering")
    skips = SkipDiagnostics()
    book = DiagnosticsBook()

    for ev in events:
        skips.total_events += 1
        try:
            score = process_event(ev, providers, cfg)
        except EventSkip as exc:
            skips.inc(exc.reason)
            if diag_level >= 2:
                print(f"[skip] event {ev.event_id}: {exc}")
            continue

        skips.scored_events += 1
        tracking.update(score.tracking, score.n_gamma)
        clustering.update(score.clustering, score.n_gamma)
        book.fill(score.diagnostics)

        if diag_level >= 2:
            print(f"[event {score.event_id}] truth={len(score.truth)} "
                  f"tracking={score.tracking.matched}/{len(score.reconstructed)} "
                  f"full={score.tracking.fully_matched} "
                  f"clustering={score.clustering.matched}/{len(score.clustered)} "
                  f"full={score.clustering.fully_matched}")

    result = RunResult(
        tracking=tracking.finalize(),
        clustering=clustering.finalize(),
        skips=skips,
        book=book,
    )

    if diag_level >= 1:
        print(f"[pipeline] {skips.total_events} events, {skips.scored_events} scored, "
              f"{skips.skipped_events} skipped")
        for reason, n in sorted(skips.reasons.items()):
            print(f"[pipeline]   skipped ({reason}): {n}")
        for line in result.tracking.summary_lines() + result.clustering.summary_lines():
            print(line)
    return result


def run_pipeline(
    cfg_path: str,
    *,
    max_events: Optional[int] = None,
    diagnostics_level: Optional[int] = None,
) -> Path:
    """
    Orchestrate a full efficiency run from a TOML config file.

    CLI flags override the corresponding [run] fields when not None.

    Returns
    -------
    Path to the written HDF5 report.
    """
    cfg = load_config(cfg_path)

    # ---- apply CLI overrides on top of TOML ----
    if max_events is not None:
        cfg.run.max_events = max_events
    if diagnostics_level is not None:
        cfg.run.diagnostics_level = diagnostics_level
    if max_events is not None or diagnostics_level is not None:
        # re-validate the overrides
        cfg = Config(**cfg.model_dump())

    diag_level = cfg.run.diagnostics_level
    if diag_level >= 1:
        print(f"[run] config = {cfg_path}")
        print(f"[run] input={cfg.io.input_path} -> output={cfg.io.output_path}")
        print(f"[run] time_gap_ns={cfg.clustering.time_gap_ns} "
              f"track_id_priority={cfg.truth.track_id_priority}")

    source = make_event_source(cfg.io, max_events=cfg.run.max_events)
    result = run_events(source.iter_events(str(cfg.io.input_path)), cfg)

    out_path = write_report(
        cfg.io.output_path,
        config_text=snapshot_config_toml(cfg_path),
        tracking=result.tracking,
        clustering=result.clustering,
        skips=result.skips,
        book=result.book if cfg.report.write_histograms else None,
    )

    if cfg.report.write_histograms and cfg.report.export_png_on_write:
        try:
            out_png = save_histograms_png(str(out_path))
            if diag_level >= 1:
                print(f"[pipeline] Wrote PNG {out_png}")
        except (OSError, KeyError, ValueError) as e:
            if diag_level >= 1:
                print(f"[pipeline] PNG export failed: {e!r}")

    return out_path


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

app = typer.Typer(help="Gamma tracking efficiency (gammaeff.pipelines.core)")


@app.command()
def main(
    cfg_path: str = typer.Argument(
        ...,
        help="Path to TOML config file",
    ),
    max_events: Optional[int] = typer.Option(
        None,
        "--max-events",
        "-n",
        help="Override [run].max_events",
    ),
    diagnostics_level: Optional[int] = typer.Option(
        None,
        "--diagnostics",
        "-d",
        help="Override [run].diagnostics_level (0, 1 or 2)",
    ),
):
    """
    Score reconstruction and clustering against simulation for one config.
    """
    out_path = run_pipeline(cfg_path, max_events=max_events, diagnostics_level=diagnostics_level)
    typer.echo(str(out_path))


if __name__ == "__main__":
    app()
