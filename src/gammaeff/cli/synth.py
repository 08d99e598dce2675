from __future__ import annotations

import typer
import numpy as np

from gammaeff.io.event_store import write_events
from gammaeff.sim.synth import SynthCfg, synth_events

app = typer.Typer(help="Toy event generator for gamma efficiency studies")

@app.command()
def main(
    out: str = typer.Argument(..., help="Output HDF5 event file"),
    n_events: int = typer.Option(1000, "--events", "-n", help="Number of events"),
    seed: int = typer.Option(0, "--seed", help="Random seed"),
    max_gammas: int = typer.Option(3, "--max-gammas", help="Maximum primary gammas per event"),
    p_merge: float = typer.Option(0.05, "--p-merge", help="Probability that reconstruction merges two gammas"),
    p_swap: float = typer.Option(0.05, "--p-swap", help="Probability that reconstruction mis-orders a gamma"),
):
    """Generate toy events and write them in the gammaeff event layout."""
    cfg = SynthCfg(max_gammas=max_gammas, p_merge=p_merge, p_swap=p_swap)
    events = synth_events(n_events, cfg, np.random.default_rng(seed))
    path = write_events(out, events)
    typer.echo(f"Wrote {len(events)} events to {path}")

if __name__ == "__main__":
    app()
