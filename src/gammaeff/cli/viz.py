from __future__ import annotations

import typer
from typing import Optional

from gammaeff.vis.hdf import save_histograms_png

app = typer.Typer(help="Gamma efficiency report visualization tools")

@app.callback()
def main():
    """Report visualization commands."""

@app.command("h5-to-png")
def h5_to_png(
    h5_path: str = typer.Argument(..., help="Path to HDF5 report containing /histograms"),
    group: str = typer.Option("/histograms", "--group", "-g", help="Histogram group path"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Output PNG path (defaults to file.png)"),
):
    """Render the diagnostics histograms of a report file to a PNG."""
    out_png = save_histograms_png(h5_path, out_png=out, group=group)
    typer.echo(f"Wrote {out_png}")

if __name__ == "__main__":
    app()
