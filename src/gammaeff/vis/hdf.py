import math

import h5py
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

def save_histograms_png(h5_path: str, out_png: str | None = None, group: str = "/histograms"):
    """Render every histogram stored under `group` of a report file into one PNG grid."""
    h5_path = str(h5_path)
    hists = []
    with h5py.File(h5_path, "r") as f:
        if group not in f:
            raise KeyError(f"{group} not found in {h5_path}")
        for name, g in f[group].items():
            hists.append((name, np.array(g["edges"]), np.array(g["counts"])))
    if not hists:
        raise ValueError(f"No histograms under {group} in {h5_path}")

    if out_png is None:
        out_png = str(Path(h5_path).with_suffix(".png"))

    ncols = min(3, len(hists))
    nrows = math.ceil(len(hists) / ncols)
    fig, axes = plt.subplots(nrows, ncols, figsize=(4 * ncols, 3 * nrows), squeeze=False)
    for ax, (name, edges, counts) in zip(axes.flat, hists):
        ax.stairs(counts, edges, fill=True)
        ax.set_title(name, fontsize=9)
    for ax in list(axes.flat)[len(hists):]:
        ax.set_visible(False)
    fig.suptitle(Path(h5_path).name)
    fig.tight_layout()
    fig.savefig(out_png, dpi=150)
    plt.close(fig)
    return out_png
