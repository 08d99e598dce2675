# src/gammaeff/config/load.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict

from .schemas import Config

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # py<=310


def _anchor_io_paths(data: Dict[str, Any], base: Path) -> None:
    # relative [io] paths are taken relative to the config file
    io = data.get("io")
    if not isinstance(io, dict):
        return
    for key in ("input_path", "output_path"):
        v = io.get(key)
        if isinstance(v, str) and v and not Path(v).is_absolute():
            io[key] = str(base / v)


def load_config(path: str | Path, *, anchor_paths: bool = True) -> Config:
    p = Path(path)
    data = tomllib.loads(p.read_text())
    if anchor_paths:
        _anchor_io_paths(data, p.resolve().parent)
    return Config(**data)


def snapshot_config_toml(path: str | Path) -> str:
    """Return the raw TOML text for embedding in the report file."""
    return Path(path).read_text()
