# src/gammaeff/geometry/geom_id.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import re

# Geometry categories of the three calorimeter regions
CALO_TYPE = 1302   # main wall:  (module, side, column, row)
XCALO_TYPE = 1232  # X-wall:     (module, side, wall, column, row)
GVETO_TYPE = 1252  # gamma veto: (module, side, wall, column)

# Address levels of each known category; other types are not checked
ADDRESS_DEPTH = {
    CALO_TYPE: 4,
    XCALO_TYPE: 5,
    GVETO_TYPE: 4,
}

# Width of the padded address columns in the event store
MAX_ADDRESS_DEPTH = 6

_GID_RE = re.compile(r"^\[(\d+):([0-9.]*)\]$")


@dataclass(frozen=True, order=True, slots=True)
class GeomId:
    """
    Geometry identifier of one calorimeter block.

    Ordering is lexicographic on (type, address), which keeps it stable
    for the whole run and consistent with equality.
    """
    type: int
    address: Tuple[int, ...]

    def __post_init__(self) -> None:
        # accept any iterable of ints for convenience, store a tuple
        object.__setattr__(self, "address", tuple(int(a) for a in self.address))
        depth = ADDRESS_DEPTH.get(self.type)
        if depth is not None and len(self.address) != depth:
            raise ValueError(
                f"Geometry type {self.type} expects {depth} address levels, got {len(self.address)}"
            )

    @classmethod
    def calo(cls, module: int, side: int, column: int, row: int) -> "GeomId":
        return cls(CALO_TYPE, (module, side, column, row))

    @classmethod
    def xcalo(cls, module: int, side: int, wall: int, column: int, row: int) -> "GeomId":
        return cls(XCALO_TYPE, (module, side, wall, column, row))

    @classmethod
    def gveto(cls, module: int, side: int, wall: int, column: int) -> "GeomId":
        return cls(GVETO_TYPE, (module, side, wall, column))

    @classmethod
    def parse(cls, text: str) -> "GeomId":
        """Inverse of str(): '[1302:0.1.4.7]' -> GeomId(1302, (0, 1, 4, 7))."""
        m = _GID_RE.match(text.strip())
        if m is None:
            raise ValueError(f"Invalid geometry id string: {text!r}")
        addr = tuple(int(x) for x in m.group(2).split(".") if x != "")
        return cls(int(m.group(1)), addr)

    def __str__(self) -> str:
        return f"[{self.type}:{'.'.join(str(a) for a in self.address)}]"
