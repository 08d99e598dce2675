# src/gammaeff/geometry/locators.py
"""
gammaeff.geometry.locators

Neighbour lookup for the three calorimeter regions (main wall, X-wall,
gamma veto). Each region is a small rectangular grid of blocks per
(module, side[, wall]); a locator answers two questions:

  - owns_block(gid): is this block part of my region (and of a module I serve)?
  - neighbours_of(gid): which blocks of my region are adjacent to it?

The clustering code only relies on the NeighbourProvider protocol, so tests
(or an external geometry service) can plug in any object with these two
methods, e.g. MappingLocator built from an explicit adjacency table.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Mapping, Protocol, Sequence, Set, Tuple

from .geom_id import GeomId, CALO_TYPE, XCALO_TYPE, GVETO_TYPE


class NeighbourProvider(Protocol):
    def owns_block(self, block: Hashable) -> bool: ...

    def neighbours_of(self, block: Hashable) -> Set[Hashable]: ...


def _grid_steps(diagonal: bool) -> List[Tuple[int, int]]:
    steps = [(-1, 0), (1, 0), (0, -1), (0, 1)]
    if diagonal:
        steps += [(-1, -1), (-1, 1), (1, -1), (1, 1)]
    return steps


@dataclass
class CaloLocator:
    """Main calorimeter wall: address (module, side, column, row)."""
    modules: Sequence[int] = (0,)
    n_sides: int = 2
    n_columns: int = 20
    n_rows: int = 13
    diagonal: bool = False

    def owns_block(self, block: Hashable) -> bool:
        if not isinstance(block, GeomId) or block.type != CALO_TYPE:
            return False
        if len(block.address) < 4:
            return False
        module, side, column, row = block.address[:4]
        return (module in self.modules
                and 0 <= side < self.n_sides
                and 0 <= column < self.n_columns
                and 0 <= row < self.n_rows)

    def neighbours_of(self, block: Hashable) -> Set[GeomId]:
        if not self.owns_block(block):
            return set()
        module, side, column, row = block.address[:4]
        out: Set[GeomId] = set()
        for dc, dr in _grid_steps(self.diagonal):
            c, r = column + dc, row + dr
            if 0 <= c < self.n_columns and 0 <= r < self.n_rows:
                out.add(GeomId.calo(module, side, c, r))
        return out


@dataclass
class XCaloLocator:
    """X-wall calorimeter: address (module, side, wall, column, row)."""
    modules: Sequence[int] = (0,)
    n_sides: int = 2
    n_walls: int = 2
    n_columns: int = 2
    n_rows: int = 16
    diagonal: bool = False

    def owns_block(self, block: Hashable) -> bool:
        if not isinstance(block, GeomId) or block.type != XCALO_TYPE:
            return False
        if len(block.address) < 5:
            return False
        module, side, wall, column, row = block.address[:5]
        return (module in self.modules
                and 0 <= side < self.n_sides
                and 0 <= wall < self.n_walls
                and 0 <= column < self.n_columns
                and 0 <= row < self.n_rows)

    def neighbours_of(self, block: Hashable) -> Set[GeomId]:
        if not self.owns_block(block):
            return set()
        module, side, wall, column, row = block.address[:5]
        out: Set[GeomId] = set()
        for dc, dr in _grid_steps(self.diagonal):
            c, r = column + dc, row + dr
            if 0 <= c < self.n_columns and 0 <= r < self.n_rows:
                out.add(GeomId.xcalo(module, side, wall, c, r))
        return out


@dataclass
class GVetoLocator:
    """Gamma veto: one row of blocks per wall, address (module, side, wall, column)."""
    modules: Sequence[int] = (0,)
    n_sides: int = 2
    n_walls: int = 2
    n_columns: int = 16

    def owns_block(self, block: Hashable) -> bool:
        if not isinstance(block, GeomId) or block.type != GVETO_TYPE:
            return False
        if len(block.address) < 4:
            return False
        module, side, wall, column = block.address[:4]
        return (module in self.modules
                and 0 <= side < self.n_sides
                and 0 <= wall < self.n_walls
                and 0 <= column < self.n_columns)

    def neighbours_of(self, block: Hashable) -> Set[GeomId]:
        if not self.owns_block(block):
            return set()
        module, side, wall, column = block.address[:4]
        return {
            GeomId.gveto(module, side, wall, c)
            for c in (column - 1, column + 1)
            if 0 <= c < self.n_columns
        }


@dataclass
class MappingLocator:
    """
    Provider backed by an explicit adjacency table.

    Edges are made symmetric on construction; a block owns itself if it
    appears anywhere in the table or in `extra_blocks`.
    """
    adjacency: Dict[Hashable, Set[Hashable]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple[Hashable, Hashable]],
                   extra_blocks: Iterable[Hashable] = ()) -> "MappingLocator":
        adj: Dict[Hashable, Set[Hashable]] = {}
        for a, b in edges:
            adj.setdefault(a, set()).add(b)
            adj.setdefault(b, set()).add(a)
        for blk in extra_blocks:
            adj.setdefault(blk, set())
        return cls(adjacency=adj)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Hashable, Iterable[Hashable]]) -> "MappingLocator":
        edges = [(a, b) for a, nbrs in mapping.items() for b in nbrs]
        return cls.from_edges(edges, extra_blocks=mapping.keys())

    def owns_block(self, block: Hashable) -> bool:
        return block in self.adjacency

    def neighbours_of(self, block: Hashable) -> Set[Hashable]:
        return set(self.adjacency.get(block, ()))


def neighbours_of(providers: Iterable[NeighbourProvider], block: Hashable) -> Set[Hashable]:
    """
    Union of the neighbours reported by every provider that owns `block`.

    Providers that do not own the block are not queried.
    """
    out: Set[Hashable] = set()
    for p in providers:
        if p.owns_block(block):
            out |= p.neighbours_of(block)
    return out


def make_locators(geo_cfg) -> List[NeighbourProvider]:
    """
    Build the three region locators from a GeometryCfg
    (see gammaeff.config.schemas).
    """
    modules = tuple(geo_cfg.modules)
    diag = geo_cfg.diagonal_neighbours
    mw, xw, gv = geo_cfg.main_wall, geo_cfg.xwall, geo_cfg.gveto
    return [
        CaloLocator(modules=modules, n_sides=mw.sides, n_columns=mw.columns,
                    n_rows=mw.rows, diagonal=diag),
        XCaloLocator(modules=modules, n_sides=xw.sides, n_walls=xw.walls,
                     n_columns=xw.columns, n_rows=xw.rows, diagonal=diag),
        GVetoLocator(modules=modules, n_sides=gv.sides, n_walls=gv.walls,
                     n_columns=gv.columns),
    ]
