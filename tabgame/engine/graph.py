from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .types import Cell


@dataclass(slots=True)
class TrackGraph:
    """Directed grid graph of legal single-step forward moves.

    Nodes are addressed by (row, col) or by the flattened id
    ``row * cols + col``. Once frozen the adjacency can no longer change.
    """

    rows: int
    cols: int
    _adj: List[set[int]] = field(init=False, repr=False)
    _frozen: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError("TrackGraph needs at least one row and one column")
        self._adj = [set() for _ in range(self.rows * self.cols)]

    # --- Addressing ---
    def coord_to_id(self, row: int, col: int) -> int:
        return row * self.cols + col

    def id_to_coord(self, node_id: int) -> Cell:
        return Cell(node_id // self.cols, node_id % self.cols)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    # --- Construction ---
    def add_edge(self, from_id: int, to_id: int) -> None:
        if self._frozen:
            raise RuntimeError("TrackGraph is frozen")
        self._adj[from_id].add(to_id)

    def add_edge_rc(self, from_row: int, from_col: int, to_row: int, to_col: int) -> None:
        """Add an edge by coordinates; edges leaving the grid are ignored."""
        if not self.in_bounds(from_row, from_col) or not self.in_bounds(to_row, to_col):
            return
        self.add_edge(
            self.coord_to_id(from_row, from_col), self.coord_to_id(to_row, to_col)
        )

    def freeze(self) -> "TrackGraph":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # --- Queries ---
    def neighbors(self, node_id: int) -> frozenset[int]:
        return frozenset(self._adj[node_id])

    def neighbors_rc(self, row: int, col: int) -> list[Cell]:
        node_id = self.coord_to_id(row, col)
        return sorted(self.id_to_coord(n) for n in self._adj[node_id])

    def out_degree(self, node_id: int) -> int:
        return len(self._adj[node_id])

    def k_step_reachable(self, start_id: int, k: int) -> set[int]:
        """Nodes reachable in exactly ``k`` forward hops from ``start_id``."""
        frontier = {start_id}
        for _ in range(k):
            frontier = {n for node in frontier for n in self._adj[node]}
            if not frontier:
                break
        return frontier

    def k_step_rc(self, row: int, col: int, k: int) -> list[Cell]:
        ids = self.k_step_reachable(self.coord_to_id(row, col), k)
        return sorted(self.id_to_coord(i) for i in ids)
