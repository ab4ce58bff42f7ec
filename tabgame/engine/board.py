from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from loguru import logger

from .config import config
from .graph import TrackGraph

LAYOUTS = ("symmetric", "single")


@dataclass(slots=True)
class Board:
    """Owns the race track for a 4 x ``cols`` board (no rule logic).

    Track layout (arrows show the direction of travel)::

        row 0   <-  <-  <-      right to left, (0,0) drops to (1,0)
        row 1   ->  ->  ->      left to right, (1,N-1) branches to rows 0 and 2
        row 2   <-  <-  <-      right to left, (2,0) climbs to (1,0)
        row 3   ->  ->  ->      left to right, (3,N-1) climbs to (2,N-1)

    The symmetric layout also links (2,0) down to (3,0), which gives the
    row-0 player a way into row 3.
    """

    cols: int
    layout: str = config.TRACK_LAYOUT
    rows: int = field(default=config.ROWS, init=False)
    graph: TrackGraph = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.cols < 1:
            raise ValueError(f"Board needs a positive number of columns, got {self.cols}")
        if self.layout not in LAYOUTS:
            raise ValueError(f"Unknown track layout {self.layout!r}; expected one of {LAYOUTS}")
        self.graph = TrackGraph(self.rows, self.cols)
        self._build_path()
        self.graph.freeze()
        logger.debug(f"Built {self.layout} track for 4x{self.cols} board")

    @classmethod
    def for_size(cls, cols: int, layout: str | None = None) -> "Board":
        """Shared, immutable board for a given size and layout."""
        return _cached_board(cols, layout or config.TRACK_LAYOUT)

    def _build_path(self) -> None:
        g = self.graph
        last = self.cols - 1
        for c in range(self.cols):
            # Row 0: right to left, leftmost drops into row 1
            if c > 0:
                g.add_edge_rc(0, c, 0, c - 1)
            else:
                g.add_edge_rc(0, 0, 1, 0)
            # Row 1: left to right, rightmost is the turn corner
            if c < last:
                g.add_edge_rc(1, c, 1, c + 1)
            else:
                g.add_edge_rc(1, c, 0, c)
                g.add_edge_rc(1, c, 2, c)
            # Row 2: right to left, leftmost climbs back to row 1
            if c > 0:
                g.add_edge_rc(2, c, 2, c - 1)
            else:
                g.add_edge_rc(2, 0, 1, 0)
                if self.layout == "symmetric":
                    g.add_edge_rc(2, 0, 3, 0)
            # Row 3: left to right, rightmost climbs to row 2
            if c < last:
                g.add_edge_rc(3, c, 3, c + 1)
            else:
                g.add_edge_rc(3, c, 2, c)

    @property
    def corner(self) -> tuple[int, int]:
        return (1, self.cols - 1)

    def branch_nodes(self) -> list[tuple[int, int]]:
        g = self.graph
        return [
            tuple(g.id_to_coord(i))
            for i in range(self.rows * self.cols)
            if g.out_degree(i) > 1
        ]


@lru_cache(maxsize=None)
def _cached_board(cols: int, layout: str) -> Board:
    return Board(cols=cols, layout=layout)
