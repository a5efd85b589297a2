# solver/search.py
import time
from dataclasses import dataclass
from itertools import groupby
from typing import Dict, FrozenSet, List, Mapping, Optional

from models import Placed, SearchBudgetExceeded, UnknownShapeError, Variant
from solver.variants import ordered_variants

Catalogue = Mapping[int, FrozenSet[Variant]]

# the wall clock is only consulted every this many nodes
_CLOCK_EVERY = 1024


@dataclass
class SearchStats:
    nodes: int = 0        # search states expanded
    placements: int = 0   # placements that passed the overlap check
    elapsed: float = 0.0


# ---------------- helpers ----------------

def demand_areas(demand: Mapping[int, int], variants: Catalogue) -> Dict[int, int]:
    """Return {shape_id: area} for every shape with a positive count.

    Raises ``ValueError`` for negative counts and ``UnknownShapeError`` when a
    demanded shape has no variants.
    """
    areas: Dict[int, int] = {}
    for shape_id, count in demand.items():
        n = int(count)
        if n < 0:
            raise ValueError(f"negative count {n} for shape {shape_id}")
        if n == 0:
            continue
        shape_variants = variants.get(shape_id)
        if not shape_variants:
            raise UnknownShapeError(shape_id)
        areas[shape_id] = next(iter(shape_variants)).area
    return areas


def required_area(demand: Mapping[int, int], areas: Mapping[int, int]) -> int:
    return sum(int(demand[shape_id]) * area for shape_id, area in areas.items())


def area_admits(total_area: int, board_area: int, allow_slack: bool = False) -> bool:
    if allow_slack:
        return total_area <= board_area
    return total_area == board_area


def build_work_list(demand: Mapping[int, int], areas: Mapping[int, int]) -> List[int]:
    """One entry per piece to place, larger pieces first, ties by shape id."""
    order = sorted(areas, key=lambda shape_id: (-areas[shape_id], shape_id))
    return [shape_id for shape_id in order for _ in range(int(demand[shape_id]))]


class _Orientation:
    """A variant's cells as flat board offsets from its anchor cell."""

    __slots__ = ("variant", "anchor_col", "min_dc", "max_dc", "max_dr", "offsets")

    def __init__(self, variant: Variant, board_width: int):
        anchor_row, anchor_col = variant.anchor
        rel = [(r - anchor_row, c - anchor_col) for r, c in variant.cells]
        self.variant = variant
        self.anchor_col = anchor_col
        self.min_dc = min(dc for _, dc in rel)
        self.max_dc = max(dc for _, dc in rel)
        self.max_dr = max(dr for dr, _ in rel)
        self.offsets = tuple(dr * board_width + dc for dr, dc in rel)


# _Frame.skip: the "leave the cell empty" branch is applied / has been tried
_SKIPPED = 1
_SKIP_DONE = 2


class _Frame:
    """One search node: the empty cell being covered and a cursor over its choices."""

    __slots__ = ("idx", "row", "col", "k", "j", "placed", "placed_k", "skip")

    def __init__(self, idx: int, board_width: int):
        self.idx = idx
        self.row, self.col = divmod(idx, board_width)
        self.k = 0                  # index into shape_order
        self.j = 0                  # next orientation of shape k
        self.placed: Optional[_Orientation] = None
        self.placed_k = -1
        self.skip = 0


# ---------------- engine ----------------

class PlacementSearch:
    """Depth-first exact-cover search over one rectangular board.

    The board is a flat ``bytearray`` (``row * width + col``, 0 = empty) owned by
    this instance.  Every step anchors a piece on the first empty cell in
    row-major order: that cell has to be covered by some piece, and the only
    cell of a piece that can land on it is the piece's topmost-leftmost one.
    Pieces of one shape are tried as a group, so identical pieces are never
    permuted.

    The walk keeps its own stack of ``_Frame`` objects instead of recursing, so
    depth is bounded by the board size and not by the interpreter.  A frame's
    placement is undone before its next choice is tried, and any frames still
    on the stack are unwound in a ``finally`` block, which leaves the board
    unchanged after a failed search, a success or a budget exception.
    """

    def __init__(
        self,
        width: int,
        height: int,
        demand: Mapping[int, int],
        variants: Catalogue,
        *,
        node_limit: Optional[int] = None,
        time_limit: Optional[float] = None,
        allow_slack: bool = False,
        stats: Optional[SearchStats] = None,
    ):
        width = int(width)
        height = int(height)
        if width < 0 or height < 0:
            raise ValueError(f"bad board size {width}x{height}")

        self.width = width
        self.height = height
        self.allow_slack = bool(allow_slack)
        self.node_limit = int(node_limit) if node_limit else None
        self.time_limit = float(time_limit) if time_limit else None
        self.stats = stats if stats is not None else SearchStats()

        self.areas = demand_areas(demand, variants)
        self.total_area = required_area(demand, self.areas)
        self.work_list = build_work_list(demand, self.areas)

        groups = [(shape_id, len(list(items))) for shape_id, items in groupby(self.work_list)]
        self.shape_order = [shape_id for shape_id, _ in groups]
        self.remaining = [n for _, n in groups]
        self.orientations = [
            [
                _Orientation(v, width)
                for v in ordered_variants(variants[shape_id])
                if v.height <= height and v.width <= width
            ]
            for shape_id in self.shape_order
        ]

        self.board = bytearray(width * height)
        self.slack = width * height - self.total_area
        self.placements: List[Placed] = []
        self.solution: Optional[List[Placed]] = None
        self._pieces_left = len(self.work_list)
        self._t0 = 0.0
        self._deadline: Optional[float] = None

    def run(self) -> bool:
        self._t0 = time.monotonic()
        try:
            if not area_admits(self.total_area, self.width * self.height, self.allow_slack):
                return False
            if self.time_limit is not None:
                self._deadline = self._t0 + self.time_limit
            return self._search()
        finally:
            self.stats.elapsed = time.monotonic() - self._t0

    def _check_budget(self) -> None:
        nodes = self.stats.nodes
        if self.node_limit is not None and nodes > self.node_limit:
            raise SearchBudgetExceeded(
                f"node limit {self.node_limit} reached",
                nodes=nodes,
                elapsed=time.monotonic() - self._t0,
            )
        if self._deadline is not None and nodes % _CLOCK_EVERY == 0:
            now = time.monotonic()
            if now >= self._deadline:
                raise SearchBudgetExceeded(
                    f"time limit {self.time_limit:g}s reached",
                    nodes=nodes,
                    elapsed=now - self._t0,
                )

    def _search(self) -> bool:
        stack: List[_Frame] = []
        try:
            while True:
                self.stats.nodes += 1
                self._check_budget()

                if not self._pieces_left:
                    self.solution = list(self.placements)
                    return True

                idx = self.board.find(0)
                if idx >= 0:
                    stack.append(_Frame(idx, self.width))

                # descend into the next untried child, popping exhausted frames
                while stack and not self._advance(stack[-1]):
                    stack.pop()
                if not stack:
                    return False
        finally:
            while stack:
                self._undo(stack.pop())

    def _advance(self, f: "_Frame") -> bool:
        """Undo ``f``'s current child and apply the next one; False when none is left."""
        self._undo(f)
        if f.skip:
            return False

        board = self.board
        idx, row, col = f.idx, f.row, f.col
        while f.k < len(self.shape_order):
            k = f.k
            if self.remaining[k]:
                options = self.orientations[k]
                while f.j < len(options):
                    o = options[f.j]
                    f.j += 1
                    if col + o.min_dc < 0 or col + o.max_dc >= self.width or row + o.max_dr >= self.height:
                        continue
                    if any(board[idx + off] for off in o.offsets):
                        continue

                    self.stats.placements += 1
                    for off in o.offsets:
                        board[idx + off] = 1
                    self.remaining[k] -= 1
                    self._pieces_left -= 1
                    self.placements.append(Placed(self.shape_order[k], row, col - o.anchor_col, o.variant))
                    f.placed = o
                    f.placed_k = k
                    return True
            f.k += 1
            f.j = 0

        if self.slack > 0:
            # leave this cell uncovered and move on
            board[idx] = 1
            self.slack -= 1
            f.skip = _SKIPPED
            return True
        return False

    def _undo(self, f: "_Frame") -> None:
        board = self.board
        if f.placed is not None:
            self.placements.pop()
            self._pieces_left += 1
            self.remaining[f.placed_k] += 1
            for off in f.placed.offsets:
                board[f.idx + off] = 0
            f.placed = None
        elif f.skip == _SKIPPED:
            board[f.idx] = 0
            self.slack += 1
            f.skip = _SKIP_DONE


# ---------------- public entrypoints ----------------

def can_tile(
    width: int,
    height: int,
    demand: Mapping[int, int],
    variants: Catalogue,
    *,
    node_limit: Optional[int] = None,
    time_limit: Optional[float] = None,
    allow_slack: bool = False,
    stats: Optional[SearchStats] = None,
) -> bool:
    """True when the ``width`` x ``height`` rectangle can be tiled with exactly ``demand``."""
    search = PlacementSearch(
        width, height, demand, variants,
        node_limit=node_limit, time_limit=time_limit,
        allow_slack=allow_slack, stats=stats,
    )
    return search.run()


def find_tiling(
    width: int,
    height: int,
    demand: Mapping[int, int],
    variants: Catalogue,
    *,
    node_limit: Optional[int] = None,
    time_limit: Optional[float] = None,
    allow_slack: bool = False,
    stats: Optional[SearchStats] = None,
) -> Optional[List[Placed]]:
    """Like :func:`can_tile` but returns the first tiling found, or ``None``."""
    search = PlacementSearch(
        width, height, demand, variants,
        node_limit=node_limit, time_limit=time_limit,
        allow_slack=allow_slack, stats=stats,
    )
    if search.run():
        return search.solution
    return None


__all__ = [
    "SearchStats",
    "PlacementSearch",
    "build_work_list",
    "can_tile",
    "find_tiling",
]
