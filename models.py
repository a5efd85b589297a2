
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Tuple

Cell = Tuple[int, int]  # (row, col)


def normalize_cells(cells: Iterable[Cell]) -> Tuple[Cell, ...]:
    """Shift cells so min row and min col are 0; return them sorted row-major."""
    pts = [(int(r), int(c)) for r, c in cells]
    if not pts:
        return ()
    min_r = min(r for r, _ in pts)
    min_c = min(c for _, c in pts)
    return tuple(sorted({(r - min_r, c - min_c) for r, c in pts}))


class UnknownShapeError(KeyError):
    """Demand names a shape id that has no variants."""

    def __init__(self, shape_id: int):
        super().__init__(shape_id)
        self.shape_id = shape_id

    def __str__(self) -> str:
        return f"shape {self.shape_id} has no known variants"


class SearchBudgetExceeded(RuntimeError):
    """Search stopped before an answer; the region is neither proven nor refuted."""

    def __init__(self, reason: str, nodes: int = 0, elapsed: float = 0.0):
        super().__init__(reason)
        self.nodes = nodes
        self.elapsed = elapsed


@dataclass(frozen=True)
class Shape:
    shape_id: int
    cells: Tuple[Cell, ...]

    @classmethod
    def from_cells(cls, shape_id: int, cells: Iterable[Cell]) -> "Shape":
        return cls(int(shape_id), normalize_cells(cells))

    @property
    def area(self) -> int:
        return len(self.cells)


@dataclass(frozen=True)
class Variant:
    cells: Tuple[Cell, ...]

    @property
    def area(self) -> int:
        return len(self.cells)

    @property
    def height(self) -> int:
        return 1 + max(r for r, _ in self.cells)

    @property
    def width(self) -> int:
        return 1 + max(c for _, c in self.cells)

    @property
    def anchor(self) -> Cell:
        # cells are sorted row-major, so the first one is topmost-then-leftmost
        return self.cells[0]


@dataclass(frozen=True)
class PlacementRequest:
    width: int
    height: int
    counts: Dict[int, int] = field(default_factory=dict, hash=False)

    @property
    def label(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def area(self) -> int:
        return self.width * self.height

    def count_for(self, shape_id: int) -> int:
        return int(self.counts.get(shape_id, 0))


@dataclass
class Placed:
    shape_id: int
    row: int
    col: int
    variant: Variant

    def cells(self) -> Iterator[Cell]:
        for r, c in self.variant.cells:
            yield (self.row + r, self.col + c)
