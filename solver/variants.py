# solver/variants.py
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence

from models import Cell, Shape, Variant, normalize_cells


def rotate(cells: Iterable[Cell]) -> List[Cell]:
    # 90 degrees clockwise: (r, c) -> (c, -r)
    return [(c, -r) for r, c in cells]


def flip(cells: Iterable[Cell]) -> List[Cell]:
    # reflection over the row axis: (r, c) -> (-r, c)
    return [(-r, c) for r, c in cells]


@lru_cache(maxsize=None)
def generate_variants(shape: Shape) -> FrozenSet[Variant]:
    """Distinct orientations of ``shape`` under the 4 rotations and their reflections.

    Every variant is re-normalized to touch (0, 0) and stored sorted, so two
    transforms that land on the same cell set collapse into one ``Variant``.
    """
    unique = set()
    current: Sequence[Cell] = shape.cells
    for _ in range(4):
        unique.add(Variant(normalize_cells(current)))
        unique.add(Variant(normalize_cells(flip(current))))
        current = rotate(current)
    return frozenset(unique)


def variant_catalogue(shapes: Mapping[int, Shape]) -> Dict[int, FrozenSet[Variant]]:
    return {shape_id: generate_variants(shape) for shape_id, shape in shapes.items()}


def ordered_variants(variants: Iterable[Variant]) -> List[Variant]:
    # frozenset iteration order is not stable across processes
    return sorted(variants, key=lambda v: v.cells)
