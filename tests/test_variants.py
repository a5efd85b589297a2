import pytest

from models import Shape, Variant, normalize_cells
from solver.variants import flip, generate_variants, rotate, variant_catalogue

MONOMINO = Shape.from_cells(0, [(0, 0)])
DOMINO = Shape.from_cells(1, [(0, 0), (0, 1)])
L_TROMINO = Shape.from_cells(2, [(0, 0), (1, 0), (1, 1)])
O_TETROMINO = Shape.from_cells(3, [(0, 0), (0, 1), (1, 0), (1, 1)])
T_TETROMINO = Shape.from_cells(4, [(0, 0), (0, 1), (0, 2), (1, 1)])
S_TETROMINO = Shape.from_cells(5, [(0, 1), (0, 2), (1, 0), (1, 1)])
F_PENTOMINO = Shape.from_cells(6, [(0, 1), (0, 2), (1, 0), (1, 1), (2, 1)])

ALL_SHAPES = [MONOMINO, DOMINO, L_TROMINO, O_TETROMINO, T_TETROMINO, S_TETROMINO, F_PENTOMINO]


@pytest.mark.parametrize(
    "shape, expected",
    [
        (MONOMINO, 1),
        (DOMINO, 2),
        (L_TROMINO, 4),
        (O_TETROMINO, 1),
        (T_TETROMINO, 4),
        (S_TETROMINO, 4),
        (F_PENTOMINO, 8),
    ],
)
def test_variant_counts_follow_shape_symmetry(shape, expected):
    assert len(generate_variants(shape)) == expected


@pytest.mark.parametrize("shape", ALL_SHAPES)
def test_variants_are_normalized_and_keep_area(shape):
    variants = generate_variants(shape)
    assert 1 <= len(variants) <= 8
    for v in variants:
        assert v.area == shape.area
        assert min(r for r, _ in v.cells) == 0
        assert min(c for _, c in v.cells) == 0
        assert list(v.cells) == sorted(v.cells)


@pytest.mark.parametrize("shape", ALL_SHAPES)
def test_base_orientation_is_one_of_the_variants(shape):
    assert Variant(shape.cells) in generate_variants(shape)


def test_domino_variants_are_horizontal_and_vertical():
    cells = {v.cells for v in generate_variants(DOMINO)}
    assert cells == {((0, 0), (0, 1)), ((0, 0), (1, 0))}


def test_normalize_cells_is_idempotent():
    raw = [(3, -2), (4, -2), (4, -1)]
    once = normalize_cells(raw)
    assert once == ((0, 0), (1, 0), (1, 1))
    assert normalize_cells(once) == once


def test_normalize_cells_drops_duplicates_and_empty_input():
    assert normalize_cells([(1, 1), (1, 1)]) == ((0, 0),)
    assert normalize_cells([]) == ()


def test_rotate_and_flip_mappings():
    assert rotate([(1, 2)]) == [(2, -1)]
    assert flip([(1, 2)]) == [(-1, 2)]
    # four quarter turns return to the start
    pts = [(0, 0), (1, 0), (1, 1)]
    turned = pts
    for _ in range(4):
        turned = rotate(turned)
    assert turned == pts


def test_variant_geometry_helpers():
    v = Variant(normalize_cells([(0, 1), (1, 0), (1, 1)]))
    assert v.anchor == (0, 1)
    assert v.height == 2
    assert v.width == 2
    assert v.area == 3


def test_variant_catalogue_maps_every_shape():
    shapes = {s.shape_id: s for s in (MONOMINO, L_TROMINO)}
    catalogue = variant_catalogue(shapes)
    assert set(catalogue) == {0, 2}
    assert catalogue[2] == generate_variants(L_TROMINO)
    assert isinstance(catalogue[0], frozenset)
