import os
import tempfile
import unittest

from config import CFG
from io_files import write_coords, write_layout_view_html
from models import Placed, Variant
from render import render_result


class WriteOutputsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._orig_coords = CFG.COORDS_OUT
        self._orig_layout = CFG.LAYOUT_HTML

    def tearDown(self) -> None:
        CFG.COORDS_OUT = self._orig_coords
        CFG.LAYOUT_HTML = self._orig_layout

    def test_write_coords_uses_configured_relative_path(self) -> None:
        CFG.COORDS_OUT = "outputs/custom_coords.txt"
        placed = [Placed(3, 0, 1, Variant(((0, 0), (1, 0), (1, 1))))]

        path = write_coords(placed, 3, 2, self.tmpdir.name)

        expected = os.path.join(self.tmpdir.name, "outputs", "custom_coords.txt")
        self.assertEqual(path, expected)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn("region 3x2", contents)
        self.assertIn("shape 3 @ (0,1) cells [0,1 1,1 1,2]", contents)

    def test_write_coords_without_placements(self) -> None:
        CFG.COORDS_OUT = "coords.txt"
        path = write_coords([], 2, 2, self.tmpdir.name)
        with open(path, "r", encoding="utf-8") as fh:
            self.assertIn("No solution", fh.read())

    def test_write_layout_view_html_accepts_absolute_path(self) -> None:
        target = os.path.join(self.tmpdir.name, "html", "layout.html")
        CFG.LAYOUT_HTML = target

        svg = "<svg></svg>"
        legend = "<li>shape 0</li>"

        path = write_layout_view_html(svg, legend, self.tmpdir.name, grid_label="2 × 2 cells")

        self.assertEqual(path, target)
        self.assertTrue(os.path.exists(path))

        with open(path, "r", encoding="utf-8") as fh:
            contents = fh.read()
        self.assertIn(svg, contents)
        self.assertIn(legend, contents)
        self.assertIn("2 × 2 cells", contents)


class RenderResultTestCase(unittest.TestCase):
    def test_one_group_per_piece_and_one_swatch_per_shape(self) -> None:
        domino = Variant(((0, 0), (0, 1)))
        placed = [Placed(0, 0, 0, domino), Placed(0, 1, 0, domino)]

        svg, legend = render_result(placed, 2, 2)

        self.assertTrue(svg.startswith("<svg"))
        self.assertEqual(svg.count('class="piece"'), 2)
        self.assertEqual(svg.count('data-shape="0"'), 2)
        self.assertEqual(legend.count("<li>"), 1)

    def test_colours_are_stable_per_shape(self) -> None:
        v = Variant(((0, 0),))
        first, _ = render_result([Placed(5, 0, 0, v)], 1, 1)
        second, _ = render_result([Placed(5, 0, 0, v)], 1, 1)
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
