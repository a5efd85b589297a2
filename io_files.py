"""Writers for the per-region output artifacts (coordinates and HTML preview)."""

from __future__ import annotations

import os
from typing import Iterable, Optional

from config import CFG
from models import Placed

_PAGE = """<!doctype html>
<html><head><meta charset='utf-8'><title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 2em; }}
.swatch {{ display: inline-block; width: 1em; height: 1em; margin-right: .4em; vertical-align: middle; }}
ul.legend {{ list-style: none; padding: 0; }}
</style></head>
<body>
<h1>{title}</h1>
<div class='board'>{svg}</div>
<h3>Legend</h3>
<ul class='legend'>{legend}</ul>
</body></html>
"""


def output_path(base_dir: str, configured: Optional[str], fallback: str) -> str:
    """Absolute ``configured`` is used as is; a relative one lands under ``base_dir``."""
    name = (configured or "").strip() or fallback
    path = name if os.path.isabs(name) else os.path.join(base_dir, name)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return path


def coord_lines(placed: Iterable[Placed], Wc: int, Hc: int) -> Iterable[str]:
    yield f"region {Wc}x{Hc}"
    any_piece = False
    for p in placed:
        any_piece = True
        cells = " ".join(f"{r},{c}" for r, c in p.cells())
        yield f"shape {p.shape_id} @ ({p.row},{p.col}) cells [{cells}]"
    if not any_piece:
        yield "No solution"


def write_coords(placed: Iterable[Placed], Wc: int, Hc: int, base_dir: str) -> str:
    """One line per placed piece: shape id, board offset and covered cells."""
    path = output_path(base_dir, CFG.COORDS_OUT, "coords.txt")
    with open(path, "w", encoding="utf-8") as fh:
        fh.writelines(line + "\n" for line in coord_lines(placed, Wc, Hc))
    return path


def write_layout_view_html(
    svg: str,
    legend_html: str,
    base_dir: str,
    grid_label: Optional[str] = None,
) -> str:
    path = output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    title = f"Layout View: {grid_label}" if grid_label else "Layout View"
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(_PAGE.format(title=title, svg=svg, legend=legend_html))
    return path


__all__ = ["coord_lines", "output_path", "write_coords", "write_layout_view_html"]
