
import random
from typing import Dict, List, Tuple
from models import Placed

def _color(shape_id: int) -> str:
    rng = random.Random(int(shape_id) * 7919 + 17)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"

def render_result(placed: List[Placed], W: int, H: int, scale: int = 32) -> Tuple[str, str]:
    palette: Dict[int, str] = {}
    for p in placed:
        palette.setdefault(p.shape_id, _color(p.shape_id))

    svg_w = W * scale + 2
    svg_h = H * scale + 2

    pieces = []
    for n, p in enumerate(placed):
        cells = "".join(
            f'<rect x="{c * scale + 1}" y="{r * scale + 1}" width="{scale}" height="{scale}"/>'
            for r, c in p.cells()
        )
        x = p.col * scale + 4
        y = p.row * scale + 14
        pieces.append(
            f'<g class="piece" data-shape="{p.shape_id}" fill="{palette[p.shape_id]}" stroke="black" stroke-width="1">{cells}</g>'
            f'<text x="{x}" y="{y}" font-size="11" fill="black">{p.shape_id}.{n}</text>'
        )
    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{frame}{"".join(pieces)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>shape {n}</li>"
        for n, c in sorted(palette.items())
    )
    return svg, legend
