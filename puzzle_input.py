# puzzle_input.py: shape diagrams and region requests from the flat text format
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from config import CFG
from models import Cell, PlacementRequest, Shape

_HEADER_RE = re.compile(r"^(?P<id>\d+)\s*:$")
_REGION_RE = re.compile(r"^(?P<w>\d+)\s*[xX]\s*(?P<h>\d+)\s*:(?P<counts>.*)$")


class PuzzleFormatError(ValueError):
    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


@dataclass
class Puzzle:
    shapes: Dict[int, Shape] = field(default_factory=dict)
    requests: List[PlacementRequest] = field(default_factory=list)


def _to_count(tok: str, line_no: int) -> int:
    try:
        n = int(tok)
    except ValueError:
        raise PuzzleFormatError(f"count {tok!r} is not an integer", line_no) from None
    if n < 0:
        raise PuzzleFormatError(f"count {n} is negative", line_no)
    return n


def _rows_to_cells(rows: List[str], mark: str) -> List[Cell]:
    return [
        (r, c)
        for r, line in enumerate(rows)
        for c, ch in enumerate(line)
        if ch == mark
    ]


def parse_region(line: str, line_no: int = 0) -> Optional[PlacementRequest]:
    """Parse ``"12x5: 1 0 1 0 2 2"``; return None when the line is not a region line."""
    m = _REGION_RE.match(line.strip())
    if not m:
        return None
    counts = {
        shape_id: _to_count(tok, line_no)
        for shape_id, tok in enumerate(m.group("counts").split())
    }
    return PlacementRequest(int(m.group("w")), int(m.group("h")), counts)


def parse_puzzle(text: str, *, mark: Optional[str] = None) -> Puzzle:
    """
    Parse the whole puzzle text into shapes and region requests.

    Shape blocks are a ``"<id>:"`` header followed by diagram rows, ended by a
    blank line, another header or a region line.
    """
    mark = mark or CFG.FILLED_MARK
    puzzle = Puzzle()

    current: Optional[Tuple[int, int]] = None  # (shape_id, header line)
    rows: List[str] = []

    def _flush() -> None:
        nonlocal current, rows
        if current is not None:
            shape_id, header_line = current
            cells = _rows_to_cells(rows, mark)
            if not cells:
                raise PuzzleFormatError(f"shape {shape_id} has no filled cells", header_line)
            puzzle.shapes[shape_id] = Shape.from_cells(shape_id, cells)
        current = None
        rows = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            _flush()
            continue

        request = parse_region(line, line_no)
        if request is not None:
            _flush()
            puzzle.requests.append(request)
            continue

        header = _HEADER_RE.match(line)
        if header:
            _flush()
            shape_id = int(header.group("id"))
            if shape_id in puzzle.shapes:
                raise PuzzleFormatError(f"duplicate shape id {shape_id}", line_no)
            current = (shape_id, line_no)
            continue

        if current is None:
            raise PuzzleFormatError(f"unexpected text {line!r}", line_no)
        rows.append(line)

    _flush()
    return puzzle


def read_puzzle(path: Union[str, Path], *, mark: Optional[str] = None) -> Puzzle:
    return parse_puzzle(Path(path).read_text(encoding="utf-8"), mark=mark)


__all__ = ["Puzzle", "PuzzleFormatError", "parse_puzzle", "parse_region", "read_puzzle"]
