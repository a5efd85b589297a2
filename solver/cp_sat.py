from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import Cell, Placed, SearchBudgetExceeded
from solver.search import Catalogue, area_admits, demand_areas, required_area
from solver.variants import ordered_variants

# ---------------- helpers ----------------

Option = Tuple[int, int, int, object]  # (shape_id, row, col, variant)


def build_options(width: int, height: int, shape_ids, variants: Catalogue) -> List[Option]:
    """Every in-bounds (shape, variant, top-left) placement on the board."""
    options: List[Option] = []
    for shape_id in shape_ids:
        for v in ordered_variants(variants[shape_id]):
            for row in range(height - v.height + 1):
                for col in range(width - v.width + 1):
                    options.append((shape_id, row, col, v))
    return options


def try_pack_cp_sat(
    width: int,
    height: int,
    demand: Mapping[int, int],
    variants: Catalogue,
    *,
    max_seconds: Optional[float] = None,
    allow_slack: bool = False,
) -> Tuple[bool, List[Placed], str]:
    """Exact-cover model solved by CP-SAT.

    One boolean per placement option; each shape uses exactly its demanded
    number of options and each cell is covered exactly once (at most once when
    ``allow_slack``).  Returns ``(ok, placements, reason)``; raises
    ``SearchBudgetExceeded`` when the solver stops without a proof either way.
    """
    width = int(width)
    height = int(height)
    if width < 0 or height < 0:
        raise ValueError(f"bad board size {width}x{height}")

    areas = demand_areas(demand, variants)
    total_area = required_area(demand, areas)
    if not area_admits(total_area, width * height, allow_slack):
        return False, [], f"Area mismatch: pieces {total_area} vs board {width * height}"
    if not areas:
        return True, [], "Nothing to place"

    options = build_options(width, height, sorted(areas), variants)

    m = _cp.CpModel()
    p = [m.NewBoolVar(f"p_{k}") for k in range(len(options))]

    by_shape: Dict[int, List[int]] = defaultdict(list)
    cell_to_vars: Dict[Cell, List[int]] = defaultdict(list)
    for k, (shape_id, row, col, v) in enumerate(options):
        by_shape[shape_id].append(k)
        for r, c in v.cells:
            cell_to_vars[(row + r, col + c)].append(k)

    for shape_id in areas:
        idxs = by_shape.get(shape_id, [])
        if not idxs:
            return False, [], f"Shape {shape_id} does not fit the board"
        m.Add(sum(p[k] for k in idxs) == int(demand[shape_id]))

    for row in range(height):
        for col in range(width):
            vars_here = [p[k] for k in cell_to_vars.get((row, col), [])]
            if allow_slack:
                if vars_here:
                    m.AddAtMostOne(vars_here)
            else:
                if not vars_here:
                    return False, [], f"Cell ({row},{col}) cannot be covered"
                m.AddExactlyOne(vars_here)

    seconds = float(max_seconds if max_seconds is not None else CFG.CP_SAT_SECONDS)

    solver = _cp.CpSolver()
    if seconds > 0:
        solver.parameters.max_time_in_seconds = seconds
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_search_workers = max(1, int(getattr(CFG, "CP_SAT_WORKERS", 1)))
    solver.parameters.log_search_progress = False

    status = solver.Solve(m)

    if status in (_cp.OPTIMAL, _cp.FEASIBLE):
        placed = [
            Placed(shape_id, row, col, v)
            for k, (shape_id, row, col, v) in enumerate(options)
            if solver.BooleanValue(p[k])
        ]
        return True, placed, "Solved"
    if status == _cp.INFEASIBLE:
        return False, [], "Proven infeasible"
    raise SearchBudgetExceeded(
        f"CP-SAT stopped with status {solver.StatusName(status)}",
        elapsed=solver.WallTime(),
    )


__all__ = ["build_options", "try_pack_cp_sat"]
