# Orchestrator: every region request through the configured engine
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import multiprocessing as mp

from config import CFG, ENGINES
from models import PlacementRequest, Placed, SearchBudgetExceeded
from progress import (
    set_status, set_regions_total, set_region, record_region, set_message,
    set_done, log_region_detail,
)
from puzzle_input import Puzzle
from solver.cp_sat import try_pack_cp_sat
from solver.search import Catalogue, SearchStats, find_tiling
from solver.variants import variant_catalogue

SOLVED = "solved"
INFEASIBLE = "infeasible"
UNKNOWN = "unknown"


# ---------- results ----------

@dataclass
class RegionResult:
    index: int
    request: PlacementRequest
    status: str
    engine: str
    elapsed: float = 0.0
    nodes: int = 0
    placements: List[Placed] = field(default_factory=list)
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SOLVED

    @property
    def label(self) -> str:
        return _region_label(self.index, self.request)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "region": self.request.label,
            "width": self.request.width,
            "height": self.request.height,
            "counts": {str(k): v for k, v in sorted(self.request.counts.items())},
            "status": self.status,
            "engine": self.engine,
            "elapsed": round(self.elapsed, 4),
            "nodes": self.nodes,
            "pieces": len(self.placements),
            "reason": self.reason,
        }


@dataclass
class PuzzleSummary:
    results: List[RegionResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def solvable_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def unknown_count(self) -> int:
        return sum(1 for r in self.results if r.status == UNKNOWN)

    def first_solved(self) -> Optional[RegionResult]:
        # prefer a region that actually has pieces to draw
        solved = [r for r in self.results if r.ok]
        for r in solved:
            if r.placements:
                return r
        return solved[0] if solved else None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "regions": len(self.results),
            "solvable": self.solvable_count,
            "unknown": self.unknown_count,
            "elapsed": round(self.elapsed, 4),
            "results": [r.as_dict() for r in self.results],
        }


# ---------- helpers ----------

def _region_label(index: int, request: PlacementRequest) -> str:
    return f"{request.label} (#{index + 1})"


def _resolve_engine(engine: Optional[str]) -> str:
    name = (engine or CFG.ENGINE or "auto").strip().lower()
    if name not in ENGINES:
        raise ValueError(f"unknown engine {name!r} (expected one of {', '.join(ENGINES)})")
    return name


def solve_region(
    request: PlacementRequest,
    catalogue: Catalogue,
    *,
    engine: Optional[str] = None,
    index: int = 0,
    allow_slack: Optional[bool] = None,
    node_limit: Optional[int] = None,
    time_limit: Optional[float] = None,
) -> RegionResult:
    """Decide one region.

    ``auto`` runs the backtracking engine under the node/time budget and hands
    the region to CP-SAT only when that budget runs out.  A budget exhausted by
    the last engine tried gives status ``unknown``.
    """
    engine = _resolve_engine(engine)
    if allow_slack is None:
        allow_slack = CFG.ALLOW_SLACK
    if node_limit is None:
        node_limit = CFG.NODE_LIMIT
    if time_limit is None:
        time_limit = CFG.TIME_LIMIT

    t0 = time.monotonic()
    stats = SearchStats()
    notes: List[str] = []

    if engine in ("backtracking", "auto"):
        try:
            placed = find_tiling(
                request.width, request.height, request.counts, catalogue,
                node_limit=node_limit, time_limit=time_limit,
                allow_slack=allow_slack, stats=stats,
            )
        except SearchBudgetExceeded as exc:
            notes.append(f"Backtracking stopped: {exc}")
            if engine == "backtracking":
                return RegionResult(
                    index, request, UNKNOWN, "backtracking",
                    time.monotonic() - t0, exc.nodes, [], notes[-1],
                )
        else:
            if placed is not None:
                status, reason = SOLVED, "Solved"
            else:
                status, reason = INFEASIBLE, "No tiling exists"
            return RegionResult(
                index, request, status, "backtracking",
                time.monotonic() - t0, stats.nodes, placed or [], reason,
            )

    try:
        ok, placed, reason = try_pack_cp_sat(
            request.width, request.height, request.counts, catalogue,
            max_seconds=CFG.CP_SAT_SECONDS, allow_slack=allow_slack,
        )
    except SearchBudgetExceeded as exc:
        notes.append(str(exc))
        return RegionResult(
            index, request, UNKNOWN, "cp_sat",
            time.monotonic() - t0, stats.nodes, [], "; ".join(notes),
        )
    notes.append(reason)
    return RegionResult(
        index, request, SOLVED if ok else INFEASIBLE, "cp_sat",
        time.monotonic() - t0, stats.nodes, placed, "; ".join(notes),
    )


# Worker must be top-level (picklable under spawn)
def _solve_region_worker(job: Tuple) -> RegionResult:
    index, request, catalogue, engine, allow_slack, node_limit, time_limit = job
    return solve_region(
        request, catalogue,
        engine=engine, index=index, allow_slack=allow_slack,
        node_limit=node_limit, time_limit=time_limit,
    )


def _publish(result: RegionResult) -> None:
    set_region(result.label)
    log_region_detail(
        "Region result",
        region=result.label,
        status=result.status,
        engine=result.engine,
        nodes=result.nodes,
        elapsed=f"{result.elapsed:.3f}s",
        reason=result.reason,
    )
    record_region(result.status, solvable=result.ok, unknown=result.status == UNKNOWN)


# ---------- public entrypoint ----------

def solve_puzzle(
    puzzle: Puzzle,
    *,
    engine: Optional[str] = None,
    workers: Optional[int] = None,
    allow_slack: Optional[bool] = None,
) -> PuzzleSummary:
    """Solve every region of ``puzzle`` and count the solvable ones."""
    t0 = time.monotonic()
    engine = _resolve_engine(engine)
    workers = max(1, int(workers if workers is not None else CFG.WORKERS))
    if allow_slack is None:
        allow_slack = CFG.ALLOW_SLACK

    catalogue = variant_catalogue(puzzle.shapes)
    requests = list(puzzle.requests)

    log_region_detail(
        "Run setup",
        shapes=len(catalogue),
        variants=sum(len(v) for v in catalogue.values()),
        regions=len(requests),
        engine=engine,
        workers=workers,
        PP_NODE_LIMIT=CFG.NODE_LIMIT,
        PP_TIME_LIMIT=CFG.TIME_LIMIT,
        PP_ALLOW_SLACK=1 if allow_slack else 0,
    )
    set_status("Solving")
    set_regions_total(len(requests))

    jobs = [
        (i, req, catalogue, engine, allow_slack, CFG.NODE_LIMIT, CFG.TIME_LIMIT)
        for i, req in enumerate(requests)
    ]
    results: List[RegionResult] = []
    try:
        if workers > 1 and len(jobs) > 1:
            ctx = mp.get_context("spawn")
            with ctx.Pool(processes=min(workers, len(jobs))) as pool:
                for result in pool.imap(_solve_region_worker, jobs):
                    _publish(result)
                    results.append(result)
        else:
            for job in jobs:
                set_region(_region_label(job[0], job[1]))
                result = _solve_region_worker(job)
                _publish(result)
                results.append(result)
    except Exception as exc:
        set_done(False, message=f"{type(exc).__name__}: {exc}")
        raise

    summary = PuzzleSummary(results, time.monotonic() - t0)
    message = f"{summary.solvable_count} of {len(results)} regions solvable"
    if summary.unknown_count:
        message += f", {summary.unknown_count} undecided"
    set_message(message)
    set_done(True)
    return summary


__all__ = [
    "SOLVED", "INFEASIBLE", "UNKNOWN",
    "RegionResult", "PuzzleSummary",
    "solve_region", "solve_puzzle",
]
