# app.py: puzzle submission, progress polling and result downloads
from __future__ import annotations
import os
import time
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request, send_from_directory, jsonify, url_for

from config import CFG, ENGINES
from io_files import output_path, write_coords, write_layout_view_html
from models import UnknownShapeError
from puzzle_input import PuzzleFormatError, parse_puzzle
from render import render_result
from solver.orchestrator import solve_puzzle

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    format_elapsed,
    start_timer as progress_start,
    set_status, set_elapsed, set_done, set_result_url,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _download(configured: str, fallback: str):
    path = output_path(BASE_DIR, configured, fallback)
    return send_from_directory(os.path.dirname(path), os.path.basename(path), as_attachment=True)


def _empty_result() -> Dict[str, Any]:
    return {
        "ok": False,
        "reason": "",
        "regions": 0,
        "solvable": 0,
        "unknown": 0,
        "elapsed_str": "0s",
        "results": [],
        "rendered_region": None,
        "svg": "",
        "coords_filename": "",
        "layout_filename": "",
    }


LAST_RESULT: Dict[str, Any] = _empty_result()

app = Flask(__name__, static_folder=None)


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _puzzle_from_request() -> Tuple[str, Optional[str]]:
    """Pull (puzzle_text, engine) from a JSON body, a form post or a raw text body."""
    text: Optional[str] = None
    engine: Optional[str] = None

    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        text = payload.get("puzzle")
        engine = payload.get("engine")

    if text is None:
        text = request.form.get("puzzle")
    if engine is None:
        engine = request.form.get("engine") or request.args.get("engine")
    if text is None and payload is None:
        text = request.get_data(as_text=True)

    engine = (engine or "").strip().lower() or None
    return str(text or ""), engine


def _fail(reason: str, t0: float, status_code: int = 400):
    set_status("Error")
    set_done(False, message=reason)
    LAST_RESULT.clear()
    LAST_RESULT.update(_empty_result())
    LAST_RESULT.update({"reason": reason, "elapsed_str": format_elapsed(time.time() - t0)})
    set_result_url(url_for("result_latest"))
    return jsonify(LAST_RESULT), status_code


def _write_outputs(region) -> Dict[str, Any]:
    """Render the chosen region and write its coordinate and HTML files."""
    svg, legend_html = render_result(region.placements, region.request.width, region.request.height)
    coords_path = write_coords(region.placements, region.request.width, region.request.height, BASE_DIR)
    layout_path = write_layout_view_html(
        svg, legend_html, BASE_DIR,
        grid_label=f"{region.request.width} × {region.request.height} cells",
    )
    return {
        "rendered_region": region.index,
        "svg": svg,
        "coords_filename": os.path.basename(coords_path),
        "layout_filename": os.path.basename(layout_path),
    }


@app.route("/")
def index():
    return jsonify({
        "service": "polyomino-packer",
        "engines": list(ENGINES),
        "default_engine": CFG.ENGINE,
        "routes": ["/solve", "/progress", "/result/latest", "/download/coords", "/download/html"],
    })


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()
    set_status("Solving")
    t0 = time.time()

    text, engine = _puzzle_from_request()
    if not text.strip():
        return _fail("Bad puzzle: nothing parsed from request", t0)
    if engine is not None and engine not in ENGINES:
        return _fail(f"Bad engine {engine!r}: expected one of {', '.join(ENGINES)}", t0)

    try:
        puzzle = parse_puzzle(text)
    except PuzzleFormatError as e:
        return _fail(f"Bad puzzle: {e}", t0)
    if not puzzle.requests:
        return _fail("Bad puzzle: no region lines", t0)

    try:
        summary = solve_puzzle(puzzle, engine=engine)
    except UnknownShapeError as e:
        return _fail(f"Bad puzzle: {e}", t0)

    LAST_RESULT.clear()
    LAST_RESULT.update(_empty_result())
    LAST_RESULT.update({
        "ok": True,
        "reason": f"{summary.solvable_count} of {len(summary.results)} regions solvable",
        "regions": len(summary.results),
        "solvable": summary.solvable_count,
        "unknown": summary.unknown_count,
        "results": [r.as_dict() for r in summary.results],
    })

    region = summary.first_solved()
    if region is not None and region.placements:
        LAST_RESULT.update(_write_outputs(region))

    elapsed = time.time() - t0
    LAST_RESULT["elapsed_str"] = format_elapsed(elapsed)
    set_elapsed(elapsed)
    set_result_url(url_for("result_latest"))
    return jsonify(LAST_RESULT)


@app.route("/result/latest")
def result_latest():
    return jsonify(LAST_RESULT)


@app.route("/download/coords")
def download_coords():
    return _download(CFG.COORDS_OUT, "coords.txt")


@app.route("/download/html")
def download_html():
    return _download(CFG.LAYOUT_HTML, "layout_view.html")


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
