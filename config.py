# config.py
import os

# ======= Engine selection =======
# backtracking | cp_sat | auto (backtracking, then CP-SAT once the budget runs out)
ENGINE = os.getenv("PP_ENGINE", "auto").strip().lower()

# ======= Search budgets (per region) =======
# 0 disables the corresponding limit.
NODE_LIMIT = int(os.getenv("PP_NODE_LIMIT", "5000000"))
TIME_LIMIT = float(os.getenv("PP_TIME_LIMIT", "60"))

# ======= CP-SAT knobs =======
CP_SAT_SECONDS = float(os.getenv("PP_CP_SAT_SECONDS", "60"))
CP_SAT_WORKERS = int(os.getenv("PP_CP_SAT_WORKERS", "1"))
MAX_MEMORY_MB  = int(os.getenv("PP_MAX_MEMORY_MB", "2048"))

# ======= Region fan-out =======
WORKERS = int(os.getenv("PP_WORKERS", "1"))

# ======= Area rule =======
# Off: the region must be covered exactly.  On: every piece must fit, but cells
# may stay empty (only an area overflow is rejected up front).
ALLOW_SLACK = int(os.getenv("PP_ALLOW_SLACK", "0")) != 0

# ======= Puzzle input =======
FILLED_MARK = os.getenv("PP_FILLED_MARK", "#")
INPUT_FILE  = os.getenv("PP_INPUT_FILE", "input.txt")

# ======= Output names =======
COORDS_OUT  = os.getenv("PP_COORDS_OUT", "coords.txt")
LAYOUT_HTML = os.getenv("PP_LAYOUT_HTML", "layout_view.html")


class CFG:
    ENGINE = ENGINE

    NODE_LIMIT = NODE_LIMIT
    TIME_LIMIT = TIME_LIMIT

    CP_SAT_SECONDS = CP_SAT_SECONDS
    CP_SAT_WORKERS = CP_SAT_WORKERS
    MAX_MEMORY_MB  = MAX_MEMORY_MB

    WORKERS = WORKERS

    ALLOW_SLACK = ALLOW_SLACK

    FILLED_MARK = FILLED_MARK
    INPUT_FILE  = INPUT_FILE

    COORDS_OUT  = COORDS_OUT
    LAYOUT_HTML = LAYOUT_HTML


ENGINES = ("backtracking", "cp_sat", "auto")

__all__ = ["CFG", "ENGINES"]
