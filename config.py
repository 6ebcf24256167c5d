import os

# ======= Tiling =======
# Tiles larger than this on either side are split before searching.
MAX_TILE_SIDE = int(os.getenv("KT_MAX_TILE_SIDE", "10"))

# ======= Warnsdorff search =======
LOOKAHEAD          = int(os.getenv("KT_LOOKAHEAD", "1"))
# Predetermined edges leading into the end point stay closed until fewer than
# this many moves remain.
MOVE_TO_END_WINDOW = int(os.getenv("KT_MOVE_TO_END_WINDOW", "3"))
PARITY_CHECK       = int(os.getenv("KT_PARITY_CHECK", "1")) != 0
# Non-square tiles are also searched transposed, in lock-step slices of this
# many steps; the first orientation to finish wins.
TRANSPOSED_SEARCH  = int(os.getenv("KT_TRANSPOSED_SEARCH", "1")) != 0
SEARCH_SLICE       = int(os.getenv("KT_SEARCH_SLICE", "64"))

# ======= Engine selection =======
# auto | warnsdorff | divide_and_conquer | cp_sat
ENGINE       = os.getenv("KT_ENGINE", "auto").strip().lower()
DEFAULT_SIZE = os.getenv("KT_DEFAULT_SIZE", "8x8")

# ======= CP-SAT exact engine =======
CP_SAT_MAX_SECONDS = float(os.getenv("KT_CP_SAT_MAX_SECONDS", "30"))
CP_SAT_WORKERS     = int(os.getenv("KT_CP_SAT_WORKERS", "1"))
CP_SAT_ISOLATE     = int(os.getenv("KT_CP_SAT_ISOLATE", "1")) != 0
CP_SAT_MAX_SQUARES = int(os.getenv("KT_CP_SAT_MAX_SQUARES", "400"))

# ======= Output names =======
TOUR_OUT    = os.getenv("KT_TOUR_OUT", "tour.txt")
LAYOUT_HTML = os.getenv("KT_LAYOUT_HTML", "tour_view.html")
LOG_DIR     = os.getenv("KT_LOG_DIR", "logs")

# ======= Rendering =======
SVG_CELL_PX = int(os.getenv("KT_SVG_CELL_PX", "10"))

# ======= Board files =======
# Pixels at or above this level are holes in image board files.
IMAGE_THRESHOLD = int(os.getenv("KT_IMAGE_THRESHOLD", "128"))

class CFG:
    MAX_TILE_SIDE = MAX_TILE_SIDE

    LOOKAHEAD          = LOOKAHEAD
    MOVE_TO_END_WINDOW = MOVE_TO_END_WINDOW
    PARITY_CHECK       = PARITY_CHECK
    TRANSPOSED_SEARCH  = TRANSPOSED_SEARCH
    SEARCH_SLICE       = SEARCH_SLICE

    ENGINE       = ENGINE
    DEFAULT_SIZE = DEFAULT_SIZE

    CP_SAT_MAX_SECONDS = CP_SAT_MAX_SECONDS
    CP_SAT_WORKERS     = CP_SAT_WORKERS
    CP_SAT_ISOLATE     = CP_SAT_ISOLATE
    CP_SAT_MAX_SQUARES = CP_SAT_MAX_SQUARES

    TOUR_OUT    = TOUR_OUT
    LAYOUT_HTML = LAYOUT_HTML
    LOG_DIR     = LOG_DIR

    SVG_CELL_PX = SVG_CELL_PX

    IMAGE_THRESHOLD = IMAGE_THRESHOLD

__all__ = ["CFG"]
