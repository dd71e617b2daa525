"""
Built-in defaults for stl_analysis.

Values here can be overridden per project through `.stl-analysis.json`
(see project_config.py).
"""

# ---------------------------------------------------------------------------
# Binary STL layout
# ---------------------------------------------------------------------------

HEADER_SIZE = 80       # bytes, ignored on read, zero-filled on write
COUNT_SIZE = 4         # little-endian uint32 triangle count
RECORD_SIZE = 50       # normal (12) + 3 vertices (36) + attribute (2)

# ---------------------------------------------------------------------------
# Welding
# ---------------------------------------------------------------------------

# float32 has a 23-bit mantissa; anything below 1/2**16 of the largest
# extent is treated as noise.
TOLERANCE_DIVISOR = 65536.0

# Probe window edge, in cells. 2 probes x-1..x (legacy), 3 probes x-1..x+1.
DEFAULT_NEIGHBORHOOD = 2
NEIGHBORHOODS = (2, 3)

# "coincident": drop triangles with two corners within tolerance.
# "collinear": additionally drop triangles whose height is below tolerance.
DEFAULT_DEGENERACY = "coincident"
DEGENERACY_MODES = ("coincident", "collinear")

# ---------------------------------------------------------------------------
# Analysis scheduling
# ---------------------------------------------------------------------------

# "best_effort": the body count reads the mesh once and reports 0 if it is
# not built yet. "await": the body count blocks until the mesh is built.
DEFAULT_BODY_COUNT_POLICY = "best_effort"
BODY_COUNT_POLICIES = ("best_effort", "await")

# Worker threads shared by all analysis requests (None = executor default).
DEFAULT_MAX_WORKERS = None

THREAD_NAME_PREFIX = "stl-analysis"
