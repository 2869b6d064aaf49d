"""Grid and parameter constants. Keys pack (x, y) as y * KEY_STRIDE + x."""

KEY_STRIDE = 1 << 16
MAX_GRID_SIZE = KEY_STRIDE

# Offsets (dx, dy) in kernel index order, row-major: NW, N, NE, W, C, E, SW, S, SE.
KERNEL_OFFSETS = [
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (0, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
]
# N, S, E, W; no diagonals for dominance propagation.
ORTHOGONAL_OFFSETS = [(0, -1), (0, 1), (1, 0), (-1, 0)]

DEFAULT_MOMENTUM = 0.5
DEFAULT_DECAY_STRENGTH = 0.0
DEFAULT_COOLDOWN = 1
DEFAULT_MAX_INFLUENCE = 1.0
DEFAULT_SIGMA = 1.0
