"""Influence map: tick-driven injection, propagation and momentum smoothing over a tile grid."""

from influence.grid import InfluenceGrid
from influence.diffusion import Decay, Propagation, gaussian_kernel, normalize_kernel
from influence.errors import InfluenceError, InvalidParameters, UninitializedGrid, UnknownCell
from influence.keys import keys_for_rect, pack_key, unpack_key
from influence.constants import KEY_STRIDE, MAX_GRID_SIZE

__all__ = [
    "InfluenceGrid", "Propagation", "Decay", "gaussian_kernel", "normalize_kernel",
    "InfluenceError", "InvalidParameters", "UninitializedGrid", "UnknownCell",
    "pack_key", "unpack_key", "keys_for_rect", "KEY_STRIDE", "MAX_GRID_SIZE",
]
