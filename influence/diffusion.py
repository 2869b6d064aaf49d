"""
Per-tick propagation: injection, then kernel convolution or decayed max-dominance.
Arrays are dense (width, height), indexed [x, y]; `mask` marks registered cells.
Boundary is a hard edge: zero-pad, no wraparound, no per-cell renormalization.
"""

import enum
import math

import numpy as np

from influence.constants import DEFAULT_SIGMA, KERNEL_OFFSETS, ORTHOGONAL_OFFSETS
from influence.errors import InvalidParameters


class Propagation(enum.Enum):
    KERNEL = "kernel"
    DECAYED_DOMINANCE = "decayed_dominance"


class Decay(enum.Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


def decay_factor(model: Decay, strength: float) -> float:
    """Multiplier applied to a propagated value: e^-s (exponential) or s (linear)."""
    if model is Decay.EXPONENTIAL:
        return math.exp(-strength)
    return strength


def normalize_kernel(weights) -> np.ndarray:
    """3×3 float64 copy scaled to sum 1. Rejects wrong shape, non-finite entries, sum <= 0."""
    try:
        k = np.array(weights, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidParameters(f"kernel is not numeric: {e}") from e
    if k.size == 9 and k.ndim == 1:
        k = k.reshape(3, 3)
    if k.shape != (3, 3):
        raise InvalidParameters(f"kernel must be 3x3, got shape {k.shape}")
    if not np.all(np.isfinite(k)):
        raise InvalidParameters("kernel has non-finite weights")
    total = float(np.sum(k))
    if not total > 0.0:
        raise InvalidParameters(f"kernel weights must sum to a positive value, got {total}")
    return k / total


def gaussian_kernel(sigma: float = DEFAULT_SIGMA) -> np.ndarray:
    """Normalized 3×3 Gaussian: weight exp(-(dx²+dy²) / 2σ²) per offset."""
    if not sigma > 0.0:
        raise InvalidParameters(f"sigma must be > 0, got {sigma}")
    d = np.array([-1.0, 0.0, 1.0])
    dy, dx = np.meshgrid(d, d, indexing="ij")
    return normalize_kernel(np.exp(-(dx * dx + dy * dy) / (2.0 * sigma * sigma)))


def _shifted(arr: np.ndarray, dx: int, dy: int, fill: float = 0.0) -> np.ndarray:
    """out[x, y] = arr[x + dx, y + dy]; out-of-bounds reads give `fill`."""
    nx, ny = arr.shape
    pad = np.full((nx + 2, ny + 2), fill, dtype=arr.dtype)
    pad[1:-1, 1:-1] = arr
    return pad[1 + dx : 1 + dx + nx, 1 + dy : 1 + dy + ny]


def inject(current: np.ndarray, base: np.ndarray) -> np.ndarray:
    """Max-magnitude rule: base replaces current only where strictly stronger."""
    return np.where(np.abs(current) < np.abs(base), base, current)


def convolve_kernel(pending: np.ndarray, mask: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Weighted sum over the 3×3 neighbourhood. Unregistered and off-grid neighbours add nothing."""
    src = np.where(mask, pending, 0.0)
    out = np.zeros_like(src)
    flat = kernel.reshape(-1)
    for idx, (dx, dy) in enumerate(KERNEL_OFFSETS):
        if flat[idx] == 0.0:
            continue
        out += flat[idx] * _shifted(src, dx, dy)
    return np.where(mask, out, 0.0)


def decayed_dominance(pending: np.ndarray, mask: np.ndarray, factor: float) -> np.ndarray:
    """
    Decay each orthogonal neighbour, then keep max or min, whichever has larger
    magnitude (ties go to max). Cells with no registered neighbour get 0.
    """
    decayed = np.where(mask, pending * factor, 0.0)
    hi = np.full(pending.shape, -np.inf)
    lo = np.full(pending.shape, np.inf)
    seen = np.zeros(pending.shape, dtype=bool)
    for dx, dy in ORTHOGONAL_OFFSETS:
        present = _shifted(mask, dx, dy, fill=False)
        vals = _shifted(decayed, dx, dy)
        hi = np.where(present, np.maximum(hi, vals), hi)
        lo = np.where(present, np.minimum(lo, vals), lo)
        seen |= present
    hi = np.where(seen, hi, 0.0)
    lo = np.where(seen, lo, 0.0)
    out = np.where(np.abs(lo) > np.abs(hi), lo, hi)
    return np.where(mask, out, 0.0)


def smooth(previous: np.ndarray, provisional: np.ndarray, momentum: float) -> np.ndarray:
    """Lerp from the pre-tick value toward the propagated one."""
    return previous * momentum + provisional * (1.0 - momentum)


def propagate(
    pending: np.ndarray,
    mask: np.ndarray,
    mode: Propagation,
    kernel: np.ndarray | None,
    decay: Decay,
    decay_strength: float,
) -> np.ndarray:
    """Provisional field from the post-injection buffer, for the selected strategy."""
    factor = decay_factor(decay, decay_strength)
    if mode is Propagation.KERNEL:
        return convolve_kernel(pending, mask, kernel) * factor
    return decayed_dominance(pending, mask, factor)
