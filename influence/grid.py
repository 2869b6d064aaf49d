"""
Influence grid: registered cells on a width × height rectangle, one scalar each.
Ticks are throttled by a cooldown; an executed tick injects, propagates, smooths.
"""

import numbers
from typing import Any, Callable, Iterable

import numpy as np

from influence.constants import (
    DEFAULT_COOLDOWN,
    DEFAULT_DECAY_STRENGTH,
    DEFAULT_MAX_INFLUENCE,
    DEFAULT_MOMENTUM,
    MAX_GRID_SIZE,
)
from influence.diffusion import Decay, Propagation, gaussian_kernel, inject, normalize_kernel, propagate, smooth
from influence.errors import InvalidParameters, UninitializedGrid, UnknownCell
from influence.keys import pack_key, unpack_key

BaseInfluence = Callable[[int, Any], float]


def _real(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameters(f"{name} must be a number, got {value!r}")
    return float(value)


class InfluenceGrid:
    """
    Values live in dense (width, height) arrays indexed [x, y]; `_mask` marks the
    registered cells. Unregistered cells stay 0 and are never read or reported.
    A second init() is a full reset.
    """

    __slots__ = (
        "base_influence", "momentum", "decay", "decay_strength", "propagation",
        "kernel", "cooldown", "max_influence",
        "_shape", "_mask", "_index", "_values", "_pending",
        "cooldown_remaining", "tick_count",
    )

    def __init__(
        self,
        base_influence: BaseInfluence,
        momentum: float = DEFAULT_MOMENTUM,
        propagation: Propagation | str = Propagation.KERNEL,
        kernel: Iterable | None = None,
        decay: Decay | str = Decay.EXPONENTIAL,
        decay_strength: float = DEFAULT_DECAY_STRENGTH,
        cooldown: int = DEFAULT_COOLDOWN,
        max_influence: float = DEFAULT_MAX_INFLUENCE,
    ) -> None:
        if not callable(base_influence):
            raise InvalidParameters("base_influence must be callable")
        try:
            propagation = Propagation(propagation)
            decay = Decay(decay)
        except ValueError as e:
            raise InvalidParameters(str(e)) from e
        momentum = _real("momentum", momentum)
        decay_strength = _real("decay_strength", decay_strength)
        max_influence = _real("max_influence", max_influence)
        if not 0.0 < momentum <= 1.0:
            raise InvalidParameters(f"momentum must be in (0, 1], got {momentum}")
        if not 0.0 <= decay_strength <= 1.0:
            raise InvalidParameters(f"decay_strength must be in [0, 1], got {decay_strength}")
        if isinstance(cooldown, bool) or not isinstance(cooldown, int) or cooldown < 1:
            raise InvalidParameters(f"cooldown must be an integer >= 1, got {cooldown!r}")
        if not max_influence > 0.0:
            raise InvalidParameters(f"max_influence must be > 0, got {max_influence}")

        self.base_influence = base_influence
        self.momentum = momentum
        self.propagation = propagation
        self.decay = decay
        self.decay_strength = decay_strength
        self.cooldown = cooldown
        self.max_influence = max_influence
        if kernel is not None:
            kernel = normalize_kernel(kernel)
        if propagation is Propagation.KERNEL:
            self.kernel = gaussian_kernel() if kernel is None else kernel
        else:
            self.kernel = None

        self._shape: tuple[int, int] | None = None
        self._mask: np.ndarray | None = None
        self._index: dict[int, tuple[int, int]] = {}
        self._values: np.ndarray | None = None
        self._pending: np.ndarray | None = None
        self.cooldown_remaining = cooldown
        self.tick_count = 0

    # --- lifecycle ---

    def init(self, valid_cells: Iterable[int], width: int, height: int) -> None:
        """Register cells and zero all state. Calling again replaces everything."""
        if not (0 < width <= MAX_GRID_SIZE and 0 < height <= MAX_GRID_SIZE):
            raise InvalidParameters(
                f"grid extents must be in 1..{MAX_GRID_SIZE}, got {width}x{height}"
            )
        index: dict[int, tuple[int, int]] = {}
        mask = np.zeros((width, height), dtype=bool)
        for key in valid_cells:
            if isinstance(key, bool) or not isinstance(key, numbers.Integral):
                raise InvalidParameters(f"cell key must be an integer, got {key!r}")
            key = int(key)
            try:
                x, y = unpack_key(key)
            except ValueError as e:
                raise InvalidParameters(str(e)) from e
            if x >= width or y >= height:
                raise InvalidParameters(f"cell key {key} -> ({x}, {y}) outside {width}x{height} grid")
            index[key] = (x, y)
            mask[x, y] = True

        self._shape = (width, height)
        self._mask = mask
        self._index = index
        self._values = np.zeros((width, height), dtype=np.float64)
        self._pending = np.zeros((width, height), dtype=np.float64)
        self.cooldown_remaining = self.cooldown
        self.tick_count = 0

    @property
    def initialized(self) -> bool:
        return self._shape is not None

    def _require_init(self) -> None:
        if self._shape is None:
            raise UninitializedGrid("InfluenceGrid.init() has not been called")

    # --- tick ---

    def update(self, snapshot: Any) -> bool:
        """Advance the cooldown; on expiry run one tick. Returns True if a tick ran."""
        self._require_init()
        self.cooldown_remaining -= 1
        if self.cooldown_remaining > 0:
            return False

        # Cooldown stays expired if the callback raises, so the next call retries.
        base = np.zeros(self._shape, dtype=np.float64)
        for key, (x, y) in self._index.items():
            base[x, y] = float(self.base_influence(key, snapshot))
        self.cooldown_remaining = self.cooldown

        previous = self._values
        self._pending[:] = inject(previous, base)
        provisional = propagate(
            self._pending, self._mask, self.propagation, self.kernel, self.decay, self.decay_strength
        )
        result = smooth(previous, provisional, self.momentum)
        np.clip(result, -self.max_influence, self.max_influence, out=result)
        self._values = np.where(self._mask, result, 0.0)
        self.tick_count += 1
        return True

    # --- queries ---

    def get_influence(self, key: int) -> float:
        self._require_init()
        try:
            x, y = self._index[key]
        except (KeyError, TypeError):
            raise UnknownCell(key) from None
        return float(self._values[x, y])

    def get_influence_at(self, x: int, y: int) -> float:
        try:
            key = pack_key(x, y)
        except ValueError:
            self._require_init()
            raise UnknownCell((x, y)) from None
        return self.get_influence(key)

    @property
    def dimensions(self) -> tuple[int, int]:
        self._require_init()
        return self._shape

    @property
    def cells(self) -> frozenset[int]:
        self._require_init()
        return frozenset(self._index)

    @property
    def values(self) -> dict[int, float]:
        self._require_init()
        return {key: float(self._values[x, y]) for key, (x, y) in self._index.items()}

    def as_array(self) -> np.ndarray:
        """Dense (width, height) copy; unregistered cells are 0."""
        self._require_init()
        return self._values.copy()

    # --- persistence helpers (used by config) ---

    def export_state(self) -> dict:
        self._require_init()
        return {
            "values": self._values.copy(),
            "mask": self._mask.copy(),
            "cooldown_remaining": self.cooldown_remaining,
            "tick_count": self.tick_count,
        }

    def restore_state(self, state: dict) -> None:
        """Load values saved by export_state. Grid must already be init'd with the same cells."""
        self._require_init()
        values = np.asarray(state["values"], dtype=np.float64)
        mask = np.asarray(state["mask"], dtype=bool)
        if values.shape != self._shape or mask.shape != self._shape:
            raise InvalidParameters(f"state shape {values.shape} does not match grid {self._shape}")
        if not np.array_equal(mask, self._mask):
            raise InvalidParameters("state was saved for a different cell set")
        remaining = int(state.get("cooldown_remaining", self.cooldown))
        if not 1 <= remaining <= self.cooldown:
            remaining = self.cooldown
        clipped = np.clip(values, -self.max_influence, self.max_influence)
        self._values = np.where(self._mask, clipped, 0.0)
        self._pending[:] = 0.0
        self.cooldown_remaining = remaining
        self.tick_count = int(state.get("tick_count", 0))
