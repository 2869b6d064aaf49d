"""
Replay driver: headless host loop around an InfluenceGrid. Advances one turn per
snapshot; the grid's cooldown decides which turns actually tick. Config and
logging are wired here; the influence package itself stays silent.
"""

from typing import Any, Iterable, Sequence

import numpy as np
import structlog

from influence import InfluenceGrid, keys_for_rect
from influence.grid import BaseInfluence
import config

logger = structlog.get_logger()


class ReplayDriver:
    """Steps a grid through recorded snapshots. frames[t] is the field after turn t."""

    def __init__(
        self,
        grid: InfluenceGrid,
        snapshots: Sequence[Any],
        width: int,
        height: int,
        cells: Iterable[int] | None = None,
    ) -> None:
        self.grid = grid
        self.snapshots = snapshots
        self.width = width
        self.height = height
        self.cells = list(cells) if cells is not None else keys_for_rect(width, height)
        self.turn = 0
        self.frames: list[np.ndarray] = []
        self.grid.init(self.cells, width, height)

    @classmethod
    def from_config(
        cls,
        cfg: dict,
        base_influence: BaseInfluence,
        snapshots: Sequence[Any],
        cells: Iterable[int] | None = None,
    ) -> "ReplayDriver":
        grid = config.grid_from_config(cfg, base_influence)
        world = cfg.get("world", {})
        return cls(grid, snapshots, world.get("width", 32), world.get("height", 32), cells)

    @property
    def done(self) -> bool:
        return self.turn >= len(self.snapshots)

    def step(self) -> bool:
        """Feed the next snapshot to the grid. Returns True if a tick executed."""
        if self.done:
            raise IndexError(f"replay exhausted after {len(self.snapshots)} turns")
        ticked = self.grid.update(self.snapshots[self.turn])
        self.frames.append(self.grid.as_array())
        if ticked:
            logger.debug("tick executed", turn=self.turn, tick=self.grid.tick_count)
        self.turn += 1
        return ticked

    def run(self, until: int | None = None) -> int:
        """Step until `until` turns have been played (default: all). Returns ticks executed."""
        target = len(self.snapshots) if until is None else min(until, len(self.snapshots))
        ticks = 0
        while self.turn < target:
            ticks += int(self.step())
        logger.info("replay advanced", turn=self.turn, ticks=ticks, total_ticks=self.grid.tick_count)
        return ticks

    def seek(self, turn: int) -> None:
        """Jump to `turn`. Going backwards re-inits the grid and replays from turn 0."""
        if not 0 <= turn <= len(self.snapshots):
            raise IndexError(f"turn {turn} outside 0..{len(self.snapshots)}")
        if turn < self.turn:
            logger.info("rewinding replay", from_turn=self.turn, to_turn=turn)
            self.grid.init(self.cells, self.width, self.height)
            self.turn = 0
            self.frames = []
        self.run(until=turn)

    def frame(self, turn: int) -> np.ndarray:
        return self.frames[turn]

    def save(self, name: str) -> None:
        """Persist the grid parameters, extents and current field under configs/."""
        params = {
            "world": {"width": self.width, "height": self.height},
            "momentum": self.grid.momentum,
            "propagation": self.grid.propagation.value,
            "kernel": None if self.grid.kernel is None else self.grid.kernel.tolist(),
            "decay": self.grid.decay.value,
            "decay_strength": self.grid.decay_strength,
            "cooldown": self.grid.cooldown,
            "max_influence": self.grid.max_influence,
        }
        config.save_config(params, name, state=self.grid.export_state())
