"""Load/save influence parameters. Configs live in configs/ as {name}.json (+ optional .npz grid state)."""

import json
import re
from pathlib import Path

import numpy as np
import structlog

from influence import InfluenceGrid

logger = structlog.get_logger()

CONFIG_DIR = Path(__file__).resolve().parent / "configs"
LAST_NAME = "last.txt"

# In-memory index of saved names so we avoid disk access for exists/listing.
_CONFIG_INDEX: set[str] = set()

GRID_PARAM_KEYS = (
    "momentum", "propagation", "kernel", "decay", "decay_strength", "cooldown", "max_influence",
)


def _last_file() -> Path:
    return CONFIG_DIR / LAST_NAME


def refresh_index() -> None:
    """Rebuild _CONFIG_INDEX from disk. Call at startup and after external changes."""
    global _CONFIG_INDEX
    _CONFIG_INDEX = set()
    if not CONFIG_DIR.exists():
        return
    for f in CONFIG_DIR.glob("*.json"):
        _CONFIG_INDEX.add(f.stem)


def _sanitize_name(name: str) -> str:
    s = (name or "").strip()
    s = re.sub(r"[^\w\s-]", "", s)
    s = re.sub(r"[\s-]+", "_", s).strip("_")
    return s[:64] or "unnamed"


def get_config_path(name: str) -> Path:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR / f"{_sanitize_name(name)}.json"


def get_state_path(name: str) -> Path:
    return CONFIG_DIR / f"{_sanitize_name(name)}.npz"


def list_configs() -> list[str]:
    """Saved config names, from in-memory index."""
    return sorted(_CONFIG_INDEX, key=str.lower)


def get_last_config() -> str | None:
    last = _last_file()
    if not last.exists():
        return None
    try:
        raw = last.read_text().strip()
    except OSError:
        return None
    return raw or None


def set_last_config(name: str) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _last_file().write_text(_sanitize_name(name))


def load_config(path: Path | str | None = None) -> dict:
    if path is None:
        last = get_last_config()
        if last is None:
            return _default_config()
        path = get_config_path(last)
    p = Path(path)
    if not p.exists():
        logger.debug("config not found, using defaults", path=str(p))
        return _default_config()
    with open(p, "r") as f:
        return _merge_defaults(json.load(f))


def save_config(params: dict, name: str, state: dict | None = None) -> Path:
    """Save params and optional grid state (from InfluenceGrid.export_state)."""
    cid = _sanitize_name(name)
    path = get_config_path(name)
    out = _merge_defaults(params)
    if state is not None:
        out["tick_count"] = int(state["tick_count"])
    with open(path, "w") as f:
        json.dump(out, f, indent=2)
    if state is not None:
        np.savez_compressed(
            get_state_path(name),
            values=state["values"],
            mask=state["mask"],
            cooldown_remaining=np.int64(state["cooldown_remaining"]),
            tick_count=np.int64(state["tick_count"]),
        )
    set_last_config(cid)
    _CONFIG_INDEX.add(cid)
    logger.info("config saved", name=cid, with_state=state is not None)
    return path


def load_state(name: str) -> dict | None:
    """Return {'values', 'mask', 'cooldown_remaining', 'tick_count'} or None."""
    p = get_state_path(name)
    if not p.exists():
        return None
    try:
        data = np.load(p, allow_pickle=False)
        return {
            "values": data["values"].copy(),
            "mask": data["mask"].copy(),
            "cooldown_remaining": int(data["cooldown_remaining"]),
            "tick_count": int(data["tick_count"]),
        }
    except (KeyError, OSError, ValueError) as e:
        logger.warning("unreadable grid state", path=str(p), error=str(e))
        return None


def _default_config() -> dict:
    return {
        "world": {"width": 32, "height": 32},
        "momentum": 0.5,
        "propagation": "kernel",
        "kernel": None,
        "decay": "exponential",
        "decay_strength": 0.0,
        "cooldown": 1,
        "max_influence": 1.0,
    }


def _merge_defaults(data: dict) -> dict:
    d = _default_config()
    if "world" in data:
        d["world"] = {**d["world"], **data["world"]}
    for k in GRID_PARAM_KEYS + ("tick_count",):
        if k in data:
            d[k] = data[k]
    return d


def grid_from_config(cfg: dict, base_influence) -> InfluenceGrid:
    """Build an InfluenceGrid from a config dict; bad values raise InvalidParameters."""
    cfg = _merge_defaults(cfg)
    return InfluenceGrid(base_influence, **{k: cfg[k] for k in GRID_PARAM_KEYS})


def config_exists(name: str) -> bool:
    """Use in-memory index; no disk access."""
    return _sanitize_name(name) in _CONFIG_INDEX


def delete_config(name: str) -> None:
    """Remove config and state from disk and index. Clear last if this was last."""
    cid = _sanitize_name(name)
    _CONFIG_INDEX.discard(cid)
    get_config_path(name).unlink(missing_ok=True)
    get_state_path(name).unlink(missing_ok=True)
    if get_last_config() == cid:
        _last_file().unlink(missing_ok=True)
    logger.info("config deleted", name=cid)
