"""Packed cell keys: key = y * KEY_STRIDE + x. Bijective for 0 <= x, y < MAX_GRID_SIZE."""

from influence.constants import KEY_STRIDE, MAX_GRID_SIZE


def pack_key(x: int, y: int) -> int:
    if not (0 <= x < MAX_GRID_SIZE and 0 <= y < MAX_GRID_SIZE):
        raise ValueError(f"coordinate ({x}, {y}) outside supported range [0, {MAX_GRID_SIZE})")
    return y * KEY_STRIDE + x


def unpack_key(key: int) -> tuple[int, int]:
    if key < 0:
        raise ValueError(f"negative cell key {key}")
    y, x = divmod(key, KEY_STRIDE)
    return x, y


def keys_for_rect(width: int, height: int) -> list[int]:
    """Every key of a full width × height rectangle, row by row."""
    return [pack_key(x, y) for y in range(height) for x in range(width)]
