"""
Quarter-turn rotation between logical and physical surface coordinates.

The remote client always draws and reports keys in un-rotated physical
space. Rotation happens entirely on this side: logical coordinates are
mapped to physical ones before anything is stored, and physical key presses
are mapped back before the application sees them.

All coordinates are 1-based. For a physical ``cols x rows`` surface::

    r=0   (x, y) -> (x, y)
    r=1   (x, y) -> (y, rows+1-x)             logical extent rows x cols
    r=2   (x, y) -> (cols+1-x, rows+1-y)
    r=3   (x, y) -> (cols+1-y, x)             logical extent rows x cols
"""

VALID_ROTATIONS = (0, 1, 2, 3)


def is_valid_rotation(rotation) -> bool:
    return isinstance(rotation, int) and not isinstance(rotation, bool) and rotation in VALID_ROTATIONS


def logical_extent(cols: int, rows: int, rotation: int) -> tuple[int, int]:
    """(logical_cols, logical_rows) for a physical extent under rotation."""
    if rotation in (1, 3):
        return rows, cols
    return cols, rows


def to_physical(x: int, y: int, rotation: int, cols: int, rows: int) -> tuple[int, int]:
    """Map a logical coordinate to its physical coordinate."""
    if rotation == 1:
        return y, rows + 1 - x
    if rotation == 2:
        return cols + 1 - x, rows + 1 - y
    if rotation == 3:
        return cols + 1 - y, x
    return x, y


def to_logical(px: int, py: int, rotation: int, cols: int, rows: int) -> tuple[int, int]:
    """Map a physical coordinate back to logical space (inverse of to_physical)."""
    if rotation == 1:
        return rows + 1 - py, px
    if rotation == 2:
        return cols + 1 - px, rows + 1 - py
    if rotation == 3:
        return py, cols + 1 - px
    return px, py


def physical_index(px: int, py: int, cols: int) -> int:
    """Row-major 0-based buffer index of a 1-based physical coordinate."""
    return (py - 1) * cols + (px - 1)
