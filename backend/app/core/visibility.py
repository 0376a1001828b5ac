"""
Fog of war and field of view.

Three reveal policies share one signature and all mutate the fog grid in place:

- radius: every cell within Euclidean distance of the viewer, walls ignored.
  This is the authoritative policy used for scoring.
- line_of_sight: cells within the radius whose Bresenham line from the viewer
  crosses no wall.
- shadowcast: recursive shadowcasting over eight octants.

Revealing never hides a cell again, so calling any policy repeatedly only grows
the revealed set. ``fog_percentage`` is the single definition of how much of the
maze is still unexplored, whatever policy produced the fog grid.
"""

import math
from enum import Enum, IntEnum
from typing import Callable

from app.core.maze_generator import Maze, Position


class FogCell(IntEnum):
    """Fog grid values."""
    REVEALED = 0
    HIDDEN = 1


class FogPolicy(str, Enum):
    """Which cells a viewer reveals."""
    RADIUS = "radius"
    LINE_OF_SIGHT = "line_of_sight"
    SHADOWCAST = "shadowcast"


FogGrid = list[list[int]]

# (xx, xy, yx, yy) maps the canonical top-right scan onto each world octant.
OCTANT_TRANSFORMS = (
    (1, 0, 0, -1),
    (0, 1, -1, 0),
    (0, -1, -1, 0),
    (-1, 0, 0, -1),
    (-1, 0, 0, 1),
    (0, -1, 1, 0),
    (0, 1, 1, 0),
    (1, 0, 0, 1),
)


def new_fog_grid(maze: Maze) -> FogGrid:
    """Create a fully hidden fog grid matching the maze dimensions."""
    return [[int(FogCell.HIDDEN)] * maze.width for _ in range(maze.height)]


def _reveal_cell(fog_grid: FogGrid, maze: Maze, x: int, y: int) -> int:
    if not maze.in_bounds(x, y) or fog_grid[y][x] == FogCell.REVEALED:
        return 0
    fog_grid[y][x] = int(FogCell.REVEALED)
    return 1


def reveal_radius(fog_grid: FogGrid, maze: Maze, viewer: Position, radius: int) -> int:
    """
    Reveal every in-bounds cell within ``radius`` of the viewer.

    Returns:
        Number of cells that were hidden before the call.
    """
    radius_sq = radius * radius
    revealed = 0
    for y in range(max(0, viewer.y - radius), min(maze.height - 1, viewer.y + radius) + 1):
        for x in range(max(0, viewer.x - radius), min(maze.width - 1, viewer.x + radius) + 1):
            if (x - viewer.x) ** 2 + (y - viewer.y) ** 2 <= radius_sq:
                revealed += _reveal_cell(fog_grid, maze, x, y)
    return revealed


def has_line_of_sight(maze: Maze, origin: Position, target: Position) -> bool:
    """Bresenham walk from origin to target; endpoints are never treated as blockers."""
    dx = abs(target.x - origin.x)
    dy = abs(target.y - origin.y)
    sx = 1 if origin.x < target.x else -1
    sy = 1 if origin.y < target.y else -1
    err = dx - dy

    x, y = origin.x, origin.y
    while (x, y) != (target.x, target.y):
        if (x, y) != (origin.x, origin.y) and maze.is_wall(x, y):
            return False
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
    return True


def reveal_line_of_sight(fog_grid: FogGrid, maze: Maze, viewer: Position, radius: int) -> int:
    """Reveal cells within ``radius`` that the viewer can see along a straight line."""
    radius_sq = radius * radius
    revealed = 0
    for y in range(max(0, viewer.y - radius), min(maze.height - 1, viewer.y + radius) + 1):
        for x in range(max(0, viewer.x - radius), min(maze.width - 1, viewer.x + radius) + 1):
            if (x - viewer.x) ** 2 + (y - viewer.y) ** 2 > radius_sq:
                continue
            if fog_grid[y][x] == FogCell.REVEALED:
                continue
            if has_line_of_sight(maze, viewer, Position(x, y)):
                revealed += _reveal_cell(fog_grid, maze, x, y)
    return revealed


def _cast_octant(
    maze: Maze,
    viewer: Position,
    radius: int,
    row: int,
    start_slope: float,
    end_slope: float,
    transform: tuple[int, int, int, int],
    visible: set[Position],
) -> None:
    """Scan one octant row by row between two slopes, recursing past walls."""
    if start_slope < end_slope:
        return

    xx, xy, yx, yy = transform
    radius_sq = radius * radius
    next_start = start_slope

    for depth in range(row, radius + 1):
        blocked = False
        dy = -depth
        for dx in range(-depth, 1):
            left_slope = (dx - 0.5) / (dy + 0.5)
            right_slope = (dx + 0.5) / (dy - 0.5)
            if start_slope < right_slope:
                continue
            if end_slope > left_slope:
                break

            x = viewer.x + dx * xx + dy * xy
            y = viewer.y + dx * yx + dy * yy
            if dx * dx + dy * dy <= radius_sq and maze.in_bounds(x, y):
                visible.add(Position(x, y))

            opaque = maze.is_wall(x, y)
            if blocked:
                if opaque:
                    next_start = right_slope
                    continue
                blocked = False
                start_slope = next_start
            elif opaque and depth < radius:
                blocked = True
                _cast_octant(
                    maze, viewer, radius, depth + 1,
                    start_slope, left_slope, transform, visible,
                )
                next_start = right_slope
        if blocked:
            break


def compute_shadowcast(maze: Maze, viewer: Position, radius: int) -> set[Position]:
    """Return every cell visible from the viewer using recursive shadowcasting."""
    visible = {viewer} if maze.in_bounds(viewer.x, viewer.y) else set()
    for transform in OCTANT_TRANSFORMS:
        _cast_octant(maze, viewer, radius, 1, 1.0, 0.0, transform, visible)
    return visible


def reveal_shadowcast(fog_grid: FogGrid, maze: Maze, viewer: Position, radius: int) -> int:
    """Reveal the shadowcast field of view."""
    return sum(
        _reveal_cell(fog_grid, maze, cell.x, cell.y)
        for cell in compute_shadowcast(maze, viewer, radius)
    )


REVEAL_FUNCTIONS: dict[FogPolicy, Callable[[FogGrid, Maze, Position, int], int]] = {
    FogPolicy.RADIUS: reveal_radius,
    FogPolicy.LINE_OF_SIGHT: reveal_line_of_sight,
    FogPolicy.SHADOWCAST: reveal_shadowcast,
}


def reveal(
    fog_grid: FogGrid,
    maze: Maze,
    viewer: Position,
    radius: int,
    policy: FogPolicy = FogPolicy.RADIUS,
) -> int:
    """Reveal around the viewer with the given policy."""
    return REVEAL_FUNCTIONS[FogPolicy(policy)](fog_grid, maze, viewer, radius)


def revealed_cells(fog_grid: FogGrid) -> set[Position]:
    """All revealed coordinates."""
    return {
        Position(x, y)
        for y, row in enumerate(fog_grid)
        for x, cell in enumerate(row)
        if cell == FogCell.REVEALED
    }


def fog_counts(fog_grid: FogGrid, maze: Maze) -> tuple[int, int]:
    """Return (hidden, total) counted over non-wall cells."""
    revealed = sum(
        1
        for pos in maze.open_cells()
        if fog_grid[pos.y][pos.x] == FogCell.REVEALED
    )
    total = maze.open_cell_count
    return total - revealed, total


def fog_percentage(fog_grid: FogGrid, maze: Maze) -> float:
    """Percentage of non-wall cells still hidden."""
    hidden, total = fog_counts(fog_grid, maze)
    if total == 0:
        return 100.0
    return 100 * hidden / total
