"""
Maze Runner Maze Generator

Procedural maze generation for game sessions:
- Depth-first recursive backtracker over the odd-coordinate sublattice
- Start/exit placement (edge exit or opposite quadrants)
- Connectivity verification before a maze is handed out

Grid codes:
    0 = Path
    1 = Wall
    2 = Start position
    3 = Exit (goal)
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum, IntEnum
from functools import cached_property
from typing import Iterator, Optional

from app.core.errors import MazeGenerationError

logger = logging.getLogger(__name__)


class CellType(IntEnum):
    """Cell codes stored in the maze grid."""
    PATH = 0
    WALL = 1
    START = 2
    EXIT = 3


class ExitPolicy(str, Enum):
    """How start and exit cells are placed."""
    EDGE = "edge"
    QUADRANT = "quadrant"


# Side length of the (square) maze per difficulty
MAZE_SIZES = {
    "easy": 15,
    "medium": 25,
    "hard": 35,
}
DIFFICULTY_ALIASES = {"normal": "medium"}
DEFAULT_DIFFICULTY = "medium"
MIN_MAZE_SIZE = 5

# Carving steps: up, right, down, left
CARVE_STEPS = ((0, -2), (2, 0), (0, 2), (-2, 0))
NEIGHBOR_STEPS = ((0, -1), (1, 0), (0, 1), (-1, 0))


def normalize_difficulty(difficulty: Optional[str]) -> str:
    """Lower-case a difficulty key and resolve aliases (``normal`` -> ``medium``)."""
    key = (difficulty or DEFAULT_DIFFICULTY).strip().lower() or DEFAULT_DIFFICULTY
    return DIFFICULTY_ALIASES.get(key, key)


@dataclass(frozen=True)
class Position:
    """2D grid coordinate."""
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "Position":
        """Return the position shifted by (dx, dy)."""
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Maze:
    """A generated maze. Immutable once built."""
    grid: tuple[tuple[int, ...], ...]
    width: int
    height: int
    start_x: int
    start_y: int
    exit_x: int
    exit_y: int
    difficulty: str = DEFAULT_DIFFICULTY

    @property
    def start(self) -> Position:
        return Position(self.start_x, self.start_y)

    @property
    def exit(self) -> Position:
        return Position(self.exit_x, self.exit_y)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> CellType:
        """Get cell type at position. Out of bounds reads as wall."""
        if not self.in_bounds(x, y):
            return CellType.WALL
        return CellType(self.grid[y][x])

    def is_wall(self, x: int, y: int) -> bool:
        return self.cell_at(x, y) == CellType.WALL

    def open_cells(self) -> Iterator[Position]:
        """Iterate over every non-wall cell."""
        for y, row in enumerate(self.grid):
            for x, cell in enumerate(row):
                if cell != CellType.WALL:
                    yield Position(x, y)

    @cached_property
    def open_cell_count(self) -> int:
        """Number of non-wall cells (denominator of the fog percentage)."""
        return sum(1 for row in self.grid for cell in row if cell != CellType.WALL)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "grid": [list(row) for row in self.grid],
            "width": self.width,
            "height": self.height,
            "start_x": self.start_x,
            "start_y": self.start_y,
            "exit_x": self.exit_x,
            "exit_y": self.exit_y,
            "difficulty": self.difficulty,
        }

    def visualize(
        self,
        player: Optional[Position] = None,
        fog_grid: Optional[list[list[int]]] = None,
    ) -> str:
        """
        Generate ASCII visualization of the maze.

        Args:
            player: If provided, drawn as ``@``.
            fog_grid: If provided, hidden cells are drawn as ``?``.

        Returns:
            ASCII string representation.
        """
        symbols = {
            CellType.PATH: ".",
            CellType.WALL: "#",
            CellType.START: "S",
            CellType.EXIT: "E",
        }
        lines = []
        for y, row in enumerate(self.grid):
            line = ""
            for x, cell in enumerate(row):
                if player is not None and player.x == x and player.y == y:
                    line += "@"
                elif fog_grid is not None and fog_grid[y][x] != 0:
                    line += "?"
                else:
                    line += symbols[CellType(cell)]
            lines.append(line)
        return "\n".join(lines)


TEXT_SYMBOLS = {
    "#": CellType.WALL,
    ".": CellType.PATH,
    "S": CellType.START,
    "E": CellType.EXIT,
}


def parse_maze(text: str, difficulty: str = DEFAULT_DIFFICULTY) -> Maze:
    """
    Build a maze from the ASCII form produced by ``Maze.visualize``.

    Raises:
        ValueError: If rows differ in length, a symbol is unknown, or the maze
            does not have exactly one start and one exit.
    """
    lines = [line.rstrip() for line in text.strip().splitlines()]
    if not lines or any(len(line) != len(lines[0]) for line in lines):
        raise ValueError("Maze rows must be non-empty and of equal length")

    grid = []
    start = exit_pos = None
    for y, line in enumerate(lines):
        row = []
        for x, char in enumerate(line):
            if char not in TEXT_SYMBOLS:
                raise ValueError(f"Unknown maze symbol {char!r} at ({x}, {y})")
            cell = TEXT_SYMBOLS[char]
            if cell == CellType.START:
                if start is not None:
                    raise ValueError("Maze has more than one start")
                start = Position(x, y)
            elif cell == CellType.EXIT:
                if exit_pos is not None:
                    raise ValueError("Maze has more than one exit")
                exit_pos = Position(x, y)
            row.append(int(cell))
        grid.append(tuple(row))

    if start is None or exit_pos is None:
        raise ValueError("Maze needs a start (S) and an exit (E)")

    return Maze(
        grid=tuple(grid),
        width=len(lines[0]),
        height=len(lines),
        start_x=start.x,
        start_y=start.y,
        exit_x=exit_pos.x,
        exit_y=exit_pos.y,
        difficulty=normalize_difficulty(difficulty),
    )


def find_unreachable_cells(maze: Maze) -> list[Position]:
    """Return every non-wall cell that cannot be reached from START (4-connected)."""
    seen = {maze.start}
    queue = deque([maze.start])
    while queue:
        current = queue.popleft()
        for dx, dy in NEIGHBOR_STEPS:
            nxt = current.offset(dx, dy)
            if nxt not in seen and not maze.is_wall(nxt.x, nxt.y):
                seen.add(nxt)
                queue.append(nxt)
    return [pos for pos in maze.open_cells() if pos not in seen]


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _snap_to_lattice(value: int) -> int:
    """Move a coordinate onto the odd carving sublattice."""
    return value if value % 2 == 1 else max(1, value - 1)


class MazeGenerator:
    """
    Builds mazes with a recursive backtracker.

    Example usage:
        generator = MazeGenerator(rng=random.Random(42))
        maze = generator.generate("easy")
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        exit_policy: ExitPolicy = ExitPolicy.EDGE,
    ):
        self.rng = rng or random.Random()
        self.exit_policy = ExitPolicy(exit_policy)

    def generate(self, difficulty: Optional[str] = None) -> Maze:
        """
        Generate a maze for a difficulty key.

        Unrecognized keys fall back to the medium size but keep their name,
        so scoring applies its own defaults.
        """
        key = normalize_difficulty(difficulty)
        size = MAZE_SIZES.get(key, MAZE_SIZES[DEFAULT_DIFFICULTY])
        return self.build(size, size, difficulty=key)

    def build(self, width: int, height: int, difficulty: str = DEFAULT_DIFFICULTY) -> Maze:
        """Generate a maze with explicit dimensions."""
        if width < MIN_MAZE_SIZE or height < MIN_MAZE_SIZE:
            raise ValueError(f"Maze must be at least {MIN_MAZE_SIZE}x{MIN_MAZE_SIZE}")

        logger.debug(f"Generating {width}x{height} maze ({difficulty}, {self.exit_policy.value})")
        grid = [[int(CellType.WALL)] * width for _ in range(height)]

        if self.exit_policy == ExitPolicy.EDGE:
            start = Position(_snap_to_lattice(width // 2), _snap_to_lattice(height // 2))
            self._carve(grid, start)
            exit_pos = self._pick_edge_exit(width, height)
            if grid[exit_pos.y][exit_pos.x] == CellType.WALL:
                self._connect_exit(grid, exit_pos, start)
        else:
            origin = Position(
                self.rng.randrange(0, (width - 1) // 2) * 2 + 1,
                self.rng.randrange(0, (height - 1) // 2) * 2 + 1,
            )
            self._carve(grid, origin)
            start, exit_pos = self._pick_quadrant_cells(grid, width, height)

        grid[start.y][start.x] = int(CellType.START)
        grid[exit_pos.y][exit_pos.x] = int(CellType.EXIT)

        maze = Maze(
            grid=tuple(tuple(row) for row in grid),
            width=width,
            height=height,
            start_x=start.x,
            start_y=start.y,
            exit_x=exit_pos.x,
            exit_y=exit_pos.y,
            difficulty=difficulty,
        )
        self._verify(maze)
        return maze

    def _carve(self, grid: list[list[int]], origin: Position) -> None:
        """Carve passages depth-first, using an explicit stack for backtracking."""
        height = len(grid)
        width = len(grid[0])
        grid[origin.y][origin.x] = int(CellType.PATH)
        stack = [origin]

        while stack:
            current = stack[-1]
            candidates = []
            for dx, dy in CARVE_STEPS:
                nx, ny = current.x + dx, current.y + dy
                if 1 <= nx < width - 1 and 1 <= ny < height - 1 and grid[ny][nx] == CellType.WALL:
                    candidates.append((dx, dy))

            if not candidates:
                stack.pop()
                continue

            dx, dy = self.rng.choice(candidates)
            grid[current.y + dy // 2][current.x + dx // 2] = int(CellType.PATH)
            neighbor = current.offset(dx, dy)
            grid[neighbor.y][neighbor.x] = int(CellType.PATH)
            stack.append(neighbor)

    def _pick_edge_exit(self, width: int, height: int) -> Position:
        side = self.rng.randrange(4)  # 0: top, 1: right, 2: bottom, 3: left
        if side == 0:
            return Position(self.rng.randint(1, width - 2), 0)
        if side == 1:
            return Position(width - 1, self.rng.randint(1, height - 2))
        if side == 2:
            return Position(self.rng.randint(1, width - 2), height - 1)
        return Position(0, self.rng.randint(1, height - 2))

    def _connect_exit(self, grid: list[list[int]], exit_pos: Position, start: Position) -> None:
        """Carve a monotone Manhattan path from the exit until an open cell is met."""
        x, y = exit_pos.x, exit_pos.y
        carved = 0
        while grid[y][x] == CellType.WALL:
            grid[y][x] = int(CellType.PATH)
            carved += 1
            if abs(start.x - x) >= abs(start.y - y):
                x += _sign(start.x - x)
            else:
                y += _sign(start.y - y)
        logger.debug(f"Connected exit {exit_pos.to_dict()} with {carved} carved cells")

    def _pick_quadrant_cells(
        self, grid: list[list[int]], width: int, height: int
    ) -> tuple[Position, Position]:
        """Pick START in the top-left third and EXIT in the bottom-right third."""
        third_x = max(width // 3, 2)
        third_y = max(height // 3, 2)

        def open_in(xs: range, ys: range) -> list[Position]:
            return [
                Position(x, y)
                for y in ys
                for x in xs
                if grid[y][x] == CellType.PATH
            ]

        starts = open_in(range(0, third_x), range(0, third_y))
        exits = open_in(range(width - third_x, width), range(height - third_y, height))
        if not starts or not exits:
            raise MazeGenerationError("No open cell available for start or exit")
        return self.rng.choice(starts), self.rng.choice(exits)

    @staticmethod
    def _verify(maze: Maze) -> None:
        cells = [c for row in maze.grid for c in row]
        if cells.count(CellType.START) != 1 or cells.count(CellType.EXIT) != 1:
            raise MazeGenerationError("Maze must have exactly one start and one exit")
        if maze.start == maze.exit:
            raise MazeGenerationError("Start and exit must differ")
        unreachable = find_unreachable_cells(maze)
        if unreachable:
            raise MazeGenerationError(
                f"{len(unreachable)} open cells unreachable from start, "
                f"first at {unreachable[0].to_dict()}"
            )


if __name__ == "__main__":
    # Quick look
    maze = MazeGenerator(rng=random.Random(7)).generate("easy")
    print(f"Maze {maze.width}x{maze.height}, start={maze.start.to_dict()}, exit={maze.exit.to_dict()}")
    print(maze.visualize())
