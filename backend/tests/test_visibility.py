"""Tests for fog of war and field of view."""

import pytest

from app.core.maze_generator import Position, parse_maze
from app.core.visibility import (
    FogCell,
    FogPolicy,
    compute_shadowcast,
    fog_percentage,
    has_line_of_sight,
    new_fog_grid,
    reveal,
    reveal_line_of_sight,
    reveal_radius,
    reveal_shadowcast,
    revealed_cells,
)

OPEN_ROOM = """\
#######
#S....#
#.....#
#.....#
#.....#
#....E#
#######"""


@pytest.fixture
def open_room():
    return parse_maze(OPEN_ROOM)


class TestRadiusReveal:
    """Tests for the authoritative radius policy."""

    def test_new_grid_fully_hidden(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        assert len(fog) == 3
        assert all(len(row) == 15 for row in fog)
        assert all(cell == FogCell.HIDDEN for row in fog for cell in row)

    def test_reveal_disc(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        count = reveal_radius(fog, corridor_maze, Position(1, 1), 2)

        # Row 1 spans x 0..3, rows 0 and 2 span x 0..2
        assert count == 10
        assert revealed_cells(fog) == {
            Position(x, 1) for x in range(0, 4)
        } | {
            Position(x, y) for x in range(0, 3) for y in (0, 2)
        }

    def test_ignores_walls(self, u_maze):
        fog = new_fog_grid(u_maze)
        reveal_radius(fog, u_maze, u_maze.start, 2)
        assert fog[3][1] == FogCell.REVEALED

    def test_idempotent(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        reveal_radius(fog, corridor_maze, Position(5, 1), 2)
        snapshot = [row[:] for row in fog]

        assert reveal_radius(fog, corridor_maze, Position(5, 1), 2) == 0
        assert fog == snapshot

    def test_corner_stays_in_bounds(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        reveal_radius(fog, corridor_maze, Position(14, 1), 10)
        assert len(fog) == 3
        assert all(len(row) == 15 for row in fog)
        assert fog[1][14] == FogCell.REVEALED

    def test_radius_zero(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        assert reveal_radius(fog, corridor_maze, Position(3, 1), 0) == 1
        assert revealed_cells(fog) == {Position(3, 1)}


class TestLineOfSight:
    """Tests for Bresenham visibility."""

    def test_clear_line(self, u_maze):
        assert has_line_of_sight(u_maze, Position(1, 1), Position(5, 1))

    def test_wall_between(self, u_maze):
        assert not has_line_of_sight(u_maze, Position(1, 1), Position(1, 3))

    def test_adjacent_wall_is_visible(self, u_maze):
        assert has_line_of_sight(u_maze, Position(1, 1), Position(1, 2))

    def test_symmetric_for_straight_lines(self, u_maze):
        assert has_line_of_sight(u_maze, Position(5, 3), Position(1, 3))
        assert has_line_of_sight(u_maze, Position(1, 3), Position(5, 3))

    def test_reveal_skips_hidden_side(self, u_maze):
        fog = new_fog_grid(u_maze)
        reveal_line_of_sight(fog, u_maze, u_maze.start, 2)

        assert fog[1][3] == FogCell.REVEALED
        assert fog[2][1] == FogCell.REVEALED
        assert fog[3][1] == FogCell.HIDDEN


class TestShadowcast:
    """Tests for recursive shadowcasting."""

    def test_includes_viewer(self, u_maze):
        assert u_maze.start in compute_shadowcast(u_maze, u_maze.start, 3)

    def test_radius_zero_only_viewer(self, u_maze):
        assert compute_shadowcast(u_maze, u_maze.start, 0) == {u_maze.start}

    def test_wall_occludes(self, u_maze):
        visible = compute_shadowcast(u_maze, u_maze.start, 3)

        assert Position(1, 2) in visible  # the wall itself
        assert Position(3, 1) in visible
        assert Position(1, 3) not in visible

    def test_open_room_fully_visible(self, open_room):
        center = Position(3, 3)
        visible = compute_shadowcast(open_room, center, 3)
        interior = {Position(x, y) for x in range(1, 6) for y in range(1, 6)}
        assert interior <= visible

    def test_respects_radius(self, corridor_maze):
        visible = compute_shadowcast(corridor_maze, Position(1, 1), 4)
        assert Position(5, 1) in visible
        assert Position(6, 1) not in visible

    def test_stays_in_bounds(self, corridor_maze):
        visible = compute_shadowcast(corridor_maze, Position(14, 1), 8)
        assert all(corridor_maze.in_bounds(p.x, p.y) for p in visible)

    def test_reveal_counts_new_cells(self, u_maze):
        fog = new_fog_grid(u_maze)
        first = reveal_shadowcast(fog, u_maze, u_maze.start, 3)

        assert first == len(compute_shadowcast(u_maze, u_maze.start, 3))
        assert reveal_shadowcast(fog, u_maze, u_maze.start, 3) == 0


class TestRevealDispatch:
    """Tests for policy selection."""

    @pytest.mark.parametrize("policy", list(FogPolicy))
    def test_every_policy_reveals_viewer(self, u_maze, policy):
        fog = new_fog_grid(u_maze)
        reveal(fog, u_maze, u_maze.start, 2, policy)
        assert fog[u_maze.start_y][u_maze.start_x] == FogCell.REVEALED

    @pytest.mark.parametrize("policy", list(FogPolicy))
    def test_monotonic(self, u_maze, policy):
        fog = new_fog_grid(u_maze)
        seen = set()
        for x in range(1, 6):
            reveal(fog, u_maze, Position(x, 1), 2, policy)
            now = revealed_cells(fog)
            assert seen <= now
            seen = now

    def test_policy_by_name(self, u_maze):
        fog = new_fog_grid(u_maze)
        reveal(fog, u_maze, u_maze.start, 2, "shadowcast")
        assert fog[3][1] == FogCell.HIDDEN


class TestFogPercentage:
    """Tests for the single fog formula."""

    def test_all_hidden(self, corridor_maze):
        assert fog_percentage(new_fog_grid(corridor_maze), corridor_maze) == 100.0

    def test_all_revealed(self, corridor_maze):
        fog = [[int(FogCell.REVEALED)] * 15 for _ in range(3)]
        assert fog_percentage(fog, corridor_maze) == 0.0

    def test_counts_open_cells_only(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        reveal_radius(fog, corridor_maze, Position(1, 1), 2)

        # Open cells revealed: x 1..3 on row 1, out of 14 open cells
        assert fog_percentage(fog, corridor_maze) == pytest.approx(100 * (1 - 3 / 14))

    def test_revealed_walls_do_not_count(self, corridor_maze):
        fog = new_fog_grid(corridor_maze)
        fog[0] = [int(FogCell.REVEALED)] * 15
        assert fog_percentage(fog, corridor_maze) == 100.0
