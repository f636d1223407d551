"""Tests for the grid module."""

import numpy as np
import pytest

from battlesnake_core.board import Board
from battlesnake_core.grid import CellType, Grid, Point, is_within, manhattan
from battlesnake_core.snake import Direction, Snake


def _snake(snake_id, body):
    points = tuple(Point(x, y) for x, y in body)
    return Snake(
        id=snake_id, name=snake_id, health=90,
        body=points, head=points[0], length=len(points),
    )


class TestPoint:
    def test_moved_follows_bottom_left_origin(self):
        p = Point(3, 3)
        assert p.moved(Direction.UP) == Point(3, 4)
        assert p.moved(Direction.DOWN) == Point(3, 2)
        assert p.moved(Direction.LEFT) == Point(2, 3)
        assert p.moved(Direction.RIGHT) == Point(4, 3)

    def test_immutable(self):
        p = Point(1, 2)
        with pytest.raises(AttributeError):
            p.x = 5

    def test_to_dict(self):
        assert Point(1, 2).to_dict() == {"x": 1, "y": 2}


class TestHelpers:
    def test_is_within(self):
        assert is_within(Point(0, 0), 11, 11)
        assert is_within(Point(10, 10), 11, 11)
        assert not is_within(Point(11, 0), 11, 11)
        assert not is_within(Point(0, 11), 11, 11)
        assert not is_within(Point(-1, 0), 11, 11)

    def test_is_within_rectangular(self):
        assert is_within(Point(6, 2), 7, 3)
        assert not is_within(Point(2, 6), 7, 3)

    def test_manhattan(self):
        assert manhattan(Point(0, 0), Point(3, 4)) == 7
        assert manhattan(Point(5, 5), Point(5, 5)) == 0
        assert manhattan(Point(4, 1), Point(1, 4)) == 6


class TestGridInit:
    def test_dimensions(self):
        grid = Grid(width=10, height=8)
        assert grid.cells.shape == (8, 10)

    def test_non_positive_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            Grid(width=0, height=4)

    def test_all_cells_start_empty(self):
        grid = Grid(width=5, height=5)
        assert np.all(grid.cells == CellType.EMPTY)


class TestGridCoordinates:
    def test_bottom_left_is_last_row(self):
        grid = Grid(width=5, height=4)
        assert grid.to_cell(Point(0, 0)) == (3, 0)
        assert grid.to_cell(Point(4, 3)) == (0, 4)

    def test_to_point_inverts_to_cell(self):
        grid = Grid(width=5, height=4)
        for x in range(5):
            for y in range(4):
                row, col = grid.to_cell(Point(x, y))
                assert grid.to_point(row, col) == Point(x, y)

    def test_set_and_get(self):
        grid = Grid(width=5, height=5)
        grid.set(Point(2, 3), CellType.FOOD)
        assert grid.get(Point(2, 3)) == CellType.FOOD
        assert grid.cells[1, 2] == CellType.FOOD


class TestGridFromBoard:
    def test_paints_entities(self):
        board = Board(
            width=5, height=5,
            food=frozenset({Point(0, 0)}),
            hazards=frozenset({Point(4, 4)}),
            snakes=(_snake("a", [(2, 2), (2, 1)]),),
        )
        grid = Grid.from_board(board)
        assert grid.get(Point(0, 0)) == CellType.FOOD
        assert grid.get(Point(4, 4)) == CellType.HAZARD
        assert grid.get(Point(2, 2)) == CellType.SNAKE
        assert grid.get(Point(2, 1)) == CellType.SNAKE
        assert grid.get(Point(3, 3)) == CellType.EMPTY

    def test_snake_overrides_hazard(self):
        board = Board(
            width=5, height=5,
            hazards=frozenset({Point(2, 2)}),
            snakes=(_snake("a", [(2, 2)]),),
        )
        assert Grid.from_board(board).get(Point(2, 2)) == CellType.SNAKE

    def test_is_free(self):
        board = Board(
            width=5, height=5,
            hazards=frozenset({Point(1, 1)}),
            snakes=(_snake("a", [(2, 2)]),),
        )
        grid = board.grid()
        assert grid.is_free(Point(1, 1))
        assert not grid.is_free(Point(1, 1), allow_hazard=False)
        assert not grid.is_free(Point(2, 2))
        assert not grid.is_free(Point(5, 0))

    def test_free_cells(self):
        board = Board(width=4, height=4, snakes=(_snake("a", [(0, 0), (1, 0)]),))
        free = board.grid().free_cells()
        assert len(free) == 14
        assert Point(0, 0) not in free
        assert Point(3, 3) in free


class TestGridSerialization:
    def test_to_dict_structure(self):
        grid = Grid(width=5, height=3)
        d = grid.to_dict()
        assert d["width"] == 5
        assert d["height"] == 3
        assert len(d["cells"]) == 3
        assert len(d["cells"][0]) == 5

    def test_to_dict_rows_top_to_bottom(self):
        grid = Grid(width=4, height=4)
        grid.set(Point(1, 0), CellType.FOOD)
        assert grid.to_dict()["cells"][3][1] == CellType.FOOD
