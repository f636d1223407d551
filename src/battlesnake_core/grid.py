"""Board coordinates and the NumPy occupancy grid.

Wire coordinates put (0, 0) in the bottom-left corner with +y pointing up.
:class:`Grid` stores cells row-major with row 0 at the *top*, so every
conversion between the two goes through :meth:`Grid.to_cell` and
:meth:`Grid.to_point`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from battlesnake_core.board import Board
    from battlesnake_core.snake import Direction


@dataclass(frozen=True, order=True)
class Point:
    """An (x, y) board coordinate."""

    x: int
    y: int

    def moved(self, direction: Direction) -> Point:
        """Return the neighbouring point one step in *direction*."""
        dx, dy = direction.value
        return Point(self.x + dx, self.y + dy)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


def is_within(point: Point, width: int, height: int) -> bool:
    """Check whether *point* lies on a ``width`` x ``height`` board."""
    return 0 <= point.x < width and 0 <= point.y < height


def manhattan(a: Point, b: Point) -> int:
    """Grid distance between two points."""
    return abs(a.x - b.x) + abs(a.y - b.y)


class CellType(enum.IntEnum):
    """Integer codes stored in the grid array."""

    EMPTY = 0
    SNAKE = 1
    FOOD = 2
    HAZARD = 3


class Grid:
    """NumPy-backed occupancy grid for one board snapshot.

    Snake bodies take precedence over hazards, and hazards over food, when
    several entities share a cell.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError("Grid dimensions must be positive.")
        self.width = width
        self.height = height
        self.cells = np.zeros((height, width), dtype=np.int8)

    @classmethod
    def from_board(cls, board: Board) -> Grid:
        """Paint food, hazards and snake bodies from *board*."""
        grid = cls(board.width, board.height)
        for point in board.food:
            grid.set(point, CellType.FOOD)
        for point in board.hazards:
            grid.set(point, CellType.HAZARD)
        for snake in board.snakes:
            for point in snake.body:
                grid.set(point, CellType.SNAKE)
        return grid

    def to_cell(self, point: Point) -> tuple[int, int]:
        """Translate a board point to a (row, col) array index."""
        return self.height - 1 - point.y, point.x

    def to_point(self, row: int, col: int) -> Point:
        """Translate a (row, col) array index back to a board point."""
        return Point(col, self.height - 1 - row)

    def in_bounds(self, point: Point) -> bool:
        return is_within(point, self.width, self.height)

    def get(self, point: Point) -> CellType:
        """Return the cell type at *point*."""
        return CellType(self.cells[self.to_cell(point)])

    def set(self, point: Point, cell_type: CellType) -> None:
        """Set the cell type at *point*."""
        self.cells[self.to_cell(point)] = cell_type

    def is_free(self, point: Point, *, allow_hazard: bool = True) -> bool:
        """Check that *point* is on the board and not occupied by a snake."""
        if not self.in_bounds(point):
            return False
        cell = self.get(point)
        if cell == CellType.SNAKE:
            return False
        return allow_hazard or cell != CellType.HAZARD

    def free_cells(self) -> list[Point]:
        """Return all cells not occupied by a snake body."""
        rows, cols = np.where(self.cells != CellType.SNAKE)
        return [
            self.to_point(r, c)
            for r, c in zip(rows.tolist(), cols.tolist(), strict=True)
        ]

    def to_dict(self) -> dict:
        """Serialize grid state to a dictionary (rows listed top to bottom)."""
        return {
            "width": self.width,
            "height": self.height,
            "cells": self.cells.tolist(),
        }
