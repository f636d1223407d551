"""Board snapshot for a single turn."""

from __future__ import annotations

from dataclasses import dataclass, field

from battlesnake_core.errors import MalformedState
from battlesnake_core.grid import Grid, Point, is_within
from battlesnake_core.snake import Snake


@dataclass(frozen=True)
class Board:
    """Immutable board state: dimensions, food, hazards and live snakes.

    Every point carried by the board must lie within its bounds.
    """

    width: int
    height: int
    food: frozenset[Point] = frozenset()
    hazards: frozenset[Point] = frozenset()
    snakes: tuple[Snake, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise MalformedState(
                f"Board dimensions must be positive, got "
                f"{self.width}x{self.height}."
            )
        for kind, points in (("food", self.food), ("hazard", self.hazards)):
            for point in points:
                self.check_point(point, kind)
        for snake in self.snakes:
            self.check_snake(snake)
        ids = [s.id for s in self.snakes]
        if len(set(ids)) != len(ids):
            raise MalformedState("Board lists the same snake id more than once.")

    def check_point(self, point: Point, kind: str) -> None:
        """Raise :class:`MalformedState` if *point* is off the board."""
        if not is_within(point, self.width, self.height):
            raise MalformedState(
                f"{kind} point ({point.x}, {point.y}) outside "
                f"{self.width}x{self.height} board."
            )

    def check_snake(self, snake: Snake) -> None:
        for point in snake.body:
            self.check_point(point, f"snake {snake.id} body")

    def snake(self, snake_id: str) -> Snake | None:
        """Look up a snake by id."""
        for s in self.snakes:
            if s.id == snake_id:
                return s
        return None

    def grid(self) -> Grid:
        """Build the occupancy grid for this board."""
        return Grid.from_board(self)

    def to_dict(self) -> dict:
        return {
            "height": self.height,
            "width": self.width,
            "food": [p.to_dict() for p in sorted(self.food)],
            "hazards": [p.to_dict() for p in sorted(self.hazards)],
            "snakes": [s.to_dict() for s in self.snakes],
        }
