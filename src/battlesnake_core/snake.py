"""Snake entity and movement directions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from battlesnake_core.customization import Customization
from battlesnake_core.errors import MalformedState
from battlesnake_core.grid import Point

MAX_HEALTH = 100
MAX_SHOUT_LENGTH = 256

# Latency reported for a snake that failed to answer the previous turn.
TIMED_OUT_LATENCY = "0"


class Direction(enum.Enum):
    """Cardinal moves with (dx, dy) deltas; +y points up."""

    UP = (0, 1)
    DOWN = (0, -1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def wire_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, name: str) -> Direction:
        try:
            return cls[name.upper()]
        except (KeyError, AttributeError):
            raise MalformedState(f"Invalid move {name!r}.") from None

    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


@dataclass(frozen=True)
class Snake:
    """One snake as reported for a single turn.

    The head is ``body[0]``; the tail is ``body[-1]``. Construction rejects
    any snapshot whose redundant fields disagree with the body.
    """

    id: str
    name: str
    health: int
    body: tuple[Point, ...]
    head: Point
    length: int
    latency: str = TIMED_OUT_LATENCY
    shout: str = ""
    squad: str = ""
    customizations: Customization = field(default_factory=Customization)

    def __post_init__(self) -> None:
        if not self.body:
            raise MalformedState(f"Snake {self.id} has an empty body.")
        if self.head != self.body[0]:
            raise MalformedState(
                f"Snake {self.id} head {self.head} does not match body[0] "
                f"{self.body[0]}."
            )
        if self.length != len(self.body):
            raise MalformedState(
                f"Snake {self.id} length {self.length} does not match body "
                f"size {len(self.body)}."
            )
        if not 0 <= self.health <= MAX_HEALTH:
            raise MalformedState(
                f"Snake {self.id} health {self.health} outside 0-{MAX_HEALTH}."
            )
        if len(self.shout) > MAX_SHOUT_LENGTH:
            raise MalformedState(
                f"Snake {self.id} shout exceeds {MAX_SHOUT_LENGTH} characters."
            )

    @property
    def tail(self) -> Point:
        return self.body[-1]

    @property
    def timed_out(self) -> bool:
        """True when the snake failed to respond on the previous turn."""
        return self.latency == TIMED_OUT_LATENCY

    def facing(self) -> Direction | None:
        """Direction of travel inferred from the first two segments."""
        if len(self.body) < 2:
            return None
        head, neck = self.body[0], self.body[1]
        delta = (head.x - neck.x, head.y - neck.y)
        for direction in Direction:
            if direction.value == delta:
                return direction
        return None

    def occupies(self, point: Point) -> bool:
        """Check whether the snake occupies a given cell."""
        return point in self.body

    def to_dict(self) -> dict:
        """Serialize to the engine's JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "health": self.health,
            "body": [p.to_dict() for p in self.body],
            "latency": self.latency,
            "head": self.head.to_dict(),
            "length": self.length,
            "shout": self.shout,
            "squad": self.squad,
            "customizations": self.customizations.to_dict(),
        }
