"""Game metadata, ruleset settings and the per-request game state."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from battlesnake_core.board import Board
from battlesnake_core.errors import MalformedState
from battlesnake_core.snake import Snake

logger = logging.getLogger(__name__)


class GameSource(str, enum.Enum):
    """Where a game was created. Unrecognized sources count as custom."""

    TOURNAMENT = "tournament"
    LEAGUE = "league"
    ARENA = "arena"
    CHALLENGE = "challenge"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | None) -> GameSource:
        try:
            return cls(value)
        except ValueError:
            if value:
                logger.debug("Treating unknown game source %r as custom.", value)
            return cls.CUSTOM


@dataclass(frozen=True)
class RoyaleSettings:
    """Royale mode: turns between hazard expansions."""

    shrink_every_n_turns: int = 0

    def __post_init__(self) -> None:
        if self.shrink_every_n_turns < 0:
            raise MalformedState("shrinkEveryNTurns must be non-negative.")


@dataclass(frozen=True)
class SquadSettings:
    """Squad mode sharing rules."""

    allow_body_collisions: bool = False
    shared_elimination: bool = False
    shared_health: bool = False
    shared_length: bool = False


@dataclass(frozen=True)
class RulesetSettings:
    """Rule knobs passed through to the decision function."""

    food_spawn_chance: int = 0
    minimum_food: int = 0
    hazard_damage_per_turn: int = 0
    royale: RoyaleSettings = field(default_factory=RoyaleSettings)
    squad: SquadSettings = field(default_factory=SquadSettings)

    def __post_init__(self) -> None:
        if not 0 <= self.food_spawn_chance <= 100:
            raise MalformedState("foodSpawnChance must be a percentage.")
        if self.minimum_food < 0:
            raise MalformedState("minimumFood must be non-negative.")
        if self.hazard_damage_per_turn < 0:
            raise MalformedState("hazardDamagePerTurn must be non-negative.")


@dataclass(frozen=True)
class Ruleset:
    """Named ruleset (standard, solo, royale, squad, ...) and its settings."""

    name: str
    version: str = ""
    settings: RulesetSettings = field(default_factory=RulesetSettings)


@dataclass(frozen=True)
class Game:
    """Static description of a game; identical on every request."""

    id: str
    ruleset: Ruleset
    map: str = ""
    timeout: int = 500
    source: GameSource = GameSource.CUSTOM

    def __post_init__(self) -> None:
        if not self.id:
            raise MalformedState("Game id must not be empty.")
        if self.timeout <= 0:
            raise MalformedState(
                f"Game {self.id} timeout must be positive, got {self.timeout}."
            )


@dataclass(frozen=True)
class GameRequest:
    """Body shared by the Start, Move and End requests.

    ``you`` is not bounds-checked here: an End may describe a snake that was
    eliminated by leaving the board. The Start and Move decoders check it.
    """

    game: Game
    turn: int
    board: Board
    you: Snake

    def __post_init__(self) -> None:
        if self.turn < 0:
            raise MalformedState(f"Turn must be non-negative, got {self.turn}.")

    @property
    def game_id(self) -> str:
        return self.game.id
