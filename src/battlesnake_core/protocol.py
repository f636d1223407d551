"""Wire schemas for the engine's requests and responses.

The Pydantic models mirror the engine's JSON field names verbatim
(``foodSpawnChance``, ``shrinkEveryNTurns`` ...). Decoding validates the
shape with Pydantic, then projects onto the frozen entity dataclasses,
which enforce the board invariants. Either failure surfaces as
:class:`MalformedState`.
"""

from __future__ import annotations

import enum
import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from battlesnake_core import customization
from battlesnake_core.board import Board
from battlesnake_core.customization import Color, Customization
from battlesnake_core.errors import MalformedState, ShoutTooLong
from battlesnake_core.game import (
    Game,
    GameRequest,
    GameSource,
    RoyaleSettings,
    Ruleset,
    RulesetSettings,
    SquadSettings,
)
from battlesnake_core.grid import Point
from battlesnake_core.snake import MAX_SHOUT_LENGTH, Direction, Snake

logger = logging.getLogger(__name__)

API_VERSION = "1"


class ShoutPolicy(str, enum.Enum):
    """What to do with an outbound shout longer than the engine allows."""

    TRUNCATE = "truncate"
    REJECT = "reject"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class PointModel(_WireModel):
    x: int
    y: int

    def to_entity(self) -> Point:
        return Point(self.x, self.y)


class CustomizationsModel(_WireModel):
    color: str = "#000000"
    head: str = "default"
    tail: str | int | None = None

    def to_entity(self) -> Customization:
        return Customization(
            color=Color.parse(self.color),
            head=customization.parse(self.head),
            tail=self.tail,
        )


class SnakeModel(_WireModel):
    id: str
    name: str = ""
    health: int
    body: list[PointModel]
    latency: str | int = "0"
    head: PointModel
    length: int
    shout: str = ""
    squad: str = ""
    customizations: CustomizationsModel = Field(
        default_factory=CustomizationsModel,
    )

    def to_entity(self) -> Snake:
        return Snake(
            id=self.id,
            name=self.name,
            health=self.health,
            body=tuple(p.to_entity() for p in self.body),
            head=self.head.to_entity(),
            length=self.length,
            latency=str(self.latency),
            shout=self.shout,
            squad=self.squad,
            customizations=self.customizations.to_entity(),
        )


class RoyaleModel(_WireModel):
    shrink_every_n_turns: int = Field(default=0, alias="shrinkEveryNTurns")


class SquadModel(_WireModel):
    allow_body_collisions: bool = Field(default=False, alias="allowBodyCollisions")
    shared_elimination: bool = Field(default=False, alias="sharedElimination")
    shared_health: bool = Field(default=False, alias="sharedHealth")
    shared_length: bool = Field(default=False, alias="sharedLength")


class SettingsModel(_WireModel):
    food_spawn_chance: int = Field(default=0, alias="foodSpawnChance")
    minimum_food: int = Field(default=0, alias="minimumFood")
    hazard_damage_per_turn: int = Field(default=0, alias="hazardDamagePerTurn")
    royale: RoyaleModel = Field(default_factory=RoyaleModel)
    squad: SquadModel = Field(default_factory=SquadModel)

    def to_entity(self) -> RulesetSettings:
        return RulesetSettings(
            food_spawn_chance=self.food_spawn_chance,
            minimum_food=self.minimum_food,
            hazard_damage_per_turn=self.hazard_damage_per_turn,
            royale=RoyaleSettings(
                shrink_every_n_turns=self.royale.shrink_every_n_turns,
            ),
            squad=SquadSettings(
                allow_body_collisions=self.squad.allow_body_collisions,
                shared_elimination=self.squad.shared_elimination,
                shared_health=self.squad.shared_health,
                shared_length=self.squad.shared_length,
            ),
        )


class RulesetModel(_WireModel):
    name: str
    version: str = ""
    settings: SettingsModel = Field(default_factory=SettingsModel)


class GameModel(_WireModel):
    id: str
    ruleset: RulesetModel
    map: str = ""
    timeout: int = 500
    source: str = ""

    def to_entity(self) -> Game:
        return Game(
            id=self.id,
            ruleset=Ruleset(
                name=self.ruleset.name,
                version=self.ruleset.version,
                settings=self.ruleset.settings.to_entity(),
            ),
            map=self.map,
            timeout=self.timeout,
            source=GameSource.parse(self.source),
        )


class BoardModel(_WireModel):
    height: int
    width: int
    food: list[PointModel] = Field(default_factory=list)
    hazards: list[PointModel] = Field(default_factory=list)
    snakes: list[SnakeModel] = Field(default_factory=list)

    def to_entity(self) -> Board:
        return Board(
            width=self.width,
            height=self.height,
            food=frozenset(p.to_entity() for p in self.food),
            hazards=frozenset(p.to_entity() for p in self.hazards),
            snakes=tuple(s.to_entity() for s in self.snakes),
        )


class GameRequestModel(_WireModel):
    """Body of ``POST /start``, ``POST /move`` and ``POST /end``."""

    game: GameModel
    turn: int
    board: BoardModel
    you: SnakeModel

    def to_entity(self) -> GameRequest:
        return GameRequest(
            game=self.game.to_entity(),
            turn=self.turn,
            board=self.board.to_entity(),
            you=self.you.to_entity(),
        )


def _decode(payload: object, *, check_you: bool = True) -> GameRequest:
    try:
        model = GameRequestModel.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise MalformedState(
            f"Invalid request at {location}: {first['msg']} "
            f"({exc.error_count()} error(s))."
        ) from exc
    request = model.to_entity()
    if check_you:
        request.board.check_snake(request.you)
    return request


def decode_start(payload: object, *, strict_turn: bool = False) -> GameRequest:
    """Decode a Start request. A non-zero turn is an anomaly."""
    request = _decode(payload)
    if request.turn != 0:
        if strict_turn:
            raise MalformedState(
                f"Start for game {request.game_id} has turn {request.turn}, "
                "expected 0."
            )
        logger.warning(
            "Start for game %s arrived with turn %d.",
            request.game_id, request.turn,
        )
    return request


def decode_move(payload: object) -> GameRequest:
    """Decode a Move request."""
    return _decode(payload)


def decode_end(payload: object) -> GameRequest:
    """Decode an End request. ``you`` may lie off the board after elimination."""
    return _decode(payload, check_you=False)


def encode_game_request(request: GameRequest) -> dict:
    """Project a decoded request back onto the engine's JSON shape."""
    game = request.game
    settings = game.ruleset.settings
    return {
        "game": {
            "id": game.id,
            "ruleset": {
                "name": game.ruleset.name,
                "version": game.ruleset.version,
                "settings": {
                    "foodSpawnChance": settings.food_spawn_chance,
                    "minimumFood": settings.minimum_food,
                    "hazardDamagePerTurn": settings.hazard_damage_per_turn,
                    "royale": {
                        "shrinkEveryNTurns": settings.royale.shrink_every_n_turns,
                    },
                    "squad": {
                        "allowBodyCollisions": settings.squad.allow_body_collisions,
                        "sharedElimination": settings.squad.shared_elimination,
                        "sharedHealth": settings.squad.shared_health,
                        "sharedLength": settings.squad.shared_length,
                    },
                },
            },
            "map": game.map,
            "timeout": game.timeout,
            "source": game.source.value,
        },
        "turn": request.turn,
        "board": request.board.to_dict(),
        "you": request.you.to_dict(),
    }


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class InfoResponse(_WireModel):
    """Body of ``GET /``. Unset fields are left for the engine to default."""

    apiversion: Literal["1"] = API_VERSION
    author: str | None = None
    color: str | None = None
    head: str | None = None
    tail: str | int | None = None
    version: str | None = None

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: str | None) -> str | None:
        if value is not None:
            Color.parse(value)
        return value

    @field_validator("head")
    @classmethod
    def _check_head(cls, value: str | None) -> str | None:
        if value is not None:
            customization.parse(value)
        return value

    @classmethod
    def build(
        cls,
        author: str | None = None,
        color: str | None = None,
        head: str | None = None,
        tail: str | int | None = None,
        version: str | None = None,
    ) -> InfoResponse:
        """Build an Info body, raising the domain error for a bad appearance.

        Constructing the model directly reports the same problems wrapped in
        a Pydantic ``ValidationError``; this raises :class:`MalformedState`
        or :class:`UnknownVariant` as-is.
        """
        if color is not None:
            Color.parse(color)
        if head is not None:
            customization.parse(head)
        return cls(
            author=author, color=color, head=head, tail=tail, version=version,
        )


class MoveResponse(_WireModel):
    """Body of the ``POST /move`` answer."""

    move: Literal["up", "down", "left", "right"]
    shout: str | None = Field(default=None, max_length=MAX_SHOUT_LENGTH)

    @classmethod
    def build(
        cls,
        direction: Direction,
        shout: str | None = None,
        policy: ShoutPolicy = ShoutPolicy.TRUNCATE,
    ) -> MoveResponse:
        """Build a response, applying *policy* to an over-long shout."""
        if shout is not None and len(shout) > MAX_SHOUT_LENGTH:
            if policy == ShoutPolicy.REJECT:
                raise ShoutTooLong(
                    f"Shout of {len(shout)} characters exceeds "
                    f"{MAX_SHOUT_LENGTH}."
                )
            logger.info(
                "Truncating %d character shout to %d.",
                len(shout), MAX_SHOUT_LENGTH,
            )
            shout = shout[:MAX_SHOUT_LENGTH]
        return cls(move=direction.wire_name, shout=shout)


def encode_info(info: InfoResponse) -> dict:
    """Serialize an Info response, omitting unset optional fields."""
    return info.model_dump(exclude_none=True)


def encode_move(move: MoveResponse) -> dict:
    """Serialize a Move response, omitting an empty shout."""
    return move.model_dump(exclude_none=True)
