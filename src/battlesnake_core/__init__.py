"""Battlesnake core — game-session state and protocol contract."""

from battlesnake_core.board import Board
from battlesnake_core.customization import Color, Customization, Head
from battlesnake_core.decision import Decider, Decision, fallback_move
from battlesnake_core.errors import (
    BattlesnakeError,
    DecisionTimeout,
    DuplicateStart,
    MalformedState,
    SessionError,
    StaleTurn,
    UnknownSession,
    UnknownVariant,
)
from battlesnake_core.game import Game, GameRequest, GameSource, Ruleset
from battlesnake_core.grid import Grid, Point, is_within, manhattan
from battlesnake_core.session import BoardSnapshot, SessionRegistry
from battlesnake_core.snake import Direction, Snake

__all__ = [
    "BattlesnakeError",
    "Board",
    "BoardSnapshot",
    "Color",
    "Customization",
    "Decider",
    "Decision",
    "DecisionTimeout",
    "Direction",
    "DuplicateStart",
    "Game",
    "GameRequest",
    "GameSource",
    "Grid",
    "Head",
    "MalformedState",
    "Point",
    "Ruleset",
    "SessionError",
    "SessionRegistry",
    "Snake",
    "StaleTurn",
    "UnknownSession",
    "UnknownVariant",
    "fallback_move",
    "is_within",
    "manhattan",
]
