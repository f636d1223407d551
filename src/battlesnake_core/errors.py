"""Exception hierarchy for protocol decoding and session management."""

from __future__ import annotations


class BattlesnakeError(Exception):
    """Base class for every error raised by the core."""


class MalformedState(BattlesnakeError, ValueError):
    """Decoded input violates a structural or board invariant."""


class UnknownVariant(MalformedState):
    """A cosmetic name is not part of the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown customization variant {name!r}.")
        self.name = name


class ShoutTooLong(MalformedState):
    """An outbound shout exceeds the 256 character limit."""


class SessionError(BattlesnakeError):
    """Base class for registry failures scoped to a single game id."""

    def __init__(self, game_id: str, message: str) -> None:
        super().__init__(message)
        self.game_id = game_id


class UnknownSession(SessionError):
    """Move or End for a game id with no live session."""

    def __init__(self, game_id: str) -> None:
        super().__init__(game_id, f"No active session for game {game_id}.")


class DuplicateStart(SessionError):
    """Start for a game id that is live or already terminated."""

    def __init__(self, game_id: str) -> None:
        super().__init__(game_id, f"Game {game_id} has already been started.")


class StaleTurn(SessionError):
    """A Move whose turn does not advance the session."""

    def __init__(self, game_id: str, turn: int, last_turn: int) -> None:
        super().__init__(
            game_id,
            f"Turn {turn} for game {game_id} is stale (last turn {last_turn}).",
        )
        self.turn = turn
        self.last_turn = last_turn


class DecisionTimeout(BattlesnakeError, TimeoutError):
    """The decision function did not return before the turn deadline."""
