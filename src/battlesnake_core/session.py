"""Concurrency-safe registry of per-game sessions.

The id-to-session map is split across shards. A shard lock is held only
long enough to insert, look up or remove an entry; all mutation of a
session happens under that session's own lock, so updates for different
games never wait on each other and no lock is held while a decision runs.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable

from battlesnake_core.board import Board
from battlesnake_core.decision import Decision
from battlesnake_core.errors import (
    DuplicateStart,
    MalformedState,
    StaleTurn,
    UnknownSession,
)
from battlesnake_core.game import Game, GameRequest, Ruleset
from battlesnake_core.grid import CellType, Grid
from battlesnake_core.snake import Snake

logger = logging.getLogger(__name__)

_DEFAULT_SHARDS = 16
_MAX_TERMINATED = 1024


class SessionState(str, enum.Enum):
    """Lifecycle of a registered game. Unregistered ids are uninitialized."""

    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only view of one game turn handed to the decision function."""

    game: Game
    turn: int
    board: Board
    you: Snake

    @property
    def game_id(self) -> str:
        return self.game.id

    @property
    def you_id(self) -> str:
        return self.you.id

    @property
    def ruleset(self) -> Ruleset:
        return self.game.ruleset

    @property
    def timeout_ms(self) -> int:
        return self.game.timeout

    def grid(self) -> Grid:
        """Occupancy grid of the board with ``you`` always painted in."""
        grid = self.board.grid()
        for point in self.you.body:
            grid.set(point, CellType.SNAKE)
        return grid


@dataclass
class Session:
    """Registry-owned mutable record of a game's latest known state."""

    game: Game
    turn: int
    board: Board
    you: Snake
    started_at: float
    updated_at: float
    state: SessionState = SessionState.ACTIVE
    moved: bool = False
    last_decision: Decision | None = None
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False,
    )

    @property
    def you_id(self) -> str:
        return self.you.id

    def snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            game=self.game, turn=self.turn, board=self.board, you=self.you,
        )


@dataclass
class _Shard:
    lock: threading.Lock = field(default_factory=threading.Lock)
    sessions: dict[str, Session] = field(default_factory=dict)
    # Recently ended game ids, oldest first, kept to reject late messages.
    terminated: OrderedDict[str, float] = field(default_factory=OrderedDict)


class SessionRegistry:
    """Maps game ids to sessions with exclusive per-game mutation."""

    def __init__(
        self,
        shard_count: int = _DEFAULT_SHARDS,
        max_terminated: int = _MAX_TERMINATED,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1.")
        if max_terminated < 0:
            raise ValueError("max_terminated must be >= 0.")
        self._shards = [_Shard() for _ in range(shard_count)]
        self._max_terminated_per_shard = -(-max_terminated // shard_count)
        self._clock = clock

    def _shard(self, game_id: str) -> _Shard:
        return self._shards[hash(game_id) % len(self._shards)]

    def _lookup(self, game_id: str) -> Session:
        shard = self._shard(game_id)
        with shard.lock:
            session = shard.sessions.get(game_id)
        if session is None:
            raise UnknownSession(game_id)
        return session

    def _tombstone(self, shard: _Shard, game_id: str) -> None:
        """Remember an ended id. Caller holds ``shard.lock``."""
        if self._max_terminated_per_shard == 0:
            return
        shard.terminated[game_id] = self._clock()
        shard.terminated.move_to_end(game_id)
        while len(shard.terminated) > self._max_terminated_per_shard:
            shard.terminated.popitem(last=False)

    def _discard(self, game_id: str, session: Session) -> None:
        """Drop a corrupted session without touching any other game."""
        shard = self._shard(game_id)
        with shard.lock:
            if shard.sessions.get(game_id) is session:
                del shard.sessions[game_id]
                self._tombstone(shard, game_id)
        logger.error("Discarded corrupted session for game %s.", game_id)

    @staticmethod
    def _is_consistent(game_id: str, session: Session) -> bool:
        return session.game.id == game_id and session.turn >= 0

    def start(self, game_id: str, request: GameRequest) -> BoardSnapshot:
        """Register a new game from its Start request.

        Raises :class:`DuplicateStart` if the id is live or recently ended;
        the existing session is left untouched.
        """
        if request.game_id != game_id:
            raise MalformedState(
                f"Start for {game_id} carries game id {request.game_id}."
            )
        now = self._clock()
        session = Session(
            game=request.game,
            turn=request.turn,
            board=request.board,
            you=request.you,
            started_at=now,
            updated_at=now,
        )
        shard = self._shard(game_id)
        with shard.lock:
            if game_id in shard.sessions or game_id in shard.terminated:
                logger.warning("Duplicate start for game %s rejected.", game_id)
                raise DuplicateStart(game_id)
            shard.sessions[game_id] = session
            snapshot = session.snapshot()
        logger.info(
            "Session started for game %s (ruleset=%s, %dx%d, you=%s).",
            game_id, request.game.ruleset.name,
            request.board.width, request.board.height, request.you.id,
        )
        return snapshot

    def update(
        self, game_id: str, turn: int, board: Board, you: Snake,
    ) -> BoardSnapshot:
        """Apply a Move's state and return the snapshot to decide on.

        The first Move may repeat the Start turn; afterwards every turn must
        advance. Either all fields are replaced or none are.
        """
        session = self._lookup(game_id)
        with session.lock:
            if session.state is not SessionState.ACTIVE:
                raise UnknownSession(game_id)
            if self._is_consistent(game_id, session):
                stale = turn < session.turn or (
                    turn == session.turn and session.moved
                )
                if stale:
                    logger.warning(
                        "Stale turn %d for game %s (last %d).",
                        turn, game_id, session.turn,
                    )
                    raise StaleTurn(game_id, turn, session.turn)
                if you.id != session.you_id:
                    raise MalformedState(
                        f"Move for game {game_id} is for snake {you.id}, "
                        f"session belongs to {session.you_id}."
                    )
                session.turn = turn
                session.board = board
                session.you = you
                session.moved = True
                session.updated_at = self._clock()
                return session.snapshot()
            session.state = SessionState.TERMINATED
        self._discard(game_id, session)
        raise UnknownSession(game_id)

    def record_decision(
        self, game_id: str, turn: int, decision: Decision,
    ) -> None:
        """Cache the answer given for *turn* unless the game has moved on."""
        try:
            session = self._lookup(game_id)
        except UnknownSession:
            return
        with session.lock:
            if session.state is SessionState.ACTIVE and session.turn == turn:
                session.last_decision = decision

    def last_decision(self, game_id: str) -> Decision | None:
        """Most recent answer recorded for a live game, if any."""
        try:
            session = self._lookup(game_id)
        except UnknownSession:
            return None
        with session.lock:
            return session.last_decision

    def end(self, game_id: str) -> Session:
        """Remove a game's session. Later messages for the id are rejected."""
        shard = self._shard(game_id)
        with shard.lock:
            session = shard.sessions.pop(game_id, None)
            if session is None:
                raise UnknownSession(game_id)
            self._tombstone(shard, game_id)
        with session.lock:
            session.state = SessionState.TERMINATED
        logger.info(
            "Session ended for game %s at turn %d.", game_id, session.turn,
        )
        return session

    def sweep(self, max_idle: float) -> list[str]:
        """Drop sessions not updated for more than *max_idle* seconds."""
        now = self._clock()
        expired: list[Session] = []
        expired_ids: list[str] = []
        for shard in self._shards:
            with shard.lock:
                stale_ids = [
                    gid for gid, s in shard.sessions.items()
                    if now - s.updated_at > max_idle
                ]
                for gid in stale_ids:
                    expired.append(shard.sessions.pop(gid))
                    self._tombstone(shard, gid)
            expired_ids.extend(stale_ids)
        for session in expired:
            with session.lock:
                session.state = SessionState.TERMINATED
        if expired_ids:
            logger.info(
                "Swept %d idle sessions (idle > %.0fs).",
                len(expired_ids), max_idle,
            )
        return expired_ids

    def get(self, game_id: str) -> BoardSnapshot | None:
        """Snapshot of a live game, or ``None``."""
        try:
            session = self._lookup(game_id)
        except UnknownSession:
            return None
        with session.lock:
            if session.state is not SessionState.ACTIVE:
                return None
            return session.snapshot()

    def state(self, game_id: str) -> SessionState | None:
        """Lifecycle state of *game_id*; ``None`` if never seen or forgotten."""
        shard = self._shard(game_id)
        with shard.lock:
            if game_id in shard.sessions:
                return SessionState.ACTIVE
            if game_id in shard.terminated:
                return SessionState.TERMINATED
        return None

    def active_ids(self) -> list[str]:
        ids: list[str] = []
        for shard in self._shards:
            with shard.lock:
                ids.extend(shard.sessions)
        return sorted(ids)

    def __contains__(self, game_id: object) -> bool:
        if not isinstance(game_id, str):
            return False
        shard = self._shard(game_id)
        with shard.lock:
            return game_id in shard.sessions

    def __len__(self) -> int:
        return sum(len(shard.sessions) for shard in self._shards)
