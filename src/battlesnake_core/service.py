"""Request handling independent of the HTTP transport."""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import Callable

from battlesnake_core.config import ServerConfig
from battlesnake_core.decision import (
    Decider,
    Decision,
    DecisionRunner,
    default_decider,
    fallback_move,
)
from battlesnake_core.errors import ShoutTooLong, StaleTurn, UnknownSession
from battlesnake_core.game import GameRequest
from battlesnake_core.protocol import (
    MoveResponse,
    decode_end,
    decode_move,
    decode_start,
    encode_info,
    encode_move,
)
from battlesnake_core.session import BoardSnapshot, SessionRegistry

logger = logging.getLogger(__name__)


class BattlesnakeService:
    """Decodes requests, drives the session registry and runs the decider."""

    def __init__(
        self,
        config: ServerConfig | None = None,
        registry: SessionRegistry | None = None,
        decider: Decider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config if config is not None else ServerConfig()
        self.registry = registry if registry is not None else SessionRegistry(
            shard_count=self.config.shard_count,
            max_terminated=self.config.max_terminated_sessions,
        )
        self.runner = DecisionRunner(
            decider if decider is not None else default_decider, clock=clock,
        )
        self._clock = clock

    def info(self) -> dict:
        return encode_info(self.config.appearance.to_info())

    def start(self, payload: object) -> BoardSnapshot:
        request = decode_start(
            payload, strict_turn=self.config.strict_start_turn,
        )
        return self.registry.start(request.game_id, request)

    def deadline_for(self, snapshot: BoardSnapshot) -> float:
        """Monotonic deadline leaving ``latency_margin_ms`` for transport."""
        budget_ms = max(snapshot.timeout_ms - self.config.latency_margin_ms, 0)
        return self._clock() + budget_ms / 1000.0

    async def move(self, payload: object) -> dict:
        request = decode_move(payload)
        game_id = request.game_id
        try:
            snapshot = self.registry.update(
                game_id, request.turn, request.board, request.you,
            )
        except StaleTurn:
            return self._encode(self._reanswer(request))
        except UnknownSession:
            logger.warning(
                "Move for unknown game %s (turn %d).", game_id, request.turn,
            )
            self.runner.release(game_id)
            raise

        decision = await self.runner.run(snapshot, self.deadline_for(snapshot))
        if decision.degraded:
            logger.warning(
                "Game %s turn %d answered with degraded move %s.",
                game_id, snapshot.turn, decision.direction.wire_name,
            )
        self.registry.record_decision(game_id, snapshot.turn, decision)
        return self._encode(decision)

    def _reanswer(self, request: GameRequest) -> Decision:
        """Answer a stale Move without touching registry state."""
        cached = self.registry.last_decision(request.game_id)
        if cached is not None:
            return cached
        snapshot = BoardSnapshot(
            game=request.game, turn=request.turn,
            board=request.board, you=request.you,
        )
        return dataclasses.replace(fallback_move(snapshot), degraded=True)

    def _encode(self, decision: Decision) -> dict:
        try:
            response = MoveResponse.build(
                decision.direction, decision.shout, self.config.shout,
            )
        except ShoutTooLong as exc:
            logger.warning("Dropping shout: %s", exc)
            response = MoveResponse.build(decision.direction)
        return encode_move(response)

    def end(self, payload: object) -> None:
        request = decode_end(payload)
        try:
            self.registry.end(request.game_id)
        except UnknownSession:
            logger.warning(
                "End for unknown game %s (turn %d).",
                request.game_id, request.turn,
            )
            raise
        finally:
            self.runner.release(request.game_id)

    def sweep(self) -> list[str]:
        swept = self.registry.sweep(self.config.session_idle_timeout_s)
        for game_id in swept:
            self.runner.release(game_id)
        return swept

    def close(self) -> None:
        """Release decision workers; abandoned deciders are not waited for."""
        self.runner.shutdown()
