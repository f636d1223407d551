"""Decision-function contract, deadline enforcement and the fallback move."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol, Union

from battlesnake_core.errors import DecisionTimeout
from battlesnake_core.snake import Direction

if TYPE_CHECKING:
    from battlesnake_core.game import Ruleset
    from battlesnake_core.session import BoardSnapshot

logger = logging.getLogger(__name__)

# Order in which free neighbours are tried when going straight is not possible.
_FALLBACK_ORDER: tuple[Direction, ...] = (
    Direction.UP,
    Direction.RIGHT,
    Direction.DOWN,
    Direction.LEFT,
)


@dataclass(frozen=True)
class Decision:
    """A move for one turn, plus an optional shout.

    ``degraded`` marks answers produced by the fallback after the decision
    function failed or ran out of time.
    """

    direction: Direction
    shout: str | None = None
    degraded: bool = False


class Decider(Protocol):
    """Pluggable move selection.

    Called from a worker thread; must not mutate the snapshot and must be
    safe to call concurrently for different games. *deadline* is a
    :func:`time.monotonic` timestamp.
    """

    def __call__(
        self,
        snapshot: BoardSnapshot,
        rules: Ruleset,
        you_id: str,
        deadline: float,
    ) -> Decision | Direction: ...


DeciderResult = Union[Decision, Direction]


def _coerce(result: DeciderResult) -> Decision:
    if isinstance(result, Decision):
        return result
    if isinstance(result, Direction):
        return Decision(result)
    raise TypeError(f"Decider returned {type(result).__name__}, not a move.")


def fallback_move(snapshot: BoardSnapshot) -> Decision:
    """Pick a move without searching: straight ahead if free, else any free cell.

    Non-hazard cells are preferred over hazards. With no free neighbour the
    snake keeps its heading (or goes up).
    """
    grid = snapshot.grid()
    you = snapshot.you
    facing = you.facing()
    order = list(_FALLBACK_ORDER)
    if facing is not None:
        order.remove(facing)
        order.insert(0, facing)

    for allow_hazard in (False, True):
        for direction in order:
            if grid.is_free(you.head.moved(direction), allow_hazard=allow_hazard):
                return Decision(direction)
    return Decision(facing or Direction.UP)


def default_decider(
    snapshot: BoardSnapshot,
    rules: Ruleset,
    you_id: str,
    deadline: float,
) -> Decision:
    """Decider used when none is configured."""
    return fallback_move(snapshot)


class DecisionRunner:
    """Runs a decider off the event loop, one worker thread per game.

    Each game has its own single-worker executor. A decider that overruns
    its deadline keeps running in that worker; until it returns, further
    turns of the same game get the fallback move without being queued.
    Other games are unaffected.
    """

    def __init__(
        self,
        decider: Decider,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.decider = decider
        self._clock = clock
        self._lock = threading.Lock()
        self._executors: dict[str, ThreadPoolExecutor] = {}
        self._pending: dict[str, Future] = {}

    def busy(self, game_id: str) -> bool:
        """True while an earlier decision for *game_id* is still running."""
        with self._lock:
            pending = self._pending.get(game_id)
        return pending is not None and not pending.done()

    def _submit(self, snapshot: BoardSnapshot, deadline: float) -> Future:
        game_id = snapshot.game_id
        with self._lock:
            pending = self._pending.get(game_id)
            if pending is not None and not pending.done():
                raise DecisionTimeout(
                    f"Previous decision for game {game_id} is still running."
                )
            executor = self._executors.get(game_id)
            if executor is None:
                executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=f"decide-{game_id}",
                )
                self._executors[game_id] = executor
            future = executor.submit(
                self.decider, snapshot, snapshot.ruleset, snapshot.you_id,
                deadline,
            )
            self._pending[game_id] = future
        return future

    async def run(self, snapshot: BoardSnapshot, deadline: float) -> Decision:
        """Decide one turn, bounded by the monotonic *deadline*.

        A timeout, a still-running earlier decision, or an exception from the
        decider yields the fallback move flagged as degraded. The snapshot is
        immutable, so an abandoned worker cannot affect session state.
        """
        try:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise DecisionTimeout(
                    f"No time left to decide game {snapshot.game_id} turn "
                    f"{snapshot.turn}."
                )
            future = self._submit(snapshot, deadline)
            result = await asyncio.wait_for(
                asyncio.wrap_future(future), timeout=remaining,
            )
            return _coerce(result)
        except (asyncio.TimeoutError, DecisionTimeout):
            logger.warning(
                "Decision timed out for game %s turn %d; using fallback.",
                snapshot.game_id, snapshot.turn,
            )
        except Exception:
            logger.exception(
                "Decider failed for game %s turn %d; using fallback.",
                snapshot.game_id, snapshot.turn,
            )
        return dataclasses.replace(fallback_move(snapshot), degraded=True)

    def release(self, game_id: str) -> None:
        """Drop the worker for a finished game without waiting for it."""
        with self._lock:
            executor = self._executors.pop(game_id, None)
            self._pending.pop(game_id, None)
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def shutdown(self) -> None:
        """Release every game's worker."""
        with self._lock:
            game_ids = list(self._executors)
        for game_id in game_ids:
            self.release(game_id)
