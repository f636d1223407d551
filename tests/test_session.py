"""Tests for the session registry."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from payloads import request_payload, snake_payload

from battlesnake_core.decision import Decision
from battlesnake_core.errors import (
    DuplicateStart,
    MalformedState,
    StaleTurn,
    UnknownSession,
)
from battlesnake_core.protocol import decode_move, decode_start
from battlesnake_core.session import SessionRegistry, SessionState
from battlesnake_core.snake import Direction


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _start(registry, game_id="g1", **kwargs):
    request = decode_start(request_payload(game_id=game_id, **kwargs))
    return registry.start(game_id, request)


def _update(registry, game_id="g1", turn=1, **kwargs):
    request = decode_move(request_payload(game_id=game_id, turn=turn, **kwargs))
    return registry.update(game_id, request.turn, request.board, request.you)


@pytest.fixture()
def registry():
    return SessionRegistry(shard_count=4)


class TestStart:
    def test_start_creates_session(self, registry):
        snapshot = _start(registry)
        assert "g1" in registry
        assert len(registry) == 1
        assert snapshot.turn == 0
        assert snapshot.you_id == "s1"
        assert registry.state("g1") is SessionState.ACTIVE

    def test_duplicate_start_rejected(self, registry):
        _start(registry)
        _update(registry, turn=3)
        with pytest.raises(DuplicateStart):
            _start(registry)
        assert registry.get("g1").turn == 3

    def test_start_after_end_rejected(self, registry):
        _start(registry)
        registry.end("g1")
        with pytest.raises(DuplicateStart):
            _start(registry)

    def test_game_id_must_match(self, registry):
        request = decode_start(request_payload(game_id="g2"))
        with pytest.raises(MalformedState):
            registry.start("g1", request)

    def test_invalid_construction(self):
        with pytest.raises(ValueError, match="shard_count"):
            SessionRegistry(shard_count=0)
        with pytest.raises(ValueError, match="max_terminated"):
            SessionRegistry(max_terminated=-1)


class TestUpdate:
    def test_update_advances_turn(self, registry):
        _start(registry)
        snapshot = _update(registry, turn=1)
        assert snapshot.turn == 1
        assert registry.get("g1").turn == 1

    def test_first_move_may_repeat_start_turn(self, registry):
        _start(registry)
        assert _update(registry, turn=0).turn == 0
        with pytest.raises(StaleTurn):
            _update(registry, turn=0)

    def test_out_of_order_turn_is_stale(self, registry):
        _start(registry)
        _update(registry, turn=5)
        with pytest.raises(StaleTurn) as exc_info:
            _update(registry, turn=3)
        assert exc_info.value.turn == 3
        assert exc_info.value.last_turn == 5
        assert registry.get("g1").turn == 5

    def test_duplicate_turn_is_stale(self, registry):
        _start(registry)
        _update(registry, turn=5)
        with pytest.raises(StaleTurn):
            _update(registry, turn=5)

    def test_stale_update_keeps_board(self, registry):
        _start(registry)
        _update(registry, turn=5, food=[(1, 1)])
        with pytest.raises(StaleTurn):
            _update(registry, turn=4, food=[(2, 2)])
        board = registry.get("g1").board
        assert {(p.x, p.y) for p in board.food} == {(1, 1)}

    def test_update_before_start(self, registry):
        with pytest.raises(UnknownSession):
            _update(registry, turn=1)

    def test_update_after_end(self, registry):
        _start(registry)
        registry.end("g1")
        with pytest.raises(UnknownSession):
            _update(registry, turn=3)

    def test_foreign_snake_rejected(self, registry):
        _start(registry)
        with pytest.raises(MalformedState, match="belongs to"):
            _update(registry, turn=1, you=snake_payload("intruder"))
        assert registry.get("g1").turn == 0

    def test_snapshot_is_frozen(self, registry):
        _start(registry)
        snapshot = _update(registry, turn=1)
        with pytest.raises(AttributeError):
            snapshot.turn = 99
        _update(registry, turn=2)
        assert snapshot.turn == 1


class TestEnd:
    def test_end_removes_session(self, registry):
        _start(registry)
        session = registry.end("g1")
        assert session.state is SessionState.TERMINATED
        assert "g1" not in registry
        assert registry.get("g1") is None
        assert registry.state("g1") is SessionState.TERMINATED

    def test_end_unknown(self, registry):
        with pytest.raises(UnknownSession):
            registry.end("nope")

    def test_end_twice(self, registry):
        _start(registry)
        registry.end("g1")
        with pytest.raises(UnknownSession):
            registry.end("g1")

    def test_tombstones_bounded(self):
        registry = SessionRegistry(shard_count=1, max_terminated=2)
        for gid in ("a", "b", "c"):
            _start(registry, game_id=gid)
            registry.end(gid)
        assert registry.state("a") is None
        assert registry.state("c") is SessionState.TERMINATED
        _start(registry, game_id="a")
        assert "a" in registry


class TestSweep:
    def test_sweep_removes_idle(self):
        clock = FakeClock()
        registry = SessionRegistry(clock=clock)
        _start(registry, game_id="idle")
        _start(registry, game_id="busy")
        clock.now += 100
        _update(registry, game_id="busy", turn=1)
        clock.now += 50
        swept = registry.sweep(max_idle=120)
        assert swept == ["idle"]
        assert registry.active_ids() == ["busy"]

    def test_swept_game_rejects_late_move(self):
        clock = FakeClock()
        registry = SessionRegistry(clock=clock)
        _start(registry)
        clock.now += 500
        registry.sweep(max_idle=60)
        with pytest.raises(UnknownSession):
            _update(registry, turn=1)

    def test_sweep_nothing_idle(self, registry):
        _start(registry)
        assert registry.sweep(max_idle=60) == []
        assert len(registry) == 1


class TestDecisionCache:
    def test_record_and_read(self, registry):
        _start(registry)
        _update(registry, turn=1)
        registry.record_decision("g1", 1, Decision(Direction.LEFT))
        assert registry.last_decision("g1") == Decision(Direction.LEFT)

    def test_record_ignored_when_turn_moved_on(self, registry):
        _start(registry)
        _update(registry, turn=1)
        _update(registry, turn=2)
        registry.record_decision("g1", 1, Decision(Direction.LEFT))
        assert registry.last_decision("g1") is None

    def test_record_for_unknown_game_is_noop(self, registry):
        registry.record_decision("ghost", 1, Decision(Direction.UP))
        assert registry.last_decision("ghost") is None


class TestCorruption:
    def test_corrupted_session_discarded_alone(self, registry):
        _start(registry, game_id="bad")
        _start(registry, game_id="good")
        shard = registry._shard("bad")
        shard.sessions["bad"].turn = -7
        with pytest.raises(UnknownSession):
            _update(registry, game_id="bad", turn=1)
        assert "bad" not in registry
        assert _update(registry, game_id="good", turn=1).turn == 1


class TestScenario:
    def test_full_lifecycle(self, registry):
        snapshot = _start(registry, you=snake_payload(body=[(5, 5)], health=100))
        assert snapshot.board.width == 11
        assert _update(registry, turn=1).turn == 1
        registry.end("g1")
        with pytest.raises(UnknownSession):
            _update(registry, turn=3)

    def test_move_and_end_before_start(self, registry):
        with pytest.raises(UnknownSession):
            _update(registry, turn=0)
        with pytest.raises(UnknownSession):
            registry.end("g1")


class TestConcurrency:
    def test_interleaved_games_stay_isolated(self):
        registry = SessionRegistry(shard_count=2)
        game_ids = [f"game-{i}" for i in range(8)]
        requests = {
            gid: [
                decode_move(request_payload(game_id=gid, turn=t))
                for t in range(1, 41)
            ]
            for gid in game_ids
        }
        for gid in game_ids:
            _start(registry, game_id=gid)

        observed: dict[str, list[int]] = {gid: [] for gid in game_ids}
        barrier = threading.Barrier(len(game_ids))

        def play(gid: str) -> None:
            barrier.wait()
            for request in requests[gid]:
                snapshot = registry.update(
                    gid, request.turn, request.board, request.you,
                )
                assert snapshot.game_id == gid
                observed[gid].append(snapshot.turn)

        with ThreadPoolExecutor(max_workers=len(game_ids)) as pool:
            for future in [pool.submit(play, gid) for gid in game_ids]:
                future.result()

        for gid in game_ids:
            assert observed[gid] == list(range(1, 41))
            assert registry.get(gid).turn == 40

    def test_racing_duplicates_apply_once(self):
        registry = SessionRegistry()
        _start(registry)
        request = decode_move(request_payload(turn=1))
        outcomes: list[str] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def deliver() -> None:
            barrier.wait()
            try:
                registry.update("g1", request.turn, request.board, request.you)
                result = "applied"
            except StaleTurn:
                result = "stale"
            with lock:
                outcomes.append(result)

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(deliver) for _ in range(8)]:
                future.result()

        assert outcomes.count("applied") == 1
        assert outcomes.count("stale") == 7
