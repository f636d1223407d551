"""HTTP endpoints for the engine's Info, Start, Move and End calls."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from battlesnake_core.errors import DuplicateStart, MalformedState, UnknownSession
from battlesnake_core.service import BattlesnakeService

router = APIRouter()


def _get_service(request: Request) -> BattlesnakeService:
    return request.app.state.service


@router.get("/")
async def info(request: Request) -> dict:
    """Report API version and appearance."""
    return _get_service(request).info()


@router.post("/start")
async def start(request: Request, payload: Any = Body(...)) -> dict:
    """Register a new game session."""
    try:
        _get_service(request).start(payload)
    except MalformedState as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DuplicateStart as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return {}


@router.post("/move")
async def move(request: Request, payload: Any = Body(...)) -> dict:
    """Record the turn and answer with a move."""
    try:
        return await _get_service(request).move(payload)
    except MalformedState as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UnknownSession as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/end")
async def end(request: Request, payload: Any = Body(...)) -> dict:
    """Tear down the game session."""
    try:
        _get_service(request).end(payload)
    except MalformedState as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except UnknownSession as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {}


@router.get("/sessions")
async def sessions(request: Request) -> list[str]:
    """List game ids with a live session."""
    return _get_service(request).registry.active_ids()
