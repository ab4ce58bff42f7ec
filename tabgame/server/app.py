"""
Tâb multiplayer server - FastAPI application.

POST endpoints take JSON bodies and answer ``{}`` (or a small payload) on
success and ``{"error": ...}`` on failure; ``GET /update`` is a server-sent
event stream of game deltas, closed after the ``winner`` message.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from .broadcast import CLOSED, format_sse
from .config import ServerConfig, server_config
from .errors import InvalidRequestError, OperationResult, TabServerError, UnknownGameError
from .game_manager import GameManager
from .ranking import RankingBoard
from .storage import JsonStore
from .users import UserRegistry


class Credentials(BaseModel):
    nick: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RankingRequest(BaseModel):
    group: int = Field(..., gt=0)
    size: int = Field(..., gt=0)

    @field_validator("size")
    @classmethod
    def size_is_odd(cls, v: int) -> int:
        if v % 2 == 0:
            raise ValueError(f"Invalid size '{v}'")
        return v


class JoinRequest(Credentials, RankingRequest):
    pass


class GameAction(Credentials):
    game: str = Field(..., min_length=1)


class NotifyRequest(GameAction):
    # type-checked by the game manager so clients get the game's own messages
    cell: Any = None


def _respond(result: OperationResult, **extra: Any) -> JSONResponse:
    if not result.success:
        return JSONResponse(status_code=result.status, content={"error": result.error})
    return JSONResponse(content=extra)


async def _sweep_forever(manager: GameManager, interval_s: float) -> None:
    while True:
        await asyncio.sleep(interval_s)
        manager.sweep_timeouts()


def create_app(
    cfg: Optional[ServerConfig] = None,
    *,
    manager: Optional[GameManager] = None,
    users: Optional[UserRegistry] = None,
) -> FastAPI:
    cfg = cfg or server_config
    data_dir = cfg.data_dir
    rankings = manager.rankings if manager else RankingBoard(
        JsonStore(os.path.join(data_dir, "rankings.json")), limit=cfg.ranking_limit
    )
    manager = manager or GameManager(
        JsonStore(os.path.join(data_dir, "games.json")),
        rankings=rankings,
        inactivity_timeout_s=cfg.inactivity_timeout_s,
    )
    users = users or UserRegistry(JsonStore(os.path.join(data_dir, "users.json")))

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(_sweep_forever(manager, cfg.sweep_interval_s))
        logger.info(f"Tâb server ready (data in {data_dir})")
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            manager.save()

    app = FastAPI(title="Tâb Server", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.state.manager = manager
    app.state.users = users
    app.state.rankings = rankings

    @app.exception_handler(TabServerError)
    async def tab_error(request: Request, exc: TabServerError) -> JSONResponse:
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "body"
            message = f"{field}: {first.get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.post("/register")
    async def register(req: Credentials) -> JSONResponse:
        users.register(req.nick, req.password)
        return JSONResponse(content={})

    @app.post("/ranking")
    async def ranking(req: RankingRequest) -> JSONResponse:
        return JSONResponse(content={"ranking": rankings.ranking(req.group, req.size)})

    @app.post("/join")
    async def join(req: JoinRequest) -> JSONResponse:
        users.authenticate(req.nick, req.password)
        result = manager.join(req.group, req.nick, req.size)
        return _respond(result, game=result.data.get("game"))

    @app.post("/leave")
    async def leave(req: GameAction) -> JSONResponse:
        users.authenticate(req.nick, req.password)
        return _respond(manager.leave_game(req.game, req.nick))

    @app.post("/roll")
    async def roll(req: GameAction) -> JSONResponse:
        users.authenticate(req.nick, req.password)
        return _respond(manager.roll_dice(req.game, req.nick))

    @app.post("/notify")
    async def notify(req: NotifyRequest) -> JSONResponse:
        users.authenticate(req.nick, req.password)
        return _respond(manager.make_move(req.game, req.nick, req.cell))

    @app.post("/pass")
    async def pass_turn(req: GameAction) -> JSONResponse:
        users.authenticate(req.nick, req.password)
        return _respond(manager.pass_turn(req.game, req.nick))

    @app.get("/update")
    async def update(game: str = "", nick: str = "") -> StreamingResponse:
        if not game or not nick:
            raise InvalidRequestError("Missing parameters")
        if not manager.knows(game):
            raise UnknownGameError("Invalid game reference")

        snapshot = manager.snapshot(game)
        finished = "winner" in snapshot
        listener = None if finished else manager.hub.subscribe(game, nick)

        async def stream():
            try:
                yield format_sse(snapshot)
                if listener is None:
                    return
                while True:
                    message = await listener.queue.get()
                    if message is CLOSED:
                        break
                    yield format_sse(message)
            finally:
                if listener is not None:
                    manager.hub.unsubscribe(game, nick, listener)

        return StreamingResponse(
            stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return app
