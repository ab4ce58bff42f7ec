from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from loguru import logger

# Marks the end of a game's stream
CLOSED = None


def format_sse(data: Any) -> str:
    return f"data: {json.dumps(data)}\n\n"


@dataclass(slots=True)
class Listener:
    game_id: str
    nick: str
    queue: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=256))

    def push(self, message: Optional[dict]) -> None:
        self.queue.put_nowait(message)


class BroadcastHub:
    """Per-game fan-out of update messages to subscribed players.

    Delivery is best-effort: a listener that cannot take a message is dropped.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, Dict[str, Listener]] = {}

    def subscribe(self, game_id: str, nick: str) -> Listener:
        listener = Listener(game_id, nick)
        self._listeners.setdefault(game_id, {})[nick] = listener
        logger.debug(f"{nick} listening on {game_id}")
        return listener

    def unsubscribe(self, game_id: str, nick: str, listener: Optional[Listener] = None) -> None:
        listeners = self._listeners.get(game_id)
        if not listeners:
            return
        current = listeners.get(nick)
        # a reconnect may already have replaced this listener
        if current is not None and (listener is None or current is listener):
            del listeners[nick]
        if not listeners:
            del self._listeners[game_id]

    def listeners(self, game_id: str) -> list[str]:
        return sorted(self._listeners.get(game_id, {}))

    def publish(self, game_id: str, message: dict) -> int:
        listeners = self._listeners.get(game_id, {})
        delivered = 0
        for nick, listener in list(listeners.items()):
            try:
                listener.push(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Dropping stalled listener {nick} on {game_id}")
                self.unsubscribe(game_id, nick, listener)
        return delivered

    def close(self, game_id: str) -> None:
        listeners = self._listeners.pop(game_id, {})
        for listener in listeners.values():
            try:
                listener.push(CLOSED)
            except asyncio.QueueFull:
                logger.debug(f"{listener.nick} missed the close of {game_id}")
