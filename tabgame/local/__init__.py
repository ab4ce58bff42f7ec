from .controller import LocalMatch, MatchEvent, MatchEventKind, MatchMode
from .scheduler import CallbackQueue, ImmediateScheduler, ManualScheduler, Scheduler
from .scoreboard import Scoreboard
from .selection import SelectionState

__all__ = [
    "CallbackQueue",
    "ImmediateScheduler",
    "LocalMatch",
    "ManualScheduler",
    "MatchEvent",
    "MatchEventKind",
    "MatchMode",
    "Scheduler",
    "Scoreboard",
    "SelectionState",
]
