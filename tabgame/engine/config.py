import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


@dataclass(slots=True)
class Config:
    # --- Constants ---
    ROWS: int = 4
    NUM_STICKS: int = 4
    DEFAULT_COLUMNS: int = int(os.getenv("TAB_COLUMNS", 9))
    TRACK_LAYOUT: str = os.getenv("TAB_TRACK_LAYOUT", "symmetric")

    ROLL_VALUES: tuple[int, ...] = (1, 2, 3, 4, 6)
    EXTRA_TURN_ROLLS: tuple[int, ...] = (1, 4, 6)
    # Only a Tâb (1) lets a piece leave its start row for the first time
    FIRST_MOVE_ROLL: int = 1

    # Approximate distribution of four fair sticks (sum 0 counts as 6)
    ROLL_PROBABILITIES: dict[int, float] = field(
        default_factory=lambda: {1: 0.25, 2: 0.38, 3: 0.25, 4: 0.06, 6: 0.06}
    )

    SEARCH_DEPTH: int = int(os.getenv("TAB_SEARCH_DEPTH", 2))
    MAX_TURNS: int = int(os.getenv("TAB_MAX_TURNS", 2000))

    def __post_init__(self):
        if self.TRACK_LAYOUT not in ("symmetric", "single"):
            raise ValueError(
                f"TRACK_LAYOUT must be 'symmetric' or 'single', got {self.TRACK_LAYOUT!r}"
            )
        if self.DEFAULT_COLUMNS < 1:
            raise ValueError("DEFAULT_COLUMNS must be positive")


@dataclass(slots=True)
class Timing:
    """Delays used by the local controller to pace animations and CPU turns."""

    flip_anim_ms: int = int(os.getenv("TAB_FLIP_ANIM_MS", 1100))
    cpu_start_ms: int = 500
    cpu_think_ms: int = int(os.getenv("TAB_CPU_THINK_MS", 2500))
    cpu_after_play_ms: int = 2500
    cpu_chain_ms: int = 1200
    human_to_cpu_ms: int = 1000
    skip_msg_delay_ms: int = 1000


config = Config()
timing = Timing()
