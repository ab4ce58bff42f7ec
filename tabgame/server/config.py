import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _origins() -> list[str]:
    raw = os.getenv("TAB_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(slots=True)
class ServerConfig:
    data_dir: str = os.getenv("TAB_DATA_DIR", "data")
    host: str = os.getenv("TAB_HOST", "0.0.0.0")
    port: int = int(os.getenv("TAB_PORT", 8008))
    log_level: str = os.getenv("TAB_LOG_LEVEL", "INFO")

    # A player who does not act within this window forfeits the game
    inactivity_timeout_s: float = float(os.getenv("TAB_INACTIVITY_TIMEOUT", 120))
    sweep_interval_s: float = float(os.getenv("TAB_SWEEP_INTERVAL", 1))
    ranking_limit: int = 10
    cors_origins: list[str] = field(default_factory=_origins)

    def __post_init__(self):
        if self.inactivity_timeout_s <= 0:
            raise ValueError("inactivity_timeout_s must be positive")
        if self.sweep_interval_s <= 0:
            raise ValueError("sweep_interval_s must be positive")


server_config = ServerConfig()
