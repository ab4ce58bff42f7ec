import argparse
import sys

import uvicorn
from loguru import logger

from .app import create_app
from .config import ServerConfig


def main() -> None:
    defaults = ServerConfig()
    parser = argparse.ArgumentParser(description="Run the Tâb multiplayer server")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--data-dir", default=defaults.data_dir)
    parser.add_argument(
        "--timeout", type=float, default=defaults.inactivity_timeout_s, help="Inactivity forfeit in seconds"
    )
    parser.add_argument("--log-level", default=defaults.log_level)
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    cfg = ServerConfig(
        data_dir=args.data_dir,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        inactivity_timeout_s=args.timeout,
    )
    logger.info(f"Starting Tâb server on {cfg.host}:{cfg.port}")
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
