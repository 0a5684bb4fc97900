"""Entry point for running TicTacBot via ``python -m tictacbot``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered TicTacBot web server."""

    level = os.environ.get("TICTACBOT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("TICTACBOT_HOST", "0.0.0.0")
    port = int(os.environ.get("TICTACBOT_PORT", "8000"))
    uvicorn.run("tictacbot.ui:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
