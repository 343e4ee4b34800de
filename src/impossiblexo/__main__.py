"""Entry point for running ImpossibleXO via ``python -m impossiblexo``."""

from __future__ import annotations

import logging
import os
from typing import Dict

import uvicorn

# Names uvicorn accepts for ``log_level``; ``trace`` has no stdlib level
LOG_LEVELS: Dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def resolve_log_level(name: str) -> int:
    """Map a uvicorn log level name to the matching ``logging`` level."""

    try:
        return LOG_LEVELS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unsupported log level {name!r}. "
            f"Choose one of {', '.join(LOG_LEVELS)}."
        ) from exc


def main() -> None:
    """Start the FastAPI-powered ImpossibleXO web server."""

    host = os.environ.get("IMPOSSIBLEXO_HOST", "0.0.0.0")
    port = int(os.environ.get("IMPOSSIBLEXO_PORT", "8000"))
    log_level = os.environ.get("IMPOSSIBLEXO_LOG_LEVEL", "info").strip().lower()

    logging.basicConfig(
        level=resolve_log_level(log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("impossiblexo.ui:app", host=host, port=port, reload=False, log_level=log_level)


if __name__ == "__main__":
    main()
