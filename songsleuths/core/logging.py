"""Process-wide logging.

Services log with ``extra={"game_id": ..., "player_id": ...}`` so that one
game can be followed across requests; ``GameContextFormatter`` appends those
fields to the line as ``[key=value ...]``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from songsleuths.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

# Keys passed through ``extra=`` by the services, in display order
CONTEXT_FIELDS = ("game_id", "player_id", "tierlist", "deadline", "n_songs", "songs", "detail")


class GameContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [f"{key}={getattr(record, key)}" for key in CONTEXT_FIELDS if hasattr(record, key)]
        if not context:
            return line
        return f"{line} [{' '.join(context)}]"


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(GameContextFormatter(LOG_FORMAT))
    logging.basicConfig(level=log_level, handlers=[handler])

    logging.getLogger("songsleuths").setLevel(log_level)
    # Request lines come from uvicorn.access; httpx would repeat every catalog call
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    if settings.ENV == "test":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
