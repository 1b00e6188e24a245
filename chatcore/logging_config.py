# chatcore/logging_config.py

"""
JSON logging for the chatcore console session.

Adapters log payload summaries, response status and skipped stream fragments
through per-module loggers (`chatcore.adapters.ollama_adapter`, ...). This
module routes all of them through one `python-json-logger` handler on
stderr, so the streamed answer on stdout stays clean.

💡 Driven by the LOG_LEVEL setting; DEBUG also lets httpx request logs through.
"""

import logging
import sys
from pythonjsonlogger.json import JsonFormatter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Install the chatcore log handler on the root logger.

    Existing root handlers are dropped, so calling this twice does not
    duplicate output.

    Args:
        level (str): Level name as accepted by `logging`, e.g. "DEBUG".
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)
