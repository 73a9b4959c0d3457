import json
import logging
import os
import sys

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
    default_level: str = "INFO",
) -> None:
    """
    Configure logging for a sync run.

    Log lines go to stderr so the report printed on stdout stays clean.
    When a log_file is given, lines are also appended to it.

    Args:
        debug: If True, overrides LOG_LEVEL to DEBUG.
        log_file: Optional log file path.
        log_format: "text" (default) or "json" for structured output.
        default_level: Level used when LOG_LEVEL is unset (config file value).

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO.
    """
    env_level = os.getenv("LOG_LEVEL", default_level).upper()

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)

    if log_format == "json":
        stderr_handler.setFormatter(JsonFormatter(datefmt=_DATE_FORMAT))
    else:
        stderr_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] %(message)s",
                datefmt=_DATE_FORMAT,
            )
        )
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        if log_format == "json":
            file_handler.setFormatter(JsonFormatter(datefmt=_DATE_FORMAT))
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "[%(asctime)s] [%(levelname)s] %(name)s %(message)s",
                    datefmt=_DATE_FORMAT,
                )
            )
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers)

    # Silence HTTP libs unless DEBUG
    if log_level != logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)
        logging.getLogger("charset_normalizer").setLevel(logging.WARNING)
