import logging
import logging.config
import os


class ColourizedFormatter(logging.Formatter):
    """
    Formatter that colours the level name of console records.
    """
    GREY = "\x1b[90m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        orig_levelname = record.levelname

        if record.levelno in self.LEVEL_COLORS:
            record.levelname = f"{self.LEVEL_COLORS[record.levelno]}{record.levelname}{self.RESET}"

        result = super().format(record)

        # Other handlers share the same record.
        record.levelname = orig_levelname
        return result


APP_LOGGER = "duit_assistant"
LOG_FILE_NAME = "duit_assistant.log"
LOG_FILE_MAX_BYTES = 1_000_000
LOG_FILE_BACKUPS = 3
DEFAULT_LOG_LEVEL = "INFO"

# Client libraries log every request at INFO; keep them to warnings.
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def resolve_log_level(raw: str | None) -> str:
    """Normalize LOG_LEVEL, falling back to INFO for unknown names."""
    name = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        return DEFAULT_LOG_LEVEL
    return name


def get_logging_config() -> dict:
    log_level_name = resolve_log_level(os.getenv("LOG_LEVEL"))
    log_dir = os.getenv("LOG_DIR")
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "colour",
        },
    }
    root_handlers = ["console"]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(log_dir, LOG_FILE_NAME),
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
            "formatter": "plain",
        }
        root_handlers.append("file")

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, dict] = {
        # Third-party code only reaches the handlers at WARNING and above.
        "": {
            "handlers": root_handlers,
            "level": "WARNING",
        },
        APP_LOGGER: {
            "level": log_level_name,
        },
    }
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        loggers[name] = {
            "handlers": root_handlers,
            "level": "INFO",
            "propagate": False,
        }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colour": {
                "()": "duit_assistant.logger.ColourizedFormatter",
                "format": log_format,
            },
            "plain": {
                "format": log_format,
            },
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
