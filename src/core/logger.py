import json
import logging
import logging.config
import sys

from core.config import configs


class JsonFormatter(logging.Formatter):
    """
    Formatter for logging in JSON format.
    """

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


# Third-party loggers that are too chatty at DEBUG.
NOISY_LOGGERS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "uvicorn.error": "INFO",
    "sqlalchemy.engine": "WARNING",  # INFO shows SQL, DEBUG shows rows
    "aiosqlite": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "piexif": "WARNING",
}


def _build_config(formatter: dict, handler_name: str, app_level: str) -> dict:
    handler = {
        "class": "logging.StreamHandler",
        "stream": sys.stdout,
        "formatter": "main",
    }
    loggers = {
        # Root Logger: Catches everything not caught by specific loggers
        "root": {"level": configs.LOG_LEVEL, "handlers": [handler_name]},
        # Application Logger
        "app": {"level": app_level, "handlers": [handler_name], "propagate": False},
    }
    for name, level in NOISY_LOGGERS.items():
        loggers[name] = {"level": level, "handlers": [handler_name], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"main": formatter},
        "handlers": {handler_name: handler},
        "loggers": loggers,
    }


# -----------------------------------------------------------------------------
# Development Logging Configuration
# -----------------------------------------------------------------------------
# Console-friendly, readable text format.
DEV_LOGGING_CONFIG = _build_config(
    {
        "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
    },
    handler_name="console",
    app_level="INFO",
)

# -----------------------------------------------------------------------------
# Production Logging Configuration
# -----------------------------------------------------------------------------
# JSON structured, machine-parsable, suitable for aggregation.
PROD_LOGGING_CONFIG = _build_config(
    {"()": JsonFormatter, "datefmt": "%Y-%m-%dT%H:%M:%S%z"},
    handler_name="console_json",
    app_level=configs.LOG_LEVEL,
)


def setup_logging():
    """
    Set up logging configuration based on the environment.
    """
    env = configs.ENVIRONMENT.lower()

    if env == "production":
        log_config = PROD_LOGGING_CONFIG
    else:
        log_config = DEV_LOGGING_CONFIG

    logging.config.dictConfig(log_config)

    logger = logging.getLogger("app")
    logger.info(f"Logging setup complete for {env} environment with level {configs.LOG_LEVEL}")
