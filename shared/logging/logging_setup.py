from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

APP_LOGGER_NAME = "filechat_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.DEBUG if debug_mode else logging.INFO

_ANSI_RESET = "\033[0m"
_ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
_LEVEL_PREFIXES: dict[int, str] = {
    logging.ERROR: "⛔ ",
    logging.CRITICAL: "⛔ ",
    logging.WARNING: "⚠️ ",
}


class SecretMaskFilter(logging.Filter):
    """Replaces registered secrets (the user's knowledge-service key) in rendered log messages.

    Secrets are shared by all filter instances and registered at runtime via
    register_secret() as soon as the credential holder sees a key.
    """

    _secrets: set[str] = set()

    def filter(self, record):
        if not self._secrets:
            return True
        try:
            rendered = record.getMessage()
        except (TypeError, ValueError):
            return True
        masked = rendered
        for secret in self._secrets:
            masked = masked.replace(secret, secret[:4] + "****")
        if masked != rendered:
            record.msg, record.args = masked, ()
        return True


def register_secret(secret: str) -> None:
    """Never write this value to the logs in clear text from now on."""
    # very short values would mask unrelated text
    if secret and len(secret) > 4:
        SecretMaskFilter._secrets.add(secret)


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in the configured TIMEZONE and prefixes warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        prefix = _LEVEL_PREFIXES.get(record.levelno, "")
        # records pass through both handlers
        record.msg = message if message.startswith(prefix) else prefix + message
        record.args = ()
        return super().format(record)


class ConsoleFormatter(TimezoneFormatter):
    """Wraps a line in ANSI color codes if the record carries a known ``color``."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _ANSI_COLORS.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Logger wrapper whose log methods accept an optional ``color=`` keyword.

    ``logger.info("knowledge base ready", color="green")`` colors the console
    line only; the log file stays plain. Everything else is delegated to the
    wrapped logging.Logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.DEBUG, msg, *args, color=color, **kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.INFO, msg, *args, color=color, **kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.WARNING, msg, *args, color=color, **kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.ERROR, msg, *args, color=color, **kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self.log(logging.CRITICAL, msg, *args, color=color, **kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, color=color, **kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def _build_config(log_file: str, tz_name: str) -> dict:
    def formatter(cls) -> dict:
        return {"()": cls, "format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"secrets": {"()": SecretMaskFilter}},
        "formatters": {
            "standard": formatter(TimezoneFormatter),
            "colored": formatter(ConsoleFormatter),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "filters": ["secrets"],
                "level": loglevel,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "filters": ["secrets"],
                "level": loglevel,
                "filename": log_file,
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": loglevel},
    }


def setup_logging() -> ColorLogger:
    """Configure console and file logging and return the application logger.

    Logs go to stdout and to $ROOT_DIR/logs/app.log, timestamped in TIMEZONE.
    """
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")

    logging.config.dictConfig(_build_config(os.path.join(log_dir, "app.log"), tz_name))

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(APP_LOGGER_NAME))
