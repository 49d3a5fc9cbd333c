from __future__ import annotations
import io
import json
import logging
import os
from logging.config import dictConfig

DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_STDOUT_ONLY = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "std": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
    },
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "std",
            "level": DEFAULT_LEVEL,
        }
    },
    "root": {"level": DEFAULT_LEVEL, "handlers": ["stdout"]},
}


def _load_dict_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as fh:
        text = fh.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        import yaml

        return yaml.safe_load(io.StringIO(text))


def setup_logging(app_name: str = "", config_path_env: str = "LUCIDWALLET_LOGCFG") -> None:
    """
    Call this once from the process entrypoint (CLI, HTTP server, test harness).

    - If LUCIDWALLET_LOGCFG points to a JSON or YAML dictConfig file, it is loaded.
    - Otherwise a stdout-only config is applied to the root logger.

    Library modules never configure handlers themselves; they only create
    named loggers that propagate to root.
    """
    cfg_path = os.getenv(config_path_env, "").strip()
    if cfg_path and os.path.exists(cfg_path):
        dictConfig(_load_dict_config(cfg_path))
    else:
        dictConfig(_STDOUT_ONLY)

    if app_name:
        logging.getLogger(app_name).debug("logging configured for %s", app_name)


def ensure_logger(module: str, level: str = "INFO") -> logging.Logger:
    """
    Gets a module logger and sets its level.

    Assumes `setup_logging()` has configured the root handler (or that the
    host application owns logging). No handler is attached here, records
    propagate to root.

    Args:
        module (str): Logger name (e.g., "lucidwallet.execution.engine")
        level (str): Log level (default: INFO)

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(module)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = True
    return logger
