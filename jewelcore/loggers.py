import logging
import os

ROOT_LOGGER = "jewelcore"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ENV_LOG_LEVEL = "JEWEL_LOG_LEVEL"


def _configure_root():
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root
    level = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()
    root.setLevel(getattr(logging, level, logging.INFO))
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    # Streamlit configures the root logger too; keep our lines printed once.
    root.propagate = False
    return root


def get_logger(name=ROOT_LOGGER):
    """
    Logger for a jewelcore module.

    Only the package logger owns a handler; module loggers
    (jewelcore.services.bulk, ...) hand their records up to it.
    """
    root = _configure_root()
    if name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
