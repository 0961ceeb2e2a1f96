import logging

logger = logging.getLogger("catalog")

if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def set_log_level(level: str) -> None:
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_child_logger(name: str) -> logging.Logger:
    """Get a child logger of the service logger, e.g. ``catalog.storage``."""
    return logger.getChild(name)
