import logging

from core.config import settings

logger = logging.getLogger("convivio")
logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(console_handler)


def get_child_logger(name):
    """Get a child logger of the application logger."""
    return logger.getChild(name)
