import logging
import os

from fetchjobs.core.config import LOG_DIR

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger("fetchjobs")


def configure_logging(level: int = logging.INFO, log_dir: str = LOG_DIR) -> None:
    """Attach stream and file handlers to the service logger once."""
    if logger.handlers:
        return
    formatter = logging.Formatter(LOG_FORMAT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if os.path.isdir(log_dir):
        file_handler = logging.FileHandler(os.path.join(log_dir, "backend.log"))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.setLevel(level)
