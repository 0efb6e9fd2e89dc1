# vacancy_stats/logging_config.py

import os
import logging
from logging.handlers import TimedRotatingFileHandler

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
LOG_DIR = os.getenv(
    "VACANCY_STATS_LOG_DIR",
    os.path.abspath(os.path.join(BASE_DIR, "..", "logs")),
)
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
LOG_LEVEL = os.getenv("VACANCY_STATS_LOG_LEVEL", "INFO").upper()

# One dashboard load fans out into hundreds of upstream calls; keep httpx's
# per-request INFO lines out of the backend log.
NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logger(log_dir: str = LOG_DIR, level: str = LOG_LEVEL) -> logging.Logger:
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "backend.log")

    logger = logging.getLogger("vacancy_stats.backend")
    logger.setLevel(level)

    # Avoid duplicate handlers on uvicorn --reload
    logger.handlers.clear()

    # Daily files, two weeks kept
    file_handler = TimedRotatingFileHandler(
        log_file,
        when='midnight',
        backupCount=14,
        encoding='utf-8',
        utc=True
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging to %s initialized", log_file)
    return logger

# Shared by every module
logger = setup_logger()
