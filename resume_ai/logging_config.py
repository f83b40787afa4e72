import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional


def log_filename(logs_dir: str) -> str:
    return os.path.join(logs_dir, f'app_{datetime.now().strftime("%Y%m%d")}.log')


def setup_logging(logs_dir: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """Configure logging with file and console handlers."""
    if logs_dir is None:
        logs_dir = os.path.join(os.getcwd(), 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers.clear()

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_filename(logs_dir),
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    # Console stays quieter than the file; results go to stdout
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    console_handler.setLevel(level if level < logging.INFO else logging.WARNING)
    logger.addHandler(console_handler)

    # Set third-party loggers to WARNING to reduce noise
    for name in ("httpx", "httpcore", "urllib3", "groq", "google"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
