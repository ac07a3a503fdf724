"""Logging setup shared by the server and the stage CLI."""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(log_dir: Path = Path("logs"), console_level: int = logging.INFO) -> None:
    """Route annotator logs to the terminal and to ``<log_dir>/annotator.log``.

    The webhook server keeps the console at INFO so stage progress (``✓``
    lines) is visible; the stage CLI passes WARNING so its JSON outcome
    stays readable. The file always receives DEBUG, including each fetch
    attempt and completion request. Per-request transport chatter from the
    httpx and openai SDK loggers is held back to WARNING.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "annotator.log"

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicates if run multiple times
    logger.handlers.clear()
    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
