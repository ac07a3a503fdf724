"""Webhook Server Entry Point

Serves the three pipeline stage webhooks with uvicorn. Settings come from
the environment (and a ``.env`` file when present).

Usage:
    python -m src.run_server --host 0.0.0.0 --port 8000
"""

import argparse
import logging
from pathlib import Path

import uvicorn

from src.omnivore_annotator.app import create_app
from src.omnivore_annotator.config import Settings
from src.omnivore_annotator.logging_config import configure_logging


def main(argv=None) -> int:
    """
    CLI entrypoint for the annotation webhook server.

    Returns a Unix-style exit code (0 on clean shutdown, non-zero on failure).
    """
    parser = argparse.ArgumentParser(
        description="Omnivore annotation pipeline webhook server"
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind.")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Optional .env file to load before reading settings.",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for the debug log file.",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_dir)
    logger = logging.getLogger(__name__)

    try:
        settings = Settings.from_env(str(args.env_file) if args.env_file else None)
    except Exception as e:
        logger.exception(f"Invalid configuration: {e}")
        return 2

    if not settings.omnivore_api_key:
        logger.warning("OMNIVORE_API_KEY is not set; every stage request will fail")

    logger.info("=== Starting Omnivore annotator on %s:%d ===", args.host, args.port)
    logger.info("Model profile: %s", settings.openai_settings or settings.openai_model)
    logger.info("Candidates per annotation: %d", settings.candidates)
    logger.info("Actions stage URL: %s", settings.actions_url)
    logger.info("Repetition stage URL: %s", settings.repetition_url)

    try:
        uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)
    except Exception as e:
        logger.exception(f"Server failed with an unhandled exception: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
