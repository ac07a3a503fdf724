"""Run One Stage Locally

Runs a single pipeline stage for an article without going through the
webhook server. Useful for replaying a stalled article or previewing an
annotation.

Usage:
    python -m src.omnivore_annotator.scripts.run_stage \\
        --stage summary \\
        --article-id 3f0c1d2e-... \\
        --dry-run

Exits with code 0 when the stage completed, 1 when it stopped early,
2 on configuration error.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from src.omnivore_annotator.app import default_handler_factory
from src.omnivore_annotator.config import Settings
from src.omnivore_annotator.errors import ConfigurationError
from src.omnivore_annotator.logging_config import configure_logging
from src.omnivore_annotator.stages import StageOutcome, build_stages

logger = logging.getLogger(__name__)

STAGE_NAMES = ("summary", "actions", "repetition")


async def run_stage(
    settings: Settings,
    stage: str,
    article_id: str,
    article: Optional[str] = None,
    dry_run: bool = False,
) -> StageOutcome:
    """Build the stage's clients from ``settings`` and run it once."""
    definition = build_stages(settings)[stage]
    factory = default_handler_factory(settings, dry_run=dry_run)
    async with factory(definition) as handler:
        return await handler.run(article_id, article)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Run one annotation pipeline stage for an article."
    )
    parser.add_argument("--stage", choices=STAGE_NAMES, required=True)
    parser.add_argument("--article-id", required=True, help="Omnivore article id.")
    parser.add_argument(
        "--article-file",
        type=Path,
        default=None,
        help="Markdown file to use as article content instead of fetching it.",
    )
    parser.add_argument(
        "--candidates",
        type=int,
        default=None,
        help="Override the number of best-of-N candidates.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the annotation; do not post it or trigger the next stage.",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for the debug log file.",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_dir, console_level=logging.WARNING)

    article = None
    if args.article_file is not None:
        article = args.article_file.read_text(encoding="utf-8")

    try:
        settings = Settings.from_env()
        if args.candidates is not None:
            settings = Settings(**{**settings.model_dump(), "candidates": args.candidates})
        outcome = asyncio.run(
            run_stage(settings, args.stage, args.article_id, article, args.dry_run)
        )
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(outcome.model_dump(mode="json"), ensure_ascii=False, indent=2))
    sys.exit(0 if outcome.ok else 1)


if __name__ == "__main__":
    main()
