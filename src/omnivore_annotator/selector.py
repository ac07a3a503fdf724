"""Best-of-N Selection Module

Samples the same instruction ``n`` times concurrently, then asks the model
to select and refine the best of its own candidates. A cheap variance
reduction for subjective outputs such as summaries, in place of a
scoring function.

Call budget: exactly ``n`` candidate calls plus one refinement call.
Input validation happens before any call is issued.
"""

import asyncio
import logging
from typing import List

from .completions import CompletionClient
from .errors import EmptyResultError, MissingInputError
from .models import Result

logger = logging.getLogger(__name__)


class BestOfNSelector:
    """Fan-out/fan-in completion selector.

    Args:
        completions: Client exposing ``complete(instruction, content, escape=...)``
        refinement_prompt: Instruction for the final select-and-refine call
    """

    def __init__(self, completions: CompletionClient, refinement_prompt: str):
        if not refinement_prompt:
            raise MissingInputError("A refinement prompt is required.")
        self.completions = completions
        self.refinement_prompt = refinement_prompt

    async def select_best(
        self, instruction: str, n: int, article_content: str
    ) -> Result[str]:
        """Generate ``n`` candidates and return the refined best one.

        All candidate calls are awaited together; there is no early exit.
        Failed candidates are dropped. If none succeed the refinement call
        is skipped.

        Args:
            instruction: Generation instruction
            n: Number of candidates (>= 1)
            article_content: Article markdown

        Raises:
            MissingInputError: If instruction or article content is empty
            ValueError: If n < 1

        Returns:
            Result with the refined, escaped annotation text
        """
        if not instruction or not article_content:
            raise MissingInputError("Instruction and article content are required.")
        if n <= 0:
            raise ValueError(f"Number of candidates must be at least 1, got {n}")

        logger.info("Generating %d candidate completions", n)
        results = await asyncio.gather(
            *(
                self.completions.complete(instruction, article_content, escape=False)
                for _ in range(n)
            )
        )

        candidates: List[str] = [r.value for r in results if r.is_ok and r.value]
        failed = n - len(candidates)
        if failed:
            logger.warning("%d/%d candidate completions failed", failed, n)
        if not candidates:
            return Result.fail(EmptyResultError(f"All {n} candidate completions failed"))

        logger.info("✓ Received %d candidates; requesting refinement", len(candidates))
        return await self.completions.complete(
            self.refinement_prompt, "\n".join(candidates)
        )
