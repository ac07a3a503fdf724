"""Stage Handler Module

One pipeline stage = fetch article -> produce annotation -> post annotation
-> trigger next stage -> respond. Three stages are chained:

  summary     (Omnivore page-created webhook)  -> actions
  actions     (handoff from summary)           -> repetition
  repetition  (handoff from actions)           -> end

The handler is linear with no retries of its own; retries live in the
Omnivore client. A failure at any step is logged and reported in the
returned ``StageOutcome`` with the last state reached. Side effects that
already happened (a posted highlight) are not rolled back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import httpx
from pydantic import BaseModel

from .completions import CompletionClient
from .config import Settings
from .errors import EmptyResultError
from .handoff import next_stage_payload, trigger_next_stage
from .omnivore import OmnivoreClient
from .prompts import (
    ACTIONS_PROMPT,
    ACTIONS_REFINEMENT_PROMPT,
    REPETITION_REFINEMENT_PROMPT,
    SUMMARY_PROMPT,
    SUMMARY_REFINEMENT_PROMPT,
)
from .selector import BestOfNSelector

logger = logging.getLogger(__name__)


class StageState(str, Enum):
    RECEIVED = "received"
    ARTICLE_FETCHED = "article-fetched"
    ANNOTATION_PRODUCED = "annotation-produced"
    ANNOTATION_POSTED = "annotation-posted"
    NEXT_STAGE_TRIGGERED = "next-stage-triggered"
    RESPONDED = "responded"


@dataclass(frozen=True)
class StageDefinition:
    name: str
    prompt: str
    refinement_prompt: str
    next_url: Optional[str] = None


class StageOutcome(BaseModel):
    """Best-effort report returned to the webhook caller."""
    stage: str
    article_id: str
    state: StageState = StageState.RECEIVED
    ok: bool = False
    annotation: Optional[str] = None
    highlight_id: Optional[str] = None
    next_stage: Optional[str] = None
    error: Optional[str] = None


def build_stages(settings: Settings) -> Dict[str, StageDefinition]:
    """Stage definitions keyed by route name, in pipeline order."""
    return {
        "summary": StageDefinition(
            name="summary",
            prompt=SUMMARY_PROMPT,
            refinement_prompt=SUMMARY_REFINEMENT_PROMPT,
            next_url=settings.actions_url,
        ),
        "actions": StageDefinition(
            name="actions",
            prompt=ACTIONS_PROMPT,
            refinement_prompt=ACTIONS_REFINEMENT_PROMPT,
            next_url=settings.repetition_url,
        ),
        "repetition": StageDefinition(
            name="repetition",
            prompt=settings.openai_prompt,
            refinement_prompt=REPETITION_REFINEMENT_PROMPT,
        ),
    }


class StageHandler:
    """Runs a single stage for one article.

    Args:
        definition: Which prompts to use and where to hand off
        omnivore: Article store client
        completions: Completion provider client
        http_client: Client used for the next-stage trigger
        candidates: Best-of-N sample count
        dry_run: Produce the annotation only; no post, no trigger
    """

    def __init__(
        self,
        definition: StageDefinition,
        omnivore: OmnivoreClient,
        completions: CompletionClient,
        http_client: httpx.AsyncClient,
        candidates: int = 3,
        dry_run: bool = False,
    ):
        self.definition = definition
        self.omnivore = omnivore
        self.selector = BestOfNSelector(completions, definition.refinement_prompt)
        self.http_client = http_client
        self.candidates = candidates
        self.dry_run = dry_run

    def _abort(self, outcome: StageOutcome, error: Exception) -> StageOutcome:
        logger.error(
            "Stage %s stopped at '%s' for article %s: %s",
            outcome.stage,
            outcome.state.value,
            outcome.article_id,
            error,
        )
        outcome.ok = False
        outcome.error = str(error)
        return outcome

    async def run(
        self, article_id: str, article_content: Optional[str] = None
    ) -> StageOutcome:
        """Run the stage.

        Args:
            article_id: Omnivore article id
            article_content: Markdown carried by the handoff payload; the
                article is fetched from Omnivore when this is empty

        Returns:
            StageOutcome with the last state reached
        """
        name = self.definition.name
        outcome = StageOutcome(stage=name, article_id=article_id)
        logger.info("=== Stage %s: article %s ===", name, article_id)

        try:
            content = article_content
            if not content:
                fetched = await self.omnivore.fetch_article(article_id)
                if not fetched.is_ok:
                    return self._abort(outcome, fetched.error)
                content = fetched.value.content
            if not content:
                return self._abort(
                    outcome, EmptyResultError(f"Article {article_id} has no content")
                )
            outcome.state = StageState.ARTICLE_FETCHED

            produced = await self.selector.select_best(
                self.definition.prompt, self.candidates, content
            )
            if not produced.is_ok:
                return self._abort(outcome, produced.error)
            outcome.annotation = produced.value
            outcome.state = StageState.ANNOTATION_PRODUCED

            if self.dry_run:
                logger.info("DRY RUN: not posting annotation for article %s", article_id)
                outcome.state = StageState.RESPONDED
                outcome.ok = True
                return outcome

            posted = await self.omnivore.post_annotation(article_id, produced.value)
            if not posted.is_ok:
                return self._abort(outcome, posted.error)
            outcome.highlight_id = posted.value.id
            outcome.state = StageState.ANNOTATION_POSTED

            if self.definition.next_url:
                payload = next_stage_payload(
                    article_id, content, produced.value, posted.value.id
                )
                triggered = await trigger_next_stage(
                    self.definition.next_url, payload, self.http_client
                )
                if not triggered.is_ok:
                    return self._abort(outcome, triggered.error)
                outcome.next_stage = self.definition.next_url
                outcome.state = StageState.NEXT_STAGE_TRIGGERED
            else:
                logger.info("Stage %s is the last stage; nothing to trigger", name)
        except Exception as e:
            logger.exception("Stage %s failed for article %s", name, article_id)
            return self._abort(outcome, e)

        outcome.state = StageState.RESPONDED
        outcome.ok = True
        logger.info("✓ Stage %s completed for article %s", name, article_id)
        return outcome
