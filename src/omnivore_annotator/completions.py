"""Completion Provider Module

Wraps a single OpenAI chat-completion call: one user message made of an
instruction and the article content, sent with the model profile from
``Settings.model_profile()``.

Returned text is trimmed and escaped for embedding in a GraphQL payload.
"""

import logging
from typing import Any, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .config import Settings
from .errors import (
    CompletionError,
    ConfigurationError,
    EmptyResultError,
    MissingInputError,
)
from .models import Result
from .text import escape_annotation

logger = logging.getLogger(__name__)


def build_messages(instruction: str, article_content: str):
    return [
        {
            "role": "user",
            "content": f"Instruction: {instruction}\nArticle content: {article_content}",
        }
    ]


class CompletionClient:
    """Async chat-completion client.

    Args:
        settings: Pipeline settings (model name and sampling profile)
        client: Optional ``AsyncOpenAI``-compatible client
        http_client: Optional ``httpx.AsyncClient`` the SDK client sends
            through; its owner is responsible for closing it
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[Any] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.profile: Dict[str, Any] = settings.model_profile()
        self.model = self.profile.get("model", settings.openai_model)
        if client is None:
            try:
                client = AsyncOpenAI(
                    api_key=settings.openai_api_key, http_client=http_client
                )
            except openai.OpenAIError as e:
                raise ConfigurationError(f"OpenAI client could not be created: {e}") from e
        self._client = client

    async def complete(
        self, instruction: str, article_content: str, escape: bool = True
    ) -> Result[str]:
        """Request one completion for ``instruction`` over ``article_content``.

        Args:
            instruction: Natural-language instruction
            article_content: Article markdown (or joined candidates)
            escape: Escape the answer for GraphQL embedding; intermediate
                candidates skip this so they are not escaped twice

        Raises:
            MissingInputError: If instruction or article content is empty

        Returns:
            Result with the trimmed, escaped first choice text. Provider
            errors and empty answers come back as failed results.
        """
        if not instruction or not article_content:
            raise MissingInputError("Instruction and article content are required.")

        logger.debug(
            "Requesting completion: model=%s, instruction=%r, content=%d chars",
            self.model,
            instruction[:60],
            len(article_content),
        )
        try:
            completion = await self._client.chat.completions.create(
                **self.profile,
                messages=build_messages(instruction, article_content),
            )
        except openai.OpenAIError as e:
            logger.exception("Error fetching completion from OpenAI")
            return Result.fail(CompletionError(str(e)))

        choices = getattr(completion, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None)
        if not text or not text.strip():
            error = EmptyResultError(
                f'No completion returned from OpenAI for prompt "{instruction[:60]}"'
            )
            logger.error("%s", error)
            return Result.fail(error)

        logger.debug("Completion received (%d chars)", len(text))
        return Result.ok(escape_annotation(text) if escape else text.strip())
