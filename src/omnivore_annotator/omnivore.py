"""Omnivore Client Module

Wraps the two GraphQL operations the pipeline needs from the Omnivore
article store: fetching an article's markdown content and creating a
NOTE-type highlight on it.

Key features:
  - Exponential backoff polling while a freshly created article has no
    content yet (read-after-write lag in the store)
  - Failures returned as ``Result.fail`` and logged, never raised
  - Injectable HTTP client and sleep function for testing
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import uuid4

import httpx

from .config import Settings
from .errors import ConfigurationError, EmptyResultError, GraphQLError, TransportError
from .models import Article, Highlight, Result

logger = logging.getLogger(__name__)

# Fixed owner marker sent with every article query
ARTICLE_OWNER = "."
ARTICLE_FORMAT = "markdown"

ARTICLE_QUERY = """query Article($slug: String!, $username: String!, $format: String) {
  article(slug: $slug, username: $username, format: $format) {
    ... on ArticleSuccess {
      article {
        title
        content
        labels {
          name
        }
      }
    }
  }
}"""

CREATE_HIGHLIGHT_MUTATION = """mutation CreateHighlight($input: CreateHighlightInput!) {
  createHighlight(input: $input) {
    ... on CreateHighlightSuccess {
      highlight {
        ...HighlightFields
      }
    }
    ... on CreateHighlightError {
      errorCodes
    }
  }
}

fragment HighlightFields on Highlight {
  id
  type
  shortId
  quote
  prefix
  suffix
  patch
  color
  annotation
  createdByMe
  createdAt
  updatedAt
  sharedAt
  highlightPositionPercent
  highlightPositionAnchorIndex
  labels {
    id
    name
    color
    createdAt
  }
}"""


def new_highlight_id() -> str:
    """Fresh RFC 4122 identifier for a highlight."""
    return str(uuid4())


def short_id_for(highlight_id: str) -> str:
    """Display key Omnivore shows for a highlight: first 8 characters."""
    return highlight_id[:8]


def build_article_query(article_id: str) -> Dict[str, Any]:
    return {
        "query": ARTICLE_QUERY,
        "variables": {
            "slug": article_id,
            "username": ARTICLE_OWNER,
            "format": ARTICLE_FORMAT,
        },
    }


def build_highlight_mutation(
    article_id: str, annotation: str, highlight_id: str
) -> Dict[str, Any]:
    return {
        "query": CREATE_HIGHLIGHT_MUTATION,
        "variables": {
            "input": {
                "type": "NOTE",
                "id": highlight_id,
                "shortId": short_id_for(highlight_id),
                "articleId": article_id,
                "annotation": annotation,
            }
        },
    }


class OmnivoreClient:
    """Async client for the Omnivore GraphQL API.

    Args:
        settings: Pipeline settings; ``omnivore_api_key`` is required
        http_client: Optional pre-built ``httpx.AsyncClient``
        sleep: Coroutine used for backoff delays (default: asyncio.sleep)

    Raises:
        ConfigurationError: If no API key is configured
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if not settings.omnivore_api_key:
            raise ConfigurationError("OMNIVORE_API_KEY is not defined")

        self.url = settings.omnivore_url
        self.max_retries = settings.max_fetch_retries
        self.headers = {
            "Content-Type": "application/json",
            "Authorization": settings.omnivore_api_key,
        }
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.http_timeout, follow_redirects=True
        )
        self._sleep = sleep

    async def _post_graphql(self, payload: Dict[str, Any]) -> Result[Dict[str, Any]]:
        """POST a GraphQL payload and return its ``data`` block.

        Transport errors, non-2xx statuses and GraphQL error arrays are
        converted to failed results.
        """
        try:
            response = await self._http.post(self.url, headers=self.headers, json=payload)
        except httpx.HTTPError as e:
            return Result.fail(TransportError(f"Request to Omnivore failed: {e}"))

        if not response.is_success:
            return Result.fail(
                TransportError(
                    f"HTTP error! status: {response.status_code}",
                    status_code=response.status_code,
                )
            )

        try:
            body = response.json()
        except ValueError as e:
            return Result.fail(TransportError(f"Invalid JSON from Omnivore: {e}"))

        if not isinstance(body, dict):
            return Result.fail(TransportError("Unexpected GraphQL response"))

        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            return Result.fail(
                GraphQLError(
                    [
                        str(err.get("message", err) if isinstance(err, dict) else err)
                        for err in errors
                    ]
                )
            )
        data = body.get("data")
        return Result.ok(data if isinstance(data, dict) else {})

    async def fetch_article(self, article_id: str) -> Result[Article]:
        """Fetch an article's markdown content, polling while it is empty.

        Empty content is retried up to ``max_retries`` extra times with
        delays of ``2 ** attempt`` seconds (1, 2, 4). After the last attempt
        the most recently fetched article is returned as a success even if
        its content is still empty. Failed requests are not retried.

        Args:
            article_id: Omnivore article id (used as slug)

        Returns:
            Result carrying the Article, or the error that stopped the fetch
        """
        payload = build_article_query(article_id)
        attempt = 0
        while True:
            logger.debug("Fetching article %s (attempt %d)", article_id, attempt + 1)
            result = await self._post_graphql(payload)
            if not result.is_ok:
                logger.error(
                    "Error fetching article %s from Omnivore: %s", article_id, result.error
                )
                return Result.fail(result.error)

            article = Article.from_graphql(article_id, result.value)
            if article.content:
                logger.info(
                    "✓ Fetched article %s (%d chars, %d attempts)",
                    article_id,
                    len(article.content),
                    attempt + 1,
                )
                return Result.ok(article)

            if attempt >= self.max_retries:
                logger.warning(
                    "Article %s still has no content after %d attempts; giving up",
                    article_id,
                    attempt + 1,
                )
                return Result.ok(article)

            delay = 2 ** attempt
            logger.warning(
                "No content for article %s, retrying in %ds (retry %d/%d)",
                article_id,
                delay,
                attempt + 1,
                self.max_retries,
            )
            await self._sleep(delay)
            attempt += 1

    async def post_annotation(self, article_id: str, annotation: str) -> Result[Highlight]:
        """Create a NOTE highlight carrying ``annotation`` on an article.

        A fresh id is generated for every call; the short id is its first
        8 characters.
        """
        highlight_id = new_highlight_id()
        payload = build_highlight_mutation(article_id, annotation, highlight_id)
        logger.debug(
            "Adding annotation %s to article %s (%d chars)",
            highlight_id,
            article_id,
            len(annotation),
        )

        result = await self._post_graphql(payload)
        if not result.is_ok:
            logger.error(
                "Error adding annotation to Omnivore article (ID: %s): %s",
                article_id,
                result.error,
            )
            return Result.fail(result.error)

        created = result.value.get("createHighlight") or {}
        if created.get("errorCodes"):
            error = GraphQLError([str(code) for code in created["errorCodes"]])
            logger.error(
                "Omnivore rejected annotation for article %s: %s", article_id, error
            )
            return Result.fail(error)

        highlight = created.get("highlight")
        if not highlight:
            error = EmptyResultError(f"No highlight returned for article {article_id}")
            logger.error("%s", error)
            return Result.fail(error)

        logger.info("✓ Added annotation %s to article %s", highlight_id, article_id)
        return Result.ok(Highlight.model_validate(highlight))
