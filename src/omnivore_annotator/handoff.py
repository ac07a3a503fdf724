"""Stage handoff: fire-and-forget, at-most-once POST to the next stage.

There is no retry and no delivery guarantee. A lost trigger stalls the
pipeline for that article; a duplicated one produces duplicate highlights.
"""

import logging
from typing import Optional

import httpx

from .errors import TransportError
from .models import HandoffPayload, Result

logger = logging.getLogger(__name__)


async def trigger_next_stage(
    url: str,
    payload: HandoffPayload,
    client: httpx.AsyncClient,
) -> Result[int]:
    """POST ``payload`` to ``url``; success is any 2xx status code."""
    try:
        response = await client.post(url, json=payload.to_wire())
    except httpx.HTTPError as e:
        logger.error("Failed to trigger next stage at %s: %s", url, e)
        return Result.fail(TransportError(f"Request to {url} failed: {e}"))

    if not response.is_success:
        logger.error(
            "Next stage at %s answered HTTP %d", url, response.status_code
        )
        return Result.fail(
            TransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )
        )

    logger.info("✓ Triggered next stage %s for article %s", url, payload.article_id)
    return Result.ok(response.status_code)


def next_stage_payload(
    article_id: str,
    article: str,
    annotation: str,
    highlight_id: Optional[str] = None,
) -> HandoffPayload:
    return HandoffPayload(
        article_id=article_id,
        article=article,
        article_annotation=annotation,
        id=highlight_id,
    )
