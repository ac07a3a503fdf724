"""Data Models Module

Defines Pydantic models for the payloads that move through the pipeline:
articles fetched from Omnivore, highlights posted back to it, inbound
webhook envelopes and the handoff body passed between stages.

Also defines ``Result``, the success/failure value returned at every
client boundary.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged success/failure value.

    Clients return ``Result.ok(value)`` or ``Result.fail(error)`` instead of
    raising on remote failures, so the caller decides whether to continue
    with degraded data or abort.
    """

    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: Exception) -> "Result[T]":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class Article(BaseModel):
    """Article as returned by the Omnivore ``Article`` query.

    ``content`` is markdown and may be empty when the article has not been
    indexed yet.
    """
    id: str
    title: Optional[str] = None
    content: str = ""
    labels: List[str] = []

    @classmethod
    def from_graphql(cls, article_id: str, data: Dict[str, Any]) -> "Article":
        """Build an Article from a raw GraphQL ``data`` block.

        Missing levels (e.g. an ``ArticleError`` union member) yield an
        article with empty content rather than raising.
        """
        node = ((data or {}).get("article") or {}).get("article") or {}
        labels = [
            label.get("name")
            for label in node.get("labels") or []
            if isinstance(label, dict) and label.get("name")
        ]
        return cls(
            id=article_id,
            title=node.get("title"),
            content=node.get("content") or "",
            labels=labels,
        )


class Highlight(BaseModel):
    """NOTE-type highlight created on an article."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    short_id: str = Field(alias="shortId")
    type: str = "NOTE"
    annotation: Optional[str] = None


class PageRef(BaseModel):
    id: str


class PageCreatedEvent(BaseModel):
    """Webhook envelope Omnivore sends when a page is created."""
    page: PageRef


class HandoffPayload(BaseModel):
    """Body forwarded from one stage to the next.

    Field names on the wire are camelCase; no schema versioning.
    """
    model_config = ConfigDict(populate_by_name=True)

    article_id: str = Field(alias="articleId")
    article: str = ""
    article_annotation: str = Field(default="", alias="articleAnnotation")
    id: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
