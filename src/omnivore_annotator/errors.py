"""Error Taxonomy

Exceptions raised or carried by the annotation pipeline.

Transport, GraphQL and empty-result errors are never raised out of the
client layer; they travel inside a failed ``Result`` so the stage handler
can decide whether to continue. Configuration and missing-input errors
indicate a programming or deployment mistake and always propagate.
"""

from typing import List, Optional


class AnnotatorError(Exception):
    """Base class for every pipeline error."""


class ConfigurationError(AnnotatorError):
    """Required configuration is missing or malformed."""


class MissingInputError(AnnotatorError, ValueError):
    """A required call argument was empty."""


class TransportError(AnnotatorError):
    """Network failure or non-2xx HTTP status from a remote service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLError(AnnotatorError):
    """Error list returned inside an otherwise successful GraphQL response."""

    def __init__(self, messages: List[str]):
        super().__init__(f"GraphQL error: {', '.join(messages)}")
        self.messages = messages


class EmptyResultError(AnnotatorError):
    """A remote call succeeded but produced nothing usable."""


class CompletionError(AnnotatorError):
    """The completion provider SDK raised."""
