"""Error taxonomy shared by the parser, the store adapter and the publisher."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .publisher import PublishResult


class ElasticbookError(Exception):
    """Base class for every error raised by elasticbook."""


class MalformedTimestamp(ElasticbookError, ValueError):
    """A date_added value is not a non-negative 64-bit decimal integer."""

    def __init__(self, value: object, reason: str = "not a non-negative 64-bit integer") -> None:
        self.value = value
        super().__init__(f"malformed timestamp {value!r}: {reason}")


class InvalidDocument(ElasticbookError, ValueError):
    """The bookmarks export is not JSON or lacks the required roots."""


class StoreUnavailable(ElasticbookError):
    """The document store could not be reached or rejected a request."""


class NotFound(ElasticbookError):
    """An index or alias does not exist."""

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message or f"{name!r} not found")


class UnknownGeneration(ElasticbookError):
    """The target of a default-alias switch is not an existing index."""

    def __init__(self, generation: str) -> None:
        self.generation = generation
        super().__init__(f"index {generation!r} does not exist")


class PartialSwap(ElasticbookError):
    """The alias was removed from its old indices but could not be added to the new one."""

    def __init__(self, generation: str, alias: str, removed_from: Sequence[str], cause: Exception) -> None:
        self.generation = generation
        self.alias = alias
        self.removed_from = list(removed_from)
        super().__init__(
            f"alias {alias!r} removed from {self.removed_from!r} but not added to {generation!r}: {cause}"
        )


class PublishFailed(ElasticbookError):
    """At least one bookmark could not be indexed into a generation."""

    def __init__(self, result: "PublishResult") -> None:
        self.result = result
        first = result.failures[0] if result.failures else None
        detail = f"; first failure: {first.reason}" if first else ""
        super().__init__(
            f"publishing into {result.generation.name!r} failed for {len(result.failures)} "
            f"of {result.submitted} submitted bookmarks{detail}"
        )
