"""Pipeline error taxonomy.

"No speech detected" is deliberately absent: the STT adapter signals it by
returning None, and the orchestrator maps it to a failed status.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class TransportError(PipelineError):
    """An external backend (STT, embedding, LLM) was unreachable or answered non-2xx."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        backend_message: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error)
        self.status_code = status_code
        self.backend_message = backend_message


class MalformedModelOutputError(PipelineError):
    """The model reply did not contain parseable JSON."""


class TruncatedResponseError(MalformedModelOutputError):
    """The model reply was cut off mid-structure and could not be repaired."""


class SchemaReferenceError(PipelineError):
    """A returned template_item_id does not match any leaf of the template."""


class PersistenceError(PipelineError):
    """A datastore write failed."""


class StatusConflictError(PipelineError):
    """A compare-and-swap status transition found the record in an unexpected state."""


class RecordNotFoundError(PipelineError):
    """The assessment or template a pipeline was asked to run on does not exist."""


class StoragePathError(PipelineError):
    """A bucket path resolves outside the bucket."""
