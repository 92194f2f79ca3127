"""Error taxonomy for the request-optimization pipeline.

Only TextValidationError ever reaches a caller. Everything raised after input
validation is caught by the orchestrator and converted into a fallback result.
"""

from __future__ import annotations


class RedigirError(Exception):
    """Base class for all redigir errors."""


class TextValidationError(RedigirError, ValueError):
    """Raised when input text is empty, too long or too short to process."""

    def __init__(self, message: str, length: int = 0, limit: int | None = None):
        self.length = length
        self.limit = limit
        super().__init__(message)


class UpstreamUnavailableError(RedigirError):
    """No LLM client configured, or the call failed or timed out."""


class MalformedUpstreamResponseError(RedigirError):
    """The LLM answered, but the output cannot be turned into the expected shape."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class JSONRepairError(RedigirError):
    """Near-JSON could not be repaired into a decodable document."""
