"""Harness exceptions.

Transport failures are not wrapped: they surface as ``aiohttp.ClientError``.
Everything raised here means the cluster under test answered, but not the way
a consistent cluster must.
"""

from typing import Any, Dict, Optional


class HarnessError(Exception):
    """Base class for harness failures."""


class ResponseParseError(HarnessError, ValueError):
    """Raised when a cluster response does not have the documented shape.

    Attributes:
        source: Which endpoint's response was being parsed
        message: Human-readable error description
    """

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"Malformed {source} response: {message}")


class NodeNotFoundError(HarnessError, AssertionError):
    """Raised when no node in the topology binds the requested address."""

    def __init__(self, signature: str, known_addresses: Dict[str, Any]) -> None:
        self.signature = signature
        self.known_addresses = known_addresses
        super().__init__(
            f"Didn't find {signature} among bound addresses: {known_addresses}"
        )


class ResultMismatchError(HarnessError, AssertionError):
    """Raised when a query result differs from the expected structure.

    Attributes:
        expected: Expected result as a JSON-shaped dict
        actual: Actual result as a JSON-shaped dict
        diff: Aligned field-by-field rendering of both
    """

    def __init__(self, expected: Dict[str, Any], actual: Dict[str, Any], diff: str) -> None:
        self.expected = expected
        self.actual = actual
        self.diff = diff
        super().__init__(f"Response does not match:\n{diff}")


class BulkLoadError(HarnessError):
    """Raised when a bulk request reports failed items."""

    def __init__(self, index: str, failures: int, first_error: Optional[Any] = None) -> None:
        self.index = index
        self.failures = failures
        self.first_error = first_error
        super().__init__(
            f"Bulk load into '{index}' failed for {failures} item(s); first error: {first_error}"
        )
