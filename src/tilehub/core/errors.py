"""
Structured error types for tilehub.

Provides a small hierarchy of typed errors that carry a category, retry
semantics, structured context, and a chained cause. Most failure modes in
tilehub are *not* raised across component boundaries: source failures are
status values, extraction failures are missing data points, cache failures
are warnings. The exceptions below exist for the few seams where Python
control flow is still the clearest signal:

- inside a circuit breaker, to count a failure;
- at the orchestrator boundary, to describe what went wrong with a tile;
- at the service boundary, to reject an invalid request.

Manifesto:
    - **Typed hierarchy:** Different error types for different failure modes
    - **Explicit retry semantics:** Each error knows if it's retryable
    - **Rich context:** Errors carry source / tile / idea metadata for logging
    - **Error chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       TileHubError                           │
        │  (category, retryable, context, cause)                       │
        ├─────────────────────────────────────────────────────────────┤
        │  SourceUnavailableError   (SOURCE, retryable)               │
        │  ExtractionError          (EXTRACTION)                      │
        │  CacheError               (CACHE, retryable)                │
        │  TileSynthesisError       (SYNTHESIS)                       │
        │  CircuitOpenError         (CIRCUIT, retryable)              │
        │  InvalidRequestError      (VALIDATION)                      │
        │  ConfigError              (CONFIG)                          │
        └─────────────────────────────────────────────────────────────┘

Tags:
    errors, exceptions, error-hierarchy, tilehub

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories for classification, logging and HTTP mapping."""

    SOURCE = "SOURCE"
    EXTRACTION = "EXTRACTION"
    CACHE = "CACHE"
    SYNTHESIS = "SYNTHESIS"
    CIRCUIT = "CIRCUIT"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        source: Provider name (e.g. ``"serper"``, ``"reddit"``)
        tile: Tile identifier the error relates to
        idea_hash: Idea fingerprint
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    source: str | None = None
    tile: str | None = None
    idea_hash: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize non-empty fields for logging."""
        result: dict[str, Any] = {}
        for key in ("source", "tile", "idea_hash", "url", "http_status"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.metadata)
        return result


class TileHubError(Exception):
    """
    Base exception for all tilehub errors.

    Subclasses set ``default_category`` and ``default_retryable``.

    Examples:
        >>> err = TileHubError("boom")
        >>> err.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> err.with_context(tile="sentiment").context.tile
        'sentiment'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TileHubError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class SourceUnavailableError(TileHubError):
    """
    A provider could not be reached or returned nothing usable.

    Source clients never raise this; the breaker wrapper raises it from an
    ``unavailable`` response so the failure is counted. The original
    response travels along so fallbacks can surface the real reason.
    """

    default_category = ErrorCategory.SOURCE
    default_retryable = True

    def __init__(self, message: str, *, response: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.response = response


class ExtractionError(TileHubError):
    """No usable structure could be parsed from an extraction response."""

    default_category = ErrorCategory.EXTRACTION


class CacheError(TileHubError):
    """Read or write failure against a tile store."""

    default_category = ErrorCategory.CACHE
    default_retryable = True


class TileSynthesisError(TileHubError):
    """Unexpected failure while generating a single tile."""

    default_category = ErrorCategory.SYNTHESIS


class CircuitOpenError(TileHubError):
    """Raised (or handed to a fallback) when a circuit is open."""

    default_category = ErrorCategory.CIRCUIT
    default_retryable = True

    def __init__(self, message: str = "Circuit breaker is open", **kwargs: Any):
        super().__init__(message, **kwargs)


class InvalidRequestError(TileHubError):
    """The caller's request failed validation."""

    default_category = ErrorCategory.VALIDATION


class ConfigError(TileHubError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, TileHubError):
        return error.category
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


def describe_error(error: BaseException) -> str:
    """Short human-readable description used in warnings and tile errors."""
    message = str(error) or error.__class__.__name__
    if isinstance(error, TileHubError):
        return message
    return f"{error.__class__.__name__}: {message}"


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TileHubError",
    "SourceUnavailableError",
    "ExtractionError",
    "CacheError",
    "TileSynthesisError",
    "CircuitOpenError",
    "InvalidRequestError",
    "ConfigError",
    "categorize_error",
    "describe_error",
]
