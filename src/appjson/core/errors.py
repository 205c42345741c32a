"""
Structured error types for the app.json deployment engine.

Every failure raised by the engine is an ``AppJsonError`` carrying a
category, a structured context and the chained collaborator exception.
Expected absence (no document shipped, nothing staged) is never raised;
it is represented by the missing marker and the ``{}`` default instead.

Manifesto:
    - **Typed hierarchy:** One subclass per failure domain
    - **Collaborator message preserved:** ``str(error)`` always includes
      the underlying OS / subprocess / store message
    - **Rich context:** app, attempt, phase and path travel with the error
    - **Error chaining:** ``cause`` is set as ``__cause__`` for tracebacks

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        AppJsonError                          │
        │            (category, context, cause, to_dict)               │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigError          StagingError        PromotionError     │
        │  (CONFIG)             (STAGING)           (PROMOTION)        │
        │     │                                                        │
        │  InvalidAppNameError  DocumentParseError                     │
        │                                                              │
        │  CollaboratorError ── PropertyStoreError  DataDirectoryError │
        │  (COLLABORATOR)       ContainerError      ScriptExecutionError│
        │                       ScaleError                             │
        │                                                              │
        │  InvalidTransitionError (LIFECYCLE)   LifecycleError         │
        └──────────────────────────────────────────────────────────────┘

Tags:
    error-handling, exception-hierarchy, error-context, appjson
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    CONFIG = "CONFIG"  # Malformed input, unreadable document
    STAGING = "STAGING"  # Copying a document into the staging slot
    PROMOTION = "PROMOTION"  # Renaming/removing staged documents
    COLLABORATOR = "COLLABORATOR"  # Store, data dir, docker, scripts
    LIFECYCLE = "LIFECYCLE"  # Out-of-order entry points
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields relevant to the failing operation are set; ``to_dict()``
    drops the rest so log lines stay small.

    Attributes:
        app: Application name
        attempt: Attempt token value
        phase: Lifecycle phase name (``predeploy``, ``release`` ...)
        path: File-system path involved
        namespace: Property store / data directory namespace
        metadata: Additional key-value pairs
    """

    app: str | None = None
    attempt: str | None = None
    phase: str | None = None
    path: str | None = None
    namespace: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["app", "attempt", "phase", "path", "namespace"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class AppJsonError(Exception):
    """
    Base exception for all engine errors.

    Subclasses set ``default_category``; callers may add context fluently:

        >>> raise StagingError("copy failed").with_context(app="api", path="/x")
        Traceback (most recent call last):
        ...
        StagingError: copy failed
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AppJsonError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
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
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(AppJsonError):
    """Malformed input or invalid settings. Never retried."""

    default_category = ErrorCategory.CONFIG


class InvalidAppNameError(ConfigError):
    """Application name is empty or contains path separators."""


class DocumentParseError(ConfigError):
    """The staged or committed document is not valid JSON."""


# =============================================================================
# FILE-SYSTEM ERRORS
# =============================================================================


class StagingError(AppJsonError):
    """Copying the document into the attempt-scoped slot failed."""

    default_category = ErrorCategory.STAGING


class PromotionError(AppJsonError):
    """
    Promoting or discarding a staged document failed.

    Raised without rollback. Because the canonical document is removed
    before the missing marker, a failed discard leaves the marker in place
    and a second commit completes it.
    """

    default_category = ErrorCategory.PROMOTION


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class CollaboratorError(AppJsonError):
    """An external collaborator call failed."""

    default_category = ErrorCategory.COLLABORATOR


class PropertyStoreError(CollaboratorError):
    """Reading or writing the property store failed."""


class DataDirectoryError(CollaboratorError):
    """Creating, cloning, migrating or removing a data directory failed."""


class ContainerError(CollaboratorError):
    """A docker CLI invocation failed or timed out."""


class ScriptExecutionError(CollaboratorError):
    """A lifecycle script exited non-zero."""

    def __init__(self, message: str, *, exit_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code


class ScaleError(CollaboratorError):
    """Process/scale reconciliation failed."""


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class InvalidTransitionError(AppJsonError):
    """An entry point ran before the phase it depends on."""

    default_category = ErrorCategory.LIFECYCLE


class LifecycleError(AppJsonError):
    """
    Several collaborator steps failed during one lifecycle event.

    ``errors`` keeps every failure in the order the steps ran; the message
    joins their messages so none is lost.
    """

    default_category = ErrorCategory.COLLABORATOR

    def __init__(self, message: str, errors: list[Exception], **kwargs: Any):
        detail = "; ".join(str(e) for e in errors)
        super().__init__(f"{message}: {detail}" if detail else message, cause=errors[0] if errors else None, **kwargs)
        self.errors = errors


__all__ = [
    "AppJsonError",
    "CollaboratorError",
    "ConfigError",
    "ContainerError",
    "DataDirectoryError",
    "DocumentParseError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidAppNameError",
    "InvalidTransitionError",
    "LifecycleError",
    "PromotionError",
    "PropertyStoreError",
    "ScaleError",
    "ScriptExecutionError",
    "StagingError",
]
