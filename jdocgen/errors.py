# jdocgen/errors.py
"""
jdocgen Error Types

Exception hierarchy for the documentation generator.  Exceptions are only
raised for problems that the caller must act on:

  - collection-phase failures (``CatalogError``) are fatal and abort the run
    because no meaningful documentation can be produced without a complete
    catalog;
  - annotation failures (``AnnotationError``) are raised by the annotation
    front end and caught by the source collector, which skips the offending
    function and records a diagnostic.

Resolution-phase problems (unresolvable references, malformed generics)
are never raised; see :mod:`jdocgen.diagnostics`.

Error Hierarchy:
────────────────
    JDocGenError (base)
    ├── CatalogError            - fatal collection failure (I/O, tags)
    │   └── GoSyntaxError       - Go source could not be tokenized
    ├── ProjectInfoError        - global tags missing/invalid
    └── AnnotationError         - invalid function annotation block
        ├── MissingCommandError
        ├── MissingDescriptionError
        ├── MultipleResultsError
        ├── MalformedResultError
        ├── MalformedParameterError
        └── InvalidErrorCodeError

Error codes follow the pattern ``JDOC-NNNN``:
  - 1000-1999: collection errors
  - 2000-2999: annotation errors
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Immutable position inside a scanned source file."""

    file: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.line <= 0:
            return self.file
        if self.column > 0:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


class JDocGenError(Exception):
    """Base exception for all jdocgen errors."""

    code: str = "JDOC-9000"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location
        self.cause = cause

    def __str__(self) -> str:
        if self.location is not None:
            return f"{self.location}: {self.message} [{self.code}]"
        return f"{self.message} [{self.code}]"


# ───────────────────────────────────────────────────────────────────────────
# COLLECTION ERRORS
# ───────────────────────────────────────────────────────────────────────────

class CatalogError(JDocGenError):
    """The source tree could not be collected into a catalog."""

    code = "JDOC-1000"


class GoSyntaxError(CatalogError):
    """A Go source file contains text the scanner cannot tokenize."""

    code = "JDOC-1001"


class ProjectInfoError(JDocGenError):
    """Global project tags are missing or invalid."""

    code = "JDOC-1100"


# ───────────────────────────────────────────────────────────────────────────
# ANNOTATION ERRORS
# ───────────────────────────────────────────────────────────────────────────

class AnnotationError(JDocGenError):
    """An annotated doc-comment is invalid."""

    code = "JDOC-2000"


class MissingCommandError(AnnotationError):
    """The doc-comment has no ``@Command`` annotation.

    Not an authoring error: ordinary documented functions simply lack it.
    Callers skip such functions silently.
    """

    code = "JDOC-2001"

    def __init__(self, message: str = "missing @Command annotation", **kwargs) -> None:
        super().__init__(message, **kwargs)


class MissingDescriptionError(AnnotationError):
    code = "JDOC-2002"

    def __init__(self, message: str = "missing @Description annotation", **kwargs) -> None:
        super().__init__(message, **kwargs)


class MultipleResultsError(AnnotationError):
    code = "JDOC-2003"

    def __init__(self, message: str = "multiple @Result annotations found", **kwargs) -> None:
        super().__init__(
            f"{message}. JSON-RPC specification enforces a single @Result "
            "annotation per function",
            **kwargs,
        )


class MalformedResultError(AnnotationError):
    code = "JDOC-2004"

    def __init__(
        self,
        message: str = "malformed @Result annotation. Expected format: @Result type description",
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)


class MalformedParameterError(AnnotationError):
    code = "JDOC-2005"


class InvalidErrorCodeError(AnnotationError):
    code = "JDOC-2006"

    def __init__(self, message: str = "@Error code must be a numeric literal", **kwargs) -> None:
        super().__init__(message, **kwargs)
