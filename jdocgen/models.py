# jdocgen/models.py
"""
Data model shared by the collector, the resolution core and the renderer.

Declared structures are created once while the catalog is collected and
are immutable afterwards.  Synthesized (generic-instantiated) structures
use the same :class:`StructDefinition` type and live in the same
``(package, name)`` keyspace.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from jdocgen.errors import SourceLocation


# ─────────────────────────────────────────────────────────────
# Structures
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True, order=True)
class StructKey:
    """Unique ``(package, name)`` identity of a declared or synthesized struct."""

    package: str
    name: str

    def __str__(self) -> str:
        if not self.package:
            return self.name
        return f"{self.package}.{self.name}"


@dataclass(frozen=True, slots=True)
class StructField:
    """A struct field; ``raw_type`` is resolved lazily at traversal time."""

    name: str
    raw_type: str
    description: str = ""
    json_name: str = ""


@dataclass(frozen=True)
class StructDefinition:
    """A struct declaration, or a concrete instantiation of a generic one.

    ``import_aliases`` is the alias table of the declaring file, so field
    types resolve in the same context the Go compiler would use.
    """

    name: str
    package: str = ""
    description: str = ""
    fields: Tuple[StructField, ...] = ()
    type_params: Tuple[str, ...] = ()
    import_aliases: Mapping[str, str] = field(default_factory=dict)
    location: Optional[SourceLocation] = None

    @property
    def key(self) -> StructKey:
        return StructKey(self.package, self.name)

    @property
    def is_generic(self) -> bool:
        return bool(self.type_params)


# ─────────────────────────────────────────────────────────────
# Annotated API functions
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class APIParameter:
    name: str
    type: str
    description: str = ""
    required: bool = True


@dataclass(frozen=True, slots=True)
class APIResult:
    type: str
    description: str = ""
    name: str = "result"
    required: bool = True


@dataclass(frozen=True, slots=True)
class APIError:
    code: int
    description: str = ""


@dataclass(frozen=True)
class APIFunction:
    """A function documented with a ``@Command`` annotation block."""

    command: str
    description: str = ""
    parameters: Tuple[APIParameter, ...] = ()
    results: Tuple[APIResult, ...] = ()
    errors: Tuple[APIError, ...] = ()
    additional: Tuple[str, ...] = ()
    package: str = ""
    import_aliases: Mapping[str, str] = field(default_factory=dict)
    name: str = ""
    location: Optional[SourceLocation] = None

    @property
    def referenced_types(self) -> Tuple[str, ...]:
        """Raw type spellings of every parameter and result, in order."""
        return tuple(p.type for p in self.parameters) + tuple(r.type for r in self.results)


@dataclass(frozen=True)
class ProjectInfo:
    """Global metadata taken from ``@title``/``@version``/... tags."""

    title: str = ""
    version: str = ""
    description: str = ""
    author: str = ""
    license: str = ""
    contact: str = ""
    terms: str = ""
    repository: str = ""
    tags: Tuple[str, ...] = ()
    copyright: str = ""


# ─────────────────────────────────────────────────────────────
# Resolution output
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResolvedStructure:
    key: StructKey
    definition: StructDefinition


@dataclass(frozen=True)
class ResolvedFunction:
    """A function together with its ordered, duplicate-free structure graph."""

    function: APIFunction
    structures: Tuple[ResolvedStructure, ...] = ()

    def structure_keys(self) -> Tuple[StructKey, ...]:
        return tuple(s.key for s in self.structures)


def freeze_aliases(aliases: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """Read-only copy of an alias table."""
    return MappingProxyType(dict(aliases or {}))
