# jdocgen/resolver.py
"""
Reference resolver: maps a parsed type reference to a ``StructKey``.

Algorithm
─────────
1. Basic and opaque spellings are not structures: ``None``, silently.
   Malformed spellings are ``None`` plus a ``malformed-type`` diagnostic.
2. Qualified (``alias.Name``): the qualifier is looked up in the
   referencing file's import-alias table; if absent, the qualifier text is
   taken as the package identifier itself.
3. Unqualified: the referencing declaration's own package.
4. No match: in ``STRICT`` mode (the default) the reference is unresolved.
   ``PERMISSIVE`` mode reproduces the legacy behaviour of searching every
   package for a same-named structure, accepting only a unique match.

Resolution never raises; failures are reported to the diagnostic
collector and callers decide whether they are tolerable.
"""

from __future__ import annotations

import enum
import logging
from typing import Mapping, Optional, Union

from jdocgen.catalog import SymbolTable
from jdocgen.diagnostics import DiagnosticCollector, DiagnosticSeverity
from jdocgen.errors import SourceLocation
from jdocgen.models import StructKey
from jdocgen.typeref import TypeRef, parse_type

_log = logging.getLogger(__name__)


class ResolutionMode(enum.Enum):
    STRICT = "strict"
    PERMISSIVE = "permissive"


def as_type_ref(ref: Union[str, TypeRef]) -> TypeRef:
    return ref if isinstance(ref, TypeRef) else parse_type(ref)


class ReferenceResolver:
    """Resolves type references against a :class:`SymbolTable`."""

    def __init__(
        self,
        table: SymbolTable,
        diagnostics: Optional[DiagnosticCollector] = None,
        mode: ResolutionMode = ResolutionMode.STRICT,
    ) -> None:
        self.table = table
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self.mode = mode

    def package_for(self, qualifier: str, import_aliases: Mapping[str, str]) -> str:
        """Package identifier a qualifier denotes in the given alias table."""
        return import_aliases.get(qualifier, qualifier)

    def resolve(
        self,
        ref: Union[str, TypeRef],
        context_package: str,
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
    ) -> Optional[StructKey]:
        ref = as_type_ref(ref)
        aliases = import_aliases or {}

        if ref.malformed:
            self.diagnostics.report(
                "malformed-type",
                f"Malformed type spelling '{ref.base_name}'",
                DiagnosticSeverity.WARNING,
                location,
                package=context_package,
            )
            return None
        if not ref.may_be_structure:
            return None

        if ref.qualifier:
            package = self.package_for(ref.qualifier, aliases)
        else:
            package = context_package
        key = StructKey(package, ref.base_name)
        if key in self.table:
            _log.debug("Resolved %s in %s -> %s", ref.qualified_name, context_package, key)
            return key

        if self.mode is ResolutionMode.PERMISSIVE:
            return self._search_all_packages(ref, key, location)

        self._report_unresolved(ref, key, location)
        return None

    def _search_all_packages(
        self,
        ref: TypeRef,
        attempted: StructKey,
        location: Optional[SourceLocation],
    ) -> Optional[StructKey]:
        candidates = self.table.keys_named(ref.base_name)
        if len(candidates) == 1:
            key = candidates[0]
            self.diagnostics.report(
                "fallback-resolution",
                f"Type '{ref.qualified_name}' not found in package "
                f"'{attempted.package}'; using '{key}'",
                DiagnosticSeverity.INFORMATION,
                location,
            )
            return key
        if len(candidates) > 1:
            self.diagnostics.report(
                "ambiguous-type",
                f"Type '{ref.qualified_name}' not found in package "
                f"'{attempted.package}' and declared in several packages: "
                + ", ".join(str(c) for c in candidates),
                DiagnosticSeverity.WARNING,
                location,
            )
            return None
        self._report_unresolved(ref, attempted, location)
        return None

    def _report_unresolved(
        self,
        ref: TypeRef,
        attempted: StructKey,
        location: Optional[SourceLocation],
    ) -> None:
        self.diagnostics.report(
            "unresolved-type",
            f"Type '{ref.qualified_name}' not found in package '{attempted.package}'. "
            "Ensure it is imported or fully qualified.",
            DiagnosticSeverity.WARNING,
            location,
            package=attempted.package,
            name=attempted.name,
        )
