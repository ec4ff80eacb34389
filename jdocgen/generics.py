# jdocgen/generics.py
"""
Generic instantiation.

Given a generic struct declaration and a concrete argument list, synthesize
a uniquely named concrete definition::

    type Pagination[T any] struct {        Pagination[ReportItem]
        Data []T                  ──▶        Data []ReportItem
        Page int                             Page int
    }

The synthesized key is ``(generic.package, "Name[Arg1, Arg2]")``, where
each argument is rendered relative to the generic's owning package (bare
when it lives there, ``package.Name`` otherwise).  Instantiation is
memoized through the symbol table: requesting the same generic with the
same ordered arguments always returns the same key and never synthesizes
a second definition.

Substitution is a token-level textual replacement over each field's raw
type (``\\bT\\b``), all parameters at once, so ``T`` never rewrites
``Time`` and a substituted name is never substituted again.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Sequence, Tuple, Union

from jdocgen.catalog import SymbolTable
from jdocgen.diagnostics import DiagnosticCollector, DiagnosticSeverity
from jdocgen.errors import SourceLocation
from jdocgen.models import StructDefinition, StructField, StructKey
from jdocgen.resolver import ReferenceResolver, as_type_ref
from jdocgen.typeref import TypeRef

_log = logging.getLogger(__name__)

# Bound on nested instantiation, so polymorphically recursive declarations
# (``Children []Tree[Pair[T, T]]``) cannot grow the keyspace forever.
MAX_INSTANTIATION_DEPTH = 8


@dataclass(frozen=True)
class ConcreteType:
    """A type argument after resolution in its referencing context.

    ``key`` is set for structures (for a generic instance it is the generic
    declaration's key and ``arguments`` holds the instance arguments);
    basic, opaque and unresolved arguments keep their ``spelling``.
    """

    spelling: str = ""
    key: Optional[StructKey] = None
    arguments: Tuple["ConcreteType", ...] = ()
    decorations: str = ""

    @property
    def depth(self) -> int:
        """Generic nesting depth (0 for non-generic arguments)."""
        if not self.arguments:
            return 0
        return 1 + max(a.depth for a in self.arguments)

    def render(self, package: str) -> str:
        """Spelling of this type as written from inside ``package``."""
        if self.key is None:
            return self.decorations + self.spelling
        if self.key.package == package:
            name = self.key.name
        else:
            name = f"{self.key.package}.{self.key.name}"
        if self.arguments:
            name += "[" + ", ".join(a.render(package) for a in self.arguments) + "]"
        return self.decorations + name


def instance_key(generic_key: StructKey, arguments: Sequence[ConcreteType]) -> StructKey:
    """Key of the concrete instantiation of ``generic_key`` with ``arguments``."""
    rendered = ", ".join(a.render(generic_key.package) for a in arguments)
    return StructKey(generic_key.package, f"{generic_key.name}[{rendered}]")


def substitute_type_params(raw_type: str, replacements: Mapping[str, str]) -> str:
    """Replace every type-parameter token in ``raw_type`` simultaneously."""
    if not replacements:
        return raw_type
    pattern = re.compile(
        r"\b(" + "|".join(re.escape(name) for name in replacements) + r")\b"
    )
    return pattern.sub(lambda m: replacements[m.group(1)], raw_type)


class GenericInstantiator:
    """Synthesizes and memoizes concrete definitions of generic structs."""

    def __init__(
        self,
        table: SymbolTable,
        resolver: ReferenceResolver,
        diagnostics: Optional[DiagnosticCollector] = None,
    ) -> None:
        self.table = table
        self.resolver = resolver
        self.diagnostics = diagnostics if diagnostics is not None else resolver.diagnostics

    def instantiate(
        self,
        generic_key: StructKey,
        argument_refs: Sequence[Union[str, TypeRef]],
        context_package: str,
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
    ) -> Optional[StructKey]:
        """Concrete key for ``generic_key`` applied to ``argument_refs``.

        Arguments are resolved in the referencing context
        (``context_package``/``import_aliases``).  Returns ``generic_key``
        unchanged for non-generic declarations and ``None`` when the
        declaration is unknown or the argument count does not match.
        """
        arguments = tuple(
            self.concretize(ref, context_package, import_aliases, location)
            for ref in argument_refs
        )
        return self.instantiate_concrete(generic_key, arguments, location)

    def instantiate_concrete(
        self,
        generic_key: StructKey,
        arguments: Sequence[ConcreteType],
        location: Optional[SourceLocation] = None,
    ) -> Optional[StructKey]:
        generic = self.table.lookup(generic_key)
        if generic is None:
            self.diagnostics.report(
                "unresolved-type",
                f"Generic declaration '{generic_key}' not found",
                DiagnosticSeverity.WARNING,
                location,
            )
            return None
        if not generic.is_generic:
            return generic_key
        if len(generic.type_params) != len(arguments):
            self.diagnostics.report(
                "generic-arity-mismatch",
                f"'{generic_key}' expects {len(generic.type_params)} type argument(s) "
                f"[{', '.join(generic.type_params)}], got {len(arguments)}",
                DiagnosticSeverity.WARNING,
                location,
            )
            return None

        if max((a.depth for a in arguments), default=0) >= MAX_INSTANTIATION_DEPTH:
            self.diagnostics.report(
                "instantiation-depth-exceeded",
                f"Instantiation of '{generic_key}' nests deeper than "
                f"{MAX_INSTANTIATION_DEPTH} levels; not expanded",
                DiagnosticSeverity.WARNING,
                location,
            )
            return None

        key = instance_key(generic_key, arguments)
        if key in self.table:
            return key

        self.table.register(key, self._synthesize(generic, key, arguments))
        _log.debug("Instantiated %s", key)
        return key

    def concretize(
        self,
        ref: Union[str, TypeRef],
        context_package: str,
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
    ) -> ConcreteType:
        """Resolve a type argument, instantiating nested generics."""
        ref = as_type_ref(ref)
        bare = replace(ref, decorations="")
        key = self.resolver.resolve(ref, context_package, import_aliases, location)
        if key is None:
            return ConcreteType(spelling=bare.spelling, decorations=ref.decorations)
        if not ref.type_arguments:
            return ConcreteType(key=key, decorations=ref.decorations)

        nested = tuple(
            self.concretize(arg, context_package, import_aliases, location)
            for arg in ref.type_arguments
        )
        if self.instantiate_concrete(key, nested, location) is None:
            return ConcreteType(spelling=bare.spelling, decorations=ref.decorations)
        definition = self.table.lookup(key)
        if definition is not None and not definition.is_generic:
            return ConcreteType(key=key, decorations=ref.decorations)
        return ConcreteType(key=key, arguments=nested, decorations=ref.decorations)

    def _synthesize(
        self,
        generic: StructDefinition,
        key: StructKey,
        arguments: Sequence[ConcreteType],
    ) -> StructDefinition:
        replacements = {
            param: arg.render(generic.package)
            for param, arg in zip(generic.type_params, arguments)
        }
        fields = tuple(
            StructField(
                name=f.name,
                raw_type=substitute_type_params(f.raw_type, replacements),
                description=f.description,
                json_name=f.json_name,
            )
            for f in generic.fields
        )
        return StructDefinition(
            name=key.name,
            package=generic.package,
            description=generic.description,
            fields=fields,
            type_params=(),
            import_aliases=generic.import_aliases,
            location=generic.location,
        )
