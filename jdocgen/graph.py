# jdocgen/graph.py
"""
Structure graph traversal.

Starting from the parameter and result types of one documented function,
collect every structure reachable through field types into an ordered,
duplicate-free list.  Order is depth-first pre-order: a structure appears
before the structures its fields reference, and siblings keep their
declaration order.

The traversal is driven by an explicit worklist stack, so deeply nested
declarations cannot exhaust the interpreter's recursion limit, and a
``visited`` set owned by the traversal acts as the cycle guard::

    type Node struct {            collect(["Node"], "app")
        Next *Node        ──▶       [app.Node, app.Leaf]
        Leaf Leaf
    }

Field types are resolved in the owning structure's context: its package
and the import aliases of the file that declared it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Union

from jdocgen.catalog import Catalog, SymbolTable
from jdocgen.diagnostics import Diagnostic, DiagnosticCollector
from jdocgen.errors import SourceLocation
from jdocgen.generics import GenericInstantiator, instance_key
from jdocgen.models import APIFunction, ResolvedFunction, ResolvedStructure, StructKey
from jdocgen.resolver import ReferenceResolver, ResolutionMode, as_type_ref
from jdocgen.typeref import TypeRef

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _WorkItem:
    ref: TypeRef
    package: str
    import_aliases: Mapping[str, str]
    location: Optional[SourceLocation]


class GraphCollector:
    """Collects the structures reachable from a set of seed types."""

    def __init__(
        self,
        table: SymbolTable,
        resolver: ReferenceResolver,
        instantiator: GenericInstantiator,
        diagnostics: Optional[DiagnosticCollector] = None,
    ) -> None:
        self.table = table
        self.resolver = resolver
        self.instantiator = instantiator
        self.diagnostics = diagnostics if diagnostics is not None else resolver.diagnostics

    def resolve_key(
        self,
        ref: Union[str, TypeRef],
        context_package: str,
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
    ) -> Optional[StructKey]:
        """Concrete structure key a reference denotes, instantiating generics.

        Returns ``None`` for basic, opaque, malformed and unresolvable
        references, and for generic declarations used without arguments.
        """
        concrete = self.instantiator.concretize(ref, context_package, import_aliases, location)
        if concrete.key is None:
            return None
        if concrete.arguments:
            return instance_key(concrete.key, concrete.arguments)
        definition = self.table.lookup(concrete.key)
        if definition is not None and definition.is_generic:
            # Bare use of a generic: the instantiator reports the arity problem.
            return self.instantiator.instantiate_concrete(concrete.key, (), location)
        return concrete.key

    def collect(
        self,
        seed_types: Iterable[Union[str, TypeRef]],
        context_package: str,
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
        visited: Optional[Set[StructKey]] = None,
    ) -> List[StructKey]:
        aliases = import_aliases or {}
        visited = visited if visited is not None else set()
        order: List[StructKey] = []

        stack: List[_WorkItem] = [
            _WorkItem(as_type_ref(seed), context_package, aliases, location)
            for seed in seed_types
        ]
        stack.reverse()

        while stack:
            item = stack.pop()
            ref = item.ref
            if not ref.may_be_structure and not ref.malformed:
                continue

            key = self.resolve_key(ref, item.package, item.import_aliases, item.location)
            if key is None or key in visited:
                continue
            definition = self.table.lookup(key)
            if definition is None:
                continue

            visited.add(key)
            order.append(key)

            children = [
                _WorkItem(
                    as_type_ref(f.raw_type),
                    definition.package,
                    definition.import_aliases,
                    definition.location,
                )
                for f in definition.fields
            ]
            # Instance arguments a field list never mentions are still part of the graph.
            children.extend(
                _WorkItem(arg, item.package, item.import_aliases, item.location)
                for arg in ref.type_arguments
            )
            stack.extend(reversed(children))

        _log.debug("Collected %d structure(s) from %s", len(order), context_package or "<root>")
        return order


# ─────────────────────────────────────────────────────────────
# Per-function resolution
# ─────────────────────────────────────────────────────────────

@dataclass
class ResolutionResult:
    """Resolved functions plus the diagnostics reported along the way."""

    functions: List[ResolvedFunction] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    table: Optional[SymbolTable] = None

    @property
    def structure_keys(self) -> List[StructKey]:
        """Every structure referenced by any function, first occurrence first."""
        seen: Set[StructKey] = set()
        keys: List[StructKey] = []
        for resolved in self.functions:
            for key in resolved.structure_keys():
                if key not in seen:
                    seen.add(key)
                    keys.append(key)
        return keys


def resolve_functions(
    catalog: Catalog,
    functions: Sequence[APIFunction],
    mode: ResolutionMode = ResolutionMode.STRICT,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> ResolutionResult:
    """Resolve the structure graph of every function.

    Each function gets its own ``visited`` set; all of them share one
    :class:`SymbolTable`, so a generic instance synthesized for one
    function is reused by the next.
    """
    collector = diagnostics if diagnostics is not None else DiagnosticCollector()
    table = SymbolTable(catalog)
    resolver = ReferenceResolver(table, collector, mode)
    instantiator = GenericInstantiator(table, resolver, collector)
    graph = GraphCollector(table, resolver, instantiator, collector)

    resolved: List[ResolvedFunction] = []
    for function in functions:
        keys = graph.collect(
            function.referenced_types,
            function.package,
            function.import_aliases,
            function.location,
        )
        structures = []
        for key in keys:
            definition = table.lookup(key)
            if definition is not None:
                structures.append(ResolvedStructure(key, definition))
        resolved.append(ResolvedFunction(function, tuple(structures)))
        _log.info("Resolved %s: %d structure(s)", function.command, len(structures))

    if table.synthesized:
        _log.info("Synthesized %d generic instance(s)", len(table.synthesized))
    return ResolutionResult(resolved, collector.diagnostics, table)
