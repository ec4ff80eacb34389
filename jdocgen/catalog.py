# jdocgen/catalog.py
"""
Structure catalog and symbol table.

The catalog is built in a single collection pass over every declaration
site before any resolution begins, so forward references across files
need no declaration ordering.  Once :meth:`CatalogBuilder.build` returns,
the :class:`Catalog` is immutable.

The resolution phase works through a :class:`SymbolTable`: a read view of
the catalog plus an overlay holding synthesized (generic-instantiated)
definitions.  Registering into the table never touches the catalog, and
the resolver never triggers new scanning: a declaration the collector
missed stays unresolved.

Duplicate declarations under one key are last-write-wins.  The overwrite
is logged and reported as an ``information`` diagnostic.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from jdocgen.diagnostics import DiagnosticCollector, DiagnosticSeverity
from jdocgen.errors import SourceLocation
from jdocgen.models import StructDefinition, StructField, StructKey, freeze_aliases

_log = logging.getLogger(__name__)


class Catalog(Mapping[StructKey, StructDefinition]):
    """Immutable mapping of every declared structure, keyed by ``StructKey``."""

    def __init__(self, definitions: Mapping[StructKey, StructDefinition]) -> None:
        self._definitions = MappingProxyType(dict(definitions))
        names: Dict[str, List[StructKey]] = {}
        for key in self._definitions:
            names.setdefault(key.name, []).append(key)
        self._by_name = {name: tuple(sorted(keys)) for name, keys in names.items()}

    def __getitem__(self, key: StructKey) -> StructDefinition:
        return self._definitions[key]

    def __iter__(self) -> Iterator[StructKey]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def lookup(self, key: StructKey) -> Optional[StructDefinition]:
        return self._definitions.get(key)

    def keys_named(self, name: str) -> Sequence[StructKey]:
        """Every key, across all packages, whose name is ``name`` (sorted)."""
        return self._by_name.get(name, ())

    def __repr__(self) -> str:
        return f"Catalog({len(self)} structures)"


class CatalogBuilder:
    """Collection-phase accumulator for struct declarations."""

    def __init__(self, diagnostics: Optional[DiagnosticCollector] = None) -> None:
        self._definitions: Dict[StructKey, StructDefinition] = {}
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        self._built = False

    def register(
        self,
        key: StructKey,
        definition: StructDefinition,
        location: Optional[SourceLocation] = None,
    ) -> None:
        """Insert or overwrite the definition stored under ``key``."""
        if self._built:
            raise RuntimeError("catalog already built; collection phase is over")
        if key in self._definitions:
            self.diagnostics.report(
                "duplicate-declaration",
                f"Struct '{key}' declared more than once; the later declaration wins",
                DiagnosticSeverity.INFORMATION,
                location,
            )
        self._definitions[key] = definition

    def add_declaration(
        self,
        package: str,
        name: str,
        description: str = "",
        fields: Iterable[StructField] = (),
        type_params: Sequence[str] = (),
        import_aliases: Optional[Mapping[str, str]] = None,
        location: Optional[SourceLocation] = None,
    ) -> StructKey:
        """Catalog-building callback, invoked once per discovered declaration."""
        definition = StructDefinition(
            name=name,
            package=package,
            description=description,
            fields=tuple(fields),
            type_params=tuple(type_params),
            import_aliases=freeze_aliases(import_aliases),
            location=location,
        )
        key = StructKey(package, name)
        self.register(key, definition, location)
        _log.debug("Registered struct %s (%d fields)", key, len(definition.fields))
        return key

    def __len__(self) -> int:
        return len(self._definitions)

    def build(self) -> Catalog:
        """Finish the collection phase and freeze the catalog."""
        self._built = True
        catalog = Catalog(self._definitions)
        _log.info("Catalog built with %d structures", len(catalog))
        return catalog


class SymbolTable:
    """Resolution-phase view: the catalog plus synthesized definitions."""

    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog
        self._synthesized: Dict[StructKey, StructDefinition] = {}

    def lookup(self, key: StructKey) -> Optional[StructDefinition]:
        definition = self._synthesized.get(key)
        if definition is not None:
            return definition
        return self.catalog.lookup(key)

    def register(self, key: StructKey, definition: StructDefinition) -> None:
        """Insert or overwrite a synthesized definition."""
        self._synthesized[key] = definition

    def __contains__(self, key: object) -> bool:
        return key in self._synthesized or key in self.catalog

    def keys_named(self, name: str) -> Sequence[StructKey]:
        return self.catalog.keys_named(name)

    @property
    def synthesized(self) -> Mapping[StructKey, StructDefinition]:
        return MappingProxyType(self._synthesized)
