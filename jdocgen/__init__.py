"""jdocgen — JSON-RPC API documentation generator for Go projects.

Reads annotated Go doc-comments, resolves every referenced type into a
graph of concrete structures (instantiating generic structs once per
distinct argument list) and renders Markdown API documentation.

Submodules
----------
errors
    Exception hierarchy with stable ``JDOC-NNNN`` codes and
    ``SourceLocation``.

diagnostics
    ``Diagnostic`` records and the ``DiagnosticCollector`` side channel
    used by every resolution-time component.

models
    ``StructKey``, ``StructDefinition``, ``APIFunction``, ``ProjectInfo``
    and the ``ResolvedFunction`` renderer input.

typeref
    Parsimonious grammar turning a Go type spelling into a ``TypeRef``.

catalog
    Immutable ``Catalog`` of declarations and the resolution-phase
    ``SymbolTable`` overlay.

resolver
    ``ReferenceResolver`` (strict or permissive lookup).

generics
    ``GenericInstantiator``: memoized synthesis of concrete instances.

graph
    Cycle-safe structure graph traversal and ``resolve_functions``.

annotations
    ``@Command`` / ``@Parameter`` / ... and global ``@title`` tags.

gosource
    Go tokenizer, top-level declaration scanner and ``collect_project``.

render
    Markdown renderer and S-expression / JSON graph dumps.

config
    ``GeneratorConfig``.

main
    CLI entry-point with subcommands: ``generate``, ``graph``, ``check``.

Usage
-----
Command-line::

    python -m jdocgen generate ./server -o API_Documentation.md
    python -m jdocgen --help

Programmatic::

    from jdocgen.gosource import collect_project
    from jdocgen.graph import resolve_functions
    from jdocgen.render import render_markdown

    scan = collect_project("./server")
    result = resolve_functions(scan.catalog, scan.functions)
    markdown = render_markdown(scan.project_info, result.functions)
"""

from __future__ import annotations

__version__: str = "0.3.0"
__all__: list[str] = [
    "__version__",
    "annotations",
    "catalog",
    "config",
    "diagnostics",
    "errors",
    "generics",
    "gosource",
    "graph",
    "models",
    "render",
    "resolver",
    "typeref",
]
