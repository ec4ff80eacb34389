# jdocgen/typeref.py
"""
Type reference parser.

Turns a raw Go type spelling, as it appears in an annotation or a struct
field, into a normalized :class:`TypeRef`::

    parse_type("*[]m.Page[Item, Pair[A, B]]")
    # TypeRef(qualifier="m", base_name="Page",
    #         type_arguments=(TypeRef("Item"), TypeRef("Pair", ...)),
    #         decorations="*[]")

Pointer, slice, array, variadic and ``map[K]`` decorations are stripped
(their text is kept in ``decorations`` for display only).  Channel,
function, interface and inline struct types are *opaque*: they are passed
through unresolved.  Input the grammar rejects (unbalanced brackets and
the like) never raises: it yields a ``malformed`` reference whose
``base_name`` is the whole text and which has no type arguments.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import FrozenSet, List, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

_log = logging.getLogger(__name__)


BASIC_TYPES: FrozenSet[str] = frozenset({
    "bool", "string",
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "byte", "rune",
    "float32", "float64",
    "complex64", "complex128",
    "error", "any",
})


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

TYPE_GRAMMAR = Grammar(r'''
    type_expr           = _ decoration* core _

    # ─────────────────────────────────────────────────────────────
    # Decorations (discarded for lookup)
    # ─────────────────────────────────────────────────────────────

    decoration          = map_prefix / slice / array / pointer / variadic
    pointer             = "*" _
    slice               = "[" _ "]" _
    array               = "[" _ ~r"[A-Za-z0-9_.]+" _ "]" _
    variadic            = "..." _
    map_prefix          = ~r"map\b" _ "[" type_expr "]" _

    core                = opaque / named

    # ─────────────────────────────────────────────────────────────
    # Opaque composites (passed through unresolved)
    # ─────────────────────────────────────────────────────────────

    opaque              = chan_type / func_type / interface_type / struct_type
    chan_type           = ~r"(<-\s*)?chan\b\s*(<-)?" type_expr
    func_type           = ~r"func\s*" parens func_result?
    func_result         = (_ parens) / (~r"[ \t]+" type_expr)
    interface_type      = ~r"interface\s*" braces
    struct_type         = ~r"struct\s*" braces

    # Balanced groups, nested to any depth
    parens              = "(" (~r"[^()]+" / parens)* ")"
    braces              = "{" (~r"[^{}]+" / braces)* "}"

    # ─────────────────────────────────────────────────────────────
    # Named references
    # ─────────────────────────────────────────────────────────────

    named               = qualified_name type_args?
    qualified_name      = identifier ("." identifier)?
    type_args           = "[" type_list "]"
    type_list           = type_expr ("," type_expr)*

    identifier          = ~r"[^\W\d]\w*"
    _                   = ~r"\s*"
''')


@dataclass(frozen=True)
class TypeRef:
    """Normalized, immutable type reference."""

    base_name: str
    qualifier: str = ""
    type_arguments: Tuple["TypeRef", ...] = ()
    decorations: str = ""
    text: str = ""
    opaque: bool = False
    malformed: bool = False

    @property
    def is_generic(self) -> bool:
        return bool(self.type_arguments)

    @property
    def is_basic(self) -> bool:
        """True for the fixed set of scalar spellings (never a structure)."""
        return (
            not self.qualifier
            and not self.type_arguments
            and not self.opaque
            and not self.malformed
            and self.base_name in BASIC_TYPES
        )

    @property
    def may_be_structure(self) -> bool:
        return not (self.is_basic or self.opaque or self.malformed) and bool(self.base_name)

    @property
    def qualified_name(self) -> str:
        if self.qualifier:
            return f"{self.qualifier}.{self.base_name}"
        return self.base_name

    @property
    def spelling(self) -> str:
        """Canonical re-rendering, decorations included."""
        if self.opaque or self.malformed:
            return self.decorations + self.base_name
        args = ""
        if self.type_arguments:
            args = "[" + ", ".join(a.spelling for a in self.type_arguments) + "]"
        return self.decorations + self.qualified_name + args

    def __str__(self) -> str:
        return self.spelling


class TypeRefBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into a :class:`TypeRef`."""

    grammar = TYPE_GRAMMAR

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_type_expr(self, node, visited_children):
        _, decorations, core, _ = visited_children
        prefix = "".join(decorations) if isinstance(decorations, list) else ""
        return replace(core, decorations=prefix + core.decorations, text=node.text.strip())

    def visit_decoration(self, node, visited_children):
        return "".join(node.text.split())

    def visit_core(self, node, visited_children):
        return visited_children[0]

    def visit_opaque(self, node, visited_children):
        return TypeRef(base_name=" ".join(node.text.split()), opaque=True)

    def visit_named(self, node, visited_children):
        (qualifier, name), args = visited_children
        arguments = args[0] if isinstance(args, list) else ()
        return TypeRef(base_name=name, qualifier=qualifier, type_arguments=arguments)

    def visit_qualified_name(self, node, visited_children):
        qualifier, _, name = node.text.rpartition(".")
        return qualifier, name

    def visit_type_args(self, node, visited_children):
        _, arguments, _ = visited_children
        return arguments

    def visit_type_list(self, node, visited_children):
        first, rest = visited_children
        arguments = [first]
        if isinstance(rest, list):
            arguments.extend(item[1] for item in rest)
        return tuple(arguments)


@lru_cache(maxsize=4096)
def parse_type(text: str) -> TypeRef:
    """Parse a raw type spelling.  Never raises."""
    stripped = text.strip()
    try:
        tree = TYPE_GRAMMAR.parse(stripped)
        return TypeRefBuilder().visit(tree)
    except (ParseError, VisitationError) as exc:
        _log.debug("Malformed type spelling %r: %s", stripped, exc)
        return TypeRef(base_name=stripped, text=stripped, malformed=True)


def split_type_arguments(text: str) -> List[str]:
    """Split ``"A, Pair[B, C]"`` on top-level commas only.

    >>> split_type_arguments("ReportItem, Pair[Details, Info]")
    ['ReportItem', 'Pair[Details, Info]']
    """
    args: List[str] = []
    current: List[str] = []
    depth = 0
    for ch in text:
        if ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        elif ch == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        args.append(tail)
    return args


def split_leading_type(text: str) -> Tuple[str, str]:
    """Split a type spelling off the front of an annotation tail.

    Whitespace inside brackets belongs to the type, so
    ``"Page[A, B] the page"`` splits into ``("Page[A, B]", "the page")``.
    """
    text = text.lstrip()
    depth = 0
    for i, ch in enumerate(text):
        if ch in "[(":
            depth += 1
        elif ch in "])":
            depth -= 1
        elif ch.isspace() and depth <= 0:
            return text[:i], text[i:].lstrip()
    return text, ""
