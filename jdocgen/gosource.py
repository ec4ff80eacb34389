# jdocgen/gosource.py
"""
Go source collector.

Scans a Go source tree just deeply enough to feed the catalog and the
annotation front end: package clause, imports, top-level struct
declarations (generic ones included) and documented top-level functions.
This is not a Go parser: function bodies, expressions and non-struct type
declarations are skipped by bracket matching.

Tokenization
────────────
A single regular expression splits the file into tokens, comments and
newlines included, so doc-comment groups can be reattached to the
declarations they precede.  Opening brackets are linked to their closing
partner (``Token.link``), which lets the scanner jump over any balanced
region in one step.  Text no token rule matches (an unterminated string,
a stray character) raises :class:`~jdocgen.errors.GoSyntaxError`.

Collection
──────────
:func:`collect_project` walks the tree, registers every struct into a
:class:`~jdocgen.catalog.CatalogBuilder`, builds an
:class:`~jdocgen.models.APIFunction` per ``@Command`` block and picks up
the project's global tags.  All failures here are fatal
(:class:`~jdocgen.errors.CatalogError`) except annotation errors, which
skip the function and leave a ``skipped-function`` diagnostic.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from jdocgen.annotations import build_function, find_project_info
from jdocgen.catalog import Catalog, CatalogBuilder
from jdocgen.config import GeneratorConfig
from jdocgen.diagnostics import DiagnosticCollector, DiagnosticSeverity
from jdocgen.errors import (
    AnnotationError,
    CatalogError,
    GoSyntaxError,
    MissingCommandError,
    SourceLocation,
)
from jdocgen.models import APIFunction, ProjectInfo, StructDefinition, StructField, freeze_aliases

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  TOKENIZER
# ═══════════════════════════════════════════════════════════════════

_TOKEN_RE = re.compile(r"""
    (?P<comment>//[^\n]*|/\*.*?\*/)
  | (?P<string>"(?:\\.|[^"\\\n])*"|`[^`]*`)
  | (?P<rune>'(?:\\.|[^'\\\n])+')
  | (?P<ident>[^\W\d]\w*)
  | (?P<number>\.?\d[\w.]*(?:[eEpP][+-]\w+)?)
  | (?P<newline>\n)
  | (?P<space>[ \t\r\f\ufeff]+)
  | (?P<op>\.\.\.|&\^=?|<<=?|>>=?|&&|\|\||\+\+|--|<-|:=|[-+*/%&|^<>=!]=?|[()\[\]{},;.~:])
""", re.VERBOSE | re.DOTALL)

_OPENERS = {"(": ")", "[": "]", "{": "}"}


@dataclass
class Token:
    kind: str
    str: str
    linenr: int
    column: int
    link: Optional[int] = None

    def is_word(self) -> bool:
        return self.kind in ("ident", "number", "string", "rune")


def tokenize(text: str, filename: str = "<source>") -> List[Token]:
    """Split Go source into tokens.  Whitespace other than newlines is dropped."""
    tokens: List[Token] = []
    openers: List[int] = []
    pos = 0
    line = 1
    line_start = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise GoSyntaxError(
                f"unexpected character {text[pos]!r}",
                location=SourceLocation(filename, line, pos - line_start + 1),
            )
        kind = match.lastgroup
        value = match.group()
        if kind != "space":
            tok = Token(kind, value, line, pos - line_start + 1)
            if kind == "op" and value in _OPENERS:
                openers.append(len(tokens))
            elif kind == "op" and value in (")", "]", "}"):
                if not openers or _OPENERS[tokens[openers[-1]].str] != value:
                    raise GoSyntaxError(
                        f"unbalanced {value!r}",
                        location=SourceLocation(filename, line, tok.column),
                    )
                opener = openers.pop()
                tokens[opener].link = len(tokens)
                tok.link = opener
            tokens.append(tok)
        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rindex("\n") + 1
        pos = match.end()
    if openers:
        tok = tokens[openers[-1]]
        raise GoSyntaxError(
            f"unclosed {tok.str!r}",
            location=SourceLocation(filename, tok.linenr, tok.column),
        )
    return tokens


def comment_text(tok: Token) -> str:
    """Text of a comment token without its markers."""
    if tok.str.startswith("//"):
        return tok.str[2:].strip()
    lines = [ln.strip() for ln in tok.str[2:-2].splitlines()]
    return "\n".join(ln.lstrip("*").strip() for ln in lines).strip()


def join_tokens(tokens: List[Token]) -> str:
    """Render a token run as compact Go type text (``map[string][]m.Item``)."""
    parts: List[str] = []
    prev: Optional[Token] = None
    for tok in tokens:
        if prev is not None:
            if prev.str in (",", ";"):
                parts.append(" ")
            elif (prev.is_word() or prev.str in (")", "<-")) and (tok.is_word() or tok.str in ("*", "[", "<-")):
                if not (prev.kind == "ident" and tok.str == "[") and {prev.str, tok.str} != {"chan", "<-"}:
                    parts.append(" ")
        parts.append(tok.str)
        prev = tok
    return "".join(parts)


# ═══════════════════════════════════════════════════════════════════
#  SOURCE FILE MODEL
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FunctionDecl:
    """A top-level function or method that carries a doc-comment."""

    name: str
    doc: str
    location: SourceLocation
    receiver: str = ""


@dataclass
class SourceFile:
    path: str
    package: str = ""
    import_aliases: Dict[str, str] = field(default_factory=dict)
    structs: List[StructDefinition] = field(default_factory=list)
    functions: List[FunctionDecl] = field(default_factory=list)
    doc: str = ""


_MAJOR_VERSION_RE = re.compile(r"v\d+$")
_JSON_TAG_RE = re.compile(r'json:"([^"]*)"')


def import_package_name(path: str) -> str:
    """Package identifier implied by an import path (its last element).

    A trailing major-version element is skipped:
    ``github.com/acme/kit/v2`` imports package ``kit``.
    """
    parts = [p for p in path.split("/") if p]
    if not parts:
        return ""
    if len(parts) > 1 and _MAJOR_VERSION_RE.fullmatch(parts[-1]):
        return parts[-2]
    return parts[-1]


def json_name(tag: str, field_name: str) -> str:
    match = _JSON_TAG_RE.search(tag)
    if match is None:
        return field_name
    name = match.group(1).split(",")[0]
    return name or field_name


# ═══════════════════════════════════════════════════════════════════
#  SCANNER
# ═══════════════════════════════════════════════════════════════════

class _FileScanner:
    """Walks the top level of one token list."""

    def __init__(self, tokens: List[Token], filename: str) -> None:
        self.tokens = tokens
        self.filename = filename
        self.source = SourceFile(path=filename)

    # ----- helpers ----------------------------------------------------------

    def _tok(self, index: int) -> Optional[Token]:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def _skip_space(self, index: int) -> int:
        """First index at or after ``index`` that is not a comment or newline."""
        while index < len(self.tokens) and self.tokens[index].kind in ("comment", "newline"):
            index += 1
        return index

    def _location(self, tok: Token) -> SourceLocation:
        return SourceLocation(self.filename, tok.linenr, tok.column)

    def _error(self, message: str, tok: Optional[Token]) -> GoSyntaxError:
        if tok is None:
            return GoSyntaxError(message, location=SourceLocation(self.filename))
        return GoSyntaxError(message, location=self._location(tok))

    def leading_comments(self, index: int) -> str:
        """Doc-comment group ending on the line right before ``tokens[index]``."""
        group: List[Token] = []
        newlines = 0
        i = index - 1
        while i >= 0:
            tok = self.tokens[i]
            if tok.kind == "newline":
                newlines += 1
                if newlines > 1:
                    break
            elif tok.kind == "comment":
                prev = self._tok(i - 1)
                if prev is not None and prev.kind != "newline":
                    break
                group.append(tok)
                newlines = 0
            else:
                break
            i -= 1
        group.reverse()
        return "\n".join(comment_text(t) for t in group)

    def trailing_comment(self, index: int) -> str:
        """Line comment following ``tokens[index]`` on the same line."""
        tok = self._tok(index + 1)
        if tok is not None and tok.kind == "comment":
            return comment_text(tok)
        return ""

    def _end_of_statement(self, index: int, stop: int) -> int:
        """Index of the newline or ``;`` ending the statement at ``index``."""
        while index < stop:
            tok = self.tokens[index]
            if tok.kind == "newline" or tok.str == ";":
                return index
            if tok.link is not None and tok.str in _OPENERS:
                index = tok.link
            index += 1
        return stop

    # ----- top level --------------------------------------------------------

    def scan(self) -> SourceFile:
        index = 0
        while index < len(self.tokens):
            tok = self.tokens[index]
            if tok.kind in ("comment", "newline") or tok.str == ";":
                index += 1
            elif tok.str == "package":
                index = self._package(index)
            elif tok.str == "import":
                index = self._import(index)
            elif tok.str == "type":
                index = self._type_decl(index)
            elif tok.str == "func":
                index = self._func(index)
            else:
                index = self._end_of_statement(index, len(self.tokens))
        if not self.source.package:
            raise self._error("missing package clause", None)
        return self.source

    def _package(self, index: int) -> int:
        name = self._tok(self._skip_space(index + 1))
        if name is None or name.kind != "ident":
            raise self._error("expected package name", name or self.tokens[index])
        self.source.package = name.str
        self.source.doc = self.leading_comments(index)
        return self._skip_space(index + 1) + 1

    def _import(self, index: int) -> int:
        index = self._skip_space(index + 1)
        tok = self._tok(index)
        if tok is not None and tok.str == "(":
            end = tok.link
            i = index + 1
            while i < end:
                stmt_end = self._end_of_statement(i, end)
                self._import_spec([t for t in self.tokens[i:stmt_end] if t.kind != "comment"])
                i = stmt_end + 1
            return end + 1
        end = self._end_of_statement(index, len(self.tokens))
        self._import_spec([t for t in self.tokens[index:end] if t.kind != "comment"])
        return end

    def _import_spec(self, tokens: List[Token]) -> None:
        if not tokens:
            return
        path_tok = tokens[-1]
        if path_tok.kind != "string":
            raise self._error("expected import path", path_tok)
        path = path_tok.str[1:-1]
        if len(tokens) > 1:
            alias = tokens[0].str
            if alias in ("_", "."):
                return
        else:
            alias = import_package_name(path)
        self.source.import_aliases[alias] = import_package_name(path)

    def _func(self, index: int) -> int:
        doc = self.leading_comments(index)
        func_tok = self.tokens[index]
        i = self._skip_space(index + 1)
        receiver = ""
        tok = self._tok(i)
        if tok is not None and tok.str == "(":
            receiver = join_tokens(
                [t for t in self.tokens[i + 1:tok.link] if t.kind not in ("comment", "newline")]
            )
            i = self._skip_space(tok.link + 1)
        name = self._tok(i)
        if name is None or name.kind != "ident":
            raise self._error("expected function name", name or func_tok)
        if doc:
            self.source.functions.append(
                FunctionDecl(name.str, doc, self._location(func_tok), receiver)
            )
        return self._end_of_statement(i, len(self.tokens))

    # ----- type declarations ------------------------------------------------

    def _type_decl(self, index: int) -> int:
        decl_doc = self.leading_comments(index)
        i = self._skip_space(index + 1)
        tok = self._tok(i)
        if tok is not None and tok.str == "(":
            end = tok.link
            j = self._skip_space(i + 1)
            while j < end:
                stmt_end = self._type_spec(j, end, decl_doc)
                j = self._skip_space(stmt_end + 1)
            return end + 1
        return self._type_spec(i, len(self.tokens), decl_doc)

    def _type_spec(self, index: int, stop: int, decl_doc: str) -> int:
        """Scan one ``Name[params] struct {...}`` spec; returns its end index."""
        name = self._tok(index)
        end = self._end_of_statement(index, stop)
        if name is None or name.kind != "ident":
            return end
        doc = self.leading_comments(index) or decl_doc

        i = index + 1
        type_params: Tuple[str, ...] = ()
        tok = self._tok(i)
        if tok is not None and tok.str == "[" and self._is_type_param_list(i):
            type_params = self._type_params(i)
            i = tok.link + 1

        body = self._tok(i)
        if body is None or body.str != "struct":
            return end
        brace = self._tok(i + 1)
        if brace is None or brace.str != "{":
            raise self._error("expected '{' after struct", brace or body)

        self.source.structs.append(StructDefinition(
            name=name.str,
            package=self.source.package,
            description=" ".join(line for line in doc.split("\n") if line.strip()),
            fields=tuple(self._fields(i + 2, brace.link)),
            type_params=type_params,
            import_aliases=freeze_aliases(self.source.import_aliases),
            location=self._location(name),
        ))
        return end

    def _is_type_param_list(self, index: int) -> bool:
        """``[T any]`` opens a parameter list; ``[N]int`` is an array type."""
        inner = [
            t for t in self.tokens[index + 1:self.tokens[index].link]
            if t.kind not in ("comment", "newline")
        ]
        return len(inner) >= 2 and inner[0].kind == "ident" and inner[1].str != "."

    def _type_params(self, index: int) -> Tuple[str, ...]:
        names: List[str] = []
        segment: List[Token] = []
        inner = [
            t for t in self.tokens[index + 1:self.tokens[index].link]
            if t.kind not in ("comment", "newline")
        ]
        depth = 0
        for tok in inner + [Token("op", ",", 0, 0)]:
            if tok.str in _OPENERS:
                depth += 1
            elif tok.str in (")", "]", "}"):
                depth -= 1
            if tok.str == "," and depth == 0:
                if segment and segment[0].kind == "ident":
                    names.append(segment[0].str)
                segment = []
            else:
                segment.append(tok)
        return tuple(names)

    def _code_tokens(self, start: int, end: int) -> Tuple[List[Token], int]:
        """Non-comment tokens of ``[start, end)`` and the index of the last one.

        Newlines only occur inside brackets here; the ones separating
        inline struct fields become ``;``.
        """
        code: List[Token] = []
        last = start
        for k in range(start, end):
            tok = self.tokens[k]
            if tok.kind == "comment":
                continue
            if tok.kind == "newline":
                nxt = self._tok(self._skip_space(k))
                if not code or code[-1].str in ("{", "(", "[", ",", ";"):
                    continue
                if nxt is not None and nxt.str in ("}", ")", "]"):
                    continue
                tok = Token("op", ";", tok.linenr, tok.column)
            else:
                last = k
            code.append(tok)
        return code, last

    def _fields(self, start: int, stop: int) -> List[StructField]:
        fields: List[StructField] = []
        i = self._skip_space(start)
        while i < stop:
            end = self._end_of_statement(i, stop)
            code, last = self._code_tokens(i, end)
            if code:
                description = " ".join(
                    part for part in (
                        " ".join(self.leading_comments(i).split()),
                        " ".join(self.trailing_comment(last).split()),
                    ) if part
                )
                fields.extend(self._field_decl(code, description))
            i = self._skip_space(end + 1)
        return fields

    def _field_decl(self, code: List[Token], description: str) -> List[StructField]:
        tag = ""
        if len(code) > 1 and code[-1].kind == "string":
            tag = code[-1].str
            code = code[:-1]

        names: List[str] = []
        i = 0
        while i + 1 < len(code) and code[i].kind == "ident" and code[i + 1].str == ",":
            names.append(code[i].str)
            i += 2
        if names:
            names.append(code[i].str)
            type_tokens = code[i + 1:]
        elif self._is_embedded(code):
            type_tokens = code
            names = [self._embedded_name(code)]
        else:
            names = [code[0].str]
            type_tokens = code[1:]

        raw_type = join_tokens(type_tokens)
        return [
            StructField(
                name=name,
                raw_type=raw_type,
                description=description,
                json_name=json_name(tag, name),
            )
            for name in names
        ]

    @staticmethod
    def _is_embedded(code: List[Token]) -> bool:
        """``Base``, ``*Base``, ``m.Base`` or ``Page[T]`` with no field name."""
        i = 1 if code[0].str == "*" else 0
        if i >= len(code) or code[i].kind != "ident":
            return False
        i += 1
        if i + 1 < len(code) and code[i].str == "." and code[i + 1].kind == "ident":
            i += 2
        if i < len(code) and code[i].str == "[":
            # Positions inside ``code`` differ from the token list; find the match.
            depth = 0
            for j in range(i, len(code)):
                if code[j].str == "[":
                    depth += 1
                elif code[j].str == "]":
                    depth -= 1
                    if depth == 0:
                        i = j + 1
                        break
        return i == len(code)

    @staticmethod
    def _embedded_name(code: List[Token]) -> str:
        """Go names an embedded field by its bare type name: ``*m.Base[T]`` is ``Base``."""
        name = ""
        for tok in code:
            if tok.str == "[":
                break
            if tok.kind == "ident":
                name = tok.str
        return name


def scan_source(text: str, filename: str = "<source>") -> SourceFile:
    """Scan one Go file.  Raises :class:`GoSyntaxError` on untokenizable text."""
    tokens = tokenize(text, filename)
    source = _FileScanner(tokens, filename).scan()
    _log.debug(
        "Scanned %s: package %s, %d struct(s), %d documented function(s)",
        filename, source.package, len(source.structs), len(source.functions),
    )
    return source


# ═══════════════════════════════════════════════════════════════════
#  PROJECT COLLECTION
# ═══════════════════════════════════════════════════════════════════

@dataclass
class ProjectScan:
    catalog: Catalog
    functions: List[APIFunction]
    project_info: ProjectInfo
    diagnostics: DiagnosticCollector
    files: List[str] = field(default_factory=list)


def iter_source_files(root: Path, config: GeneratorConfig) -> List[Path]:
    """Go files under ``root`` in a stable order."""
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in config.skip_dirs and not d.startswith(".")
        )
        for filename in sorted(filenames):
            if not filename.endswith(".go"):
                continue
            if filename.endswith("_test.go") and not config.include_tests:
                continue
            found.append(Path(dirpath) / filename)
    return found


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogError(f"cannot read {path}: {exc}", cause=exc) from exc


def collect_project(
    root: Union[str, Path],
    config: Optional[GeneratorConfig] = None,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> ProjectScan:
    """Collection phase: scan every Go file under ``root``.

    Raises:
        CatalogError: ``root`` is not a directory, a file cannot be read
            or tokenized, or no file carries the global project tags
    """
    root = Path(root)
    config = config or GeneratorConfig(source_dir=str(root))
    diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
    if not root.is_dir():
        raise CatalogError(f"source directory not found: {root}")

    builder = CatalogBuilder(diagnostics)
    functions: List[APIFunction] = []
    project_info: Optional[ProjectInfo] = None
    files: List[str] = []

    for path in iter_source_files(root, config):
        source = scan_source(read_source(path), str(path))
        files.append(str(path))

        if project_info is None and source.doc:
            project_info = find_project_info(source.doc)

        for struct in source.structs:
            builder.add_declaration(
                source.package,
                struct.name,
                struct.description,
                struct.fields,
                struct.type_params,
                struct.import_aliases,
                struct.location,
            )

        for decl in source.functions:
            function = _build_api_function(decl, source, diagnostics)
            if function is not None:
                functions.append(function)
            if project_info is None:
                project_info = find_project_info(decl.doc)

    if project_info is None:
        raise CatalogError(
            "no global tags found in any Go file. "
            "Please include global tags in at least one file"
        )

    _log.info(
        "Collected %d file(s), %d structure(s), %d command(s)",
        len(files), len(builder), len(functions),
    )
    return ProjectScan(builder.build(), functions, project_info, diagnostics, files)


def _build_api_function(
    decl: FunctionDecl,
    source: SourceFile,
    diagnostics: DiagnosticCollector,
) -> Optional[APIFunction]:
    try:
        return build_function(
            decl.doc,
            package=source.package,
            import_aliases=source.import_aliases,
            name=decl.name,
            location=decl.location,
        )
    except MissingCommandError:
        return None
    except AnnotationError as exc:
        diagnostics.report(
            "skipped-function",
            f"Function '{decl.name}' skipped due to error: {exc.message}",
            DiagnosticSeverity.WARNING,
            decl.location,
        )
        return None
