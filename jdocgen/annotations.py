# jdocgen/annotations.py
"""
Doc-comment annotation front end.

Function doc-comments carry the API description::

    // GetReport returns a single report.
    // @Command reports.get
    // @Description Fetch a report by id
    // @Parameter id int The report id
    // @Parameter filter Filter[Status, Owner] optional Narrow the result
    // @Result Pagination[ReportItem] The matching items
    // @Error 404 Report not found
    // @Additional Results are cached for a minute

Each ``@`` line parses into one tagged annotation variant; lines without a
leading ``@`` are prose and ignored.  :func:`build_function` folds the
variants of one doc-comment into an :class:`~jdocgen.models.APIFunction`
and enforces the block-level rules (a command, a description, at most one
result).

Project-wide metadata uses case-insensitive global tags (``@title``,
``@version``, ``@description``, ...) parsed by :func:`parse_project_info`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

from jdocgen.errors import (
    AnnotationError,
    InvalidErrorCodeError,
    MalformedParameterError,
    MalformedResultError,
    MissingCommandError,
    MissingDescriptionError,
    MultipleResultsError,
    ProjectInfoError,
    SourceLocation,
)
from jdocgen.models import (
    APIError,
    APIFunction,
    APIParameter,
    APIResult,
    ProjectInfo,
    freeze_aliases,
)
from jdocgen.typeref import split_leading_type

_log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  ANNOTATION VARIANTS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Command:
    name: str


@dataclass(frozen=True, slots=True)
class Description:
    text: str


@dataclass(frozen=True, slots=True)
class Parameter:
    name: str
    type: str
    description: str = ""
    required: bool = True


@dataclass(frozen=True, slots=True)
class Result:
    """``@Result Type description``; completeness is checked per block."""

    type: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Error:
    code: int
    description: str = ""


@dataclass(frozen=True, slots=True)
class Additional:
    text: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    tag: str
    text: str = ""


Annotation = Union[Command, Description, Parameter, Result, Error, Additional, Unrecognized]


def clean_comment_line(line: str) -> str:
    """Strip ``//``, ``/*`` and ``*/`` comment markers and surrounding blanks."""
    line = line.strip()
    if line.startswith("//"):
        line = line[2:]
    elif line.startswith("/*"):
        line = line[2:]
    if line.endswith("*/"):
        line = line[:-2]
    return line.strip()


def _split_first(text: str) -> Tuple[str, str]:
    parts = text.split(None, 1)
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1].strip()


def parse_annotation_line(
    line: str,
    location: Optional[SourceLocation] = None,
) -> Optional[Annotation]:
    """Parse one doc-comment line.

    Returns ``None`` for prose lines.  Raises :class:`AnnotationError` for
    a recognized tag whose arguments are unusable.
    """
    line = clean_comment_line(line)
    if not line.startswith("@"):
        return None
    tag, rest = _split_first(line)

    if tag == "@Command":
        if not rest:
            raise AnnotationError(
                "missing command name in @Command annotation", location=location
            )
        return Command(rest.split()[0])

    if tag == "@Description":
        return Description(rest)

    if tag == "@Parameter":
        name, tail = _split_first(rest)
        type_text, description = split_leading_type(tail)
        if not name or not type_text:
            raise MalformedParameterError(
                "invalid @Parameter annotation. Expected format: "
                "@Parameter name type [optional] description",
                location=location,
            )
        required = True
        first, remainder = _split_first(description)
        if first.lower() == "optional":
            required = False
            description = remainder
        return Parameter(name, type_text, " ".join(description.split()), required)

    if tag == "@Result":
        type_text, description = split_leading_type(rest)
        return Result(type_text, " ".join(description.split()))

    if tag == "@Error":
        code_text, description = _split_first(rest)
        if not code_text or not description:
            raise AnnotationError("invalid @Error annotation", location=location)
        try:
            code = int(code_text)
        except ValueError as exc:
            raise InvalidErrorCodeError(location=location, cause=exc) from exc
        return Error(code, " ".join(description.split()))

    if tag == "@Additional":
        return Additional(rest)

    return Unrecognized(tag, rest)


def parse_annotations(
    doc_text: str,
    location: Optional[SourceLocation] = None,
) -> List[Annotation]:
    """Every annotation in a doc-comment, in order."""
    annotations: List[Annotation] = []
    for line in doc_text.splitlines():
        annotation = parse_annotation_line(line, location)
        if annotation is not None:
            annotations.append(annotation)
    return annotations


def has_command(doc_text: str) -> bool:
    return any(
        _split_first(clean_comment_line(line))[0] == "@Command"
        for line in doc_text.splitlines()
    )


def build_function(
    doc_text: str,
    package: str = "",
    import_aliases: Optional[Mapping[str, str]] = None,
    name: str = "",
    location: Optional[SourceLocation] = None,
) -> APIFunction:
    """Build an :class:`APIFunction` from a function's doc-comment.

    Raises:
        MissingCommandError: no ``@Command`` line (not an authoring error)
        MultipleResultsError: more than one ``@Result``
        MalformedResultError: ``@Result`` without a type or description
        MissingDescriptionError: no non-empty ``@Description``
        AnnotationError: any other malformed annotation line
    """
    if not has_command(doc_text):
        raise MissingCommandError(location=location)

    command = ""
    description = ""
    parameters: List[APIParameter] = []
    results: List[Result] = []
    errors: List[APIError] = []
    additional: List[str] = []

    for annotation in parse_annotations(doc_text, location):
        if isinstance(annotation, Command):
            command = annotation.name
        elif isinstance(annotation, Description):
            description = annotation.text
        elif isinstance(annotation, Parameter):
            parameters.append(APIParameter(
                name=annotation.name,
                type=annotation.type,
                description=annotation.description,
                required=annotation.required,
            ))
        elif isinstance(annotation, Result):
            results.append(annotation)
        elif isinstance(annotation, Error):
            errors.append(APIError(annotation.code, annotation.description))
        elif isinstance(annotation, Additional):
            if annotation.text:
                additional.append(annotation.text)
        else:
            _log.debug("%s: ignoring unrecognized annotation %s", location, annotation.tag)

    if len(results) > 1:
        raise MultipleResultsError(location=location)
    api_results = ()
    if results:
        result = results[0]
        if not result.type or not result.description:
            raise MalformedResultError(location=location)
        api_results = (APIResult(type=result.type, description=result.description),)

    if not description:
        raise MissingDescriptionError(location=location)

    return APIFunction(
        command=command,
        description=description,
        parameters=tuple(parameters),
        results=api_results,
        errors=tuple(errors),
        additional=tuple(additional),
        package=package,
        import_aliases=freeze_aliases(import_aliases),
        name=name,
        location=location,
    )


# ═══════════════════════════════════════════════════════════════════
#  GLOBAL PROJECT TAGS
# ═══════════════════════════════════════════════════════════════════

_PROJECT_TAGS = (
    "title", "version", "description", "author", "license",
    "contact", "terms", "repository", "tags", "copyright",
)

_MANDATORY_TAGS = ("title", "version", "description")


def parse_project_info(doc_text: str) -> ProjectInfo:
    """Parse the global tags of a file or function doc-comment.

    Tag names are case-insensitive.  ``@tags`` takes a comma-separated
    list.  Raises :class:`ProjectInfoError` when a tag has no value or one
    of ``@title``, ``@version`` and ``@description`` is absent.
    """
    values: Dict[str, str] = {}
    for raw in doc_text.splitlines():
        line = clean_comment_line(raw)
        if not line.startswith("@"):
            continue
        tag, rest = _split_first(line)
        name = tag[1:].lower()
        if name not in _PROJECT_TAGS:
            continue
        value = " ".join(rest.split())
        if not value and name != "description":
            raise ProjectInfoError(f"missing value in @{name} annotation")
        values[name] = value

    for name in _MANDATORY_TAGS:
        if not values.get(name):
            raise ProjectInfoError(f"missing @{name} annotation")

    tags = tuple(t.strip() for t in values.pop("tags", "").split(",") if t.strip())
    return ProjectInfo(tags=tags, **values)


def find_project_info(doc_text: str) -> Optional[ProjectInfo]:
    """Like :func:`parse_project_info`, but ``None`` when the block has none."""
    try:
        return parse_project_info(doc_text)
    except ProjectInfoError as exc:
        _log.debug("No usable project tags: %s", exc)
        return None
