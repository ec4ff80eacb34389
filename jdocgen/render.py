# jdocgen/render.py
"""
Renderers for resolved API functions.

``render_markdown`` produces the API document: the project header, the
optional JSON-RPC 2.0 section, then one section per command (sorted by
command name) with its parameter, result and error tables, and one
``#### package.Name`` block per structure of its resolved graph, in graph
order.

``graph_to_sexp`` and ``graph_to_dict`` dump the resolved graphs for
debugging (``jdocgen graph``).

Depends on:
    - sexpdata          (S-expression output)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

import sexpdata
from sexpdata import Symbol

from jdocgen.models import (
    APIFunction,
    ProjectInfo,
    ResolvedFunction,
    ResolvedStructure,
)

_log = logging.getLogger(__name__)

JSONRPC_SPEC_URL = "https://www.jsonrpc.org/specification"


def escape_cell(text: str) -> str:
    """Make text safe inside a Markdown table cell."""
    return text.replace("|", "\\|").replace("\n", " ")


# ─────────────────────────────────────────────────────────────
# Markdown
# ─────────────────────────────────────────────────────────────

def _render_header(info: ProjectInfo, out: List[str]) -> None:
    out.append(f"# {info.title}\n\n")
    out.append(f"Version: {info.version}\n\n")
    if info.description:
        out.append(f"{info.description}\n\n")
    for label, value in (
        ("Author", info.author),
        ("License", info.license),
        ("Contact", info.contact),
        ("Terms of Service", info.terms),
        ("Repository", info.repository),
    ):
        if value:
            out.append(f"**{label}:** {value}\n\n")
    if info.tags:
        out.append(f"**Tags:** {', '.join(info.tags)}\n\n")
    if info.copyright:
        out.append(f"**Copyright:** {info.copyright}\n\n")


def _render_structure(structure: ResolvedStructure, out: List[str]) -> None:
    definition = structure.definition
    out.append(f"#### {structure.key}\n\n")
    if definition.description:
        out.append(f"{definition.description}\n\n")
    if not definition.fields:
        out.append("_No fields defined._\n\n")
        return
    out.append("| Name | Type | Description | JSON Name |\n")
    out.append("|------|------|-------------|-----------|\n")
    for f in definition.fields:
        shown = f.json_name or f.name
        if shown == "-":
            shown = "omitempty"
        out.append(
            f"| {f.name} | {escape_cell(f.raw_type)} | {escape_cell(f.description)} | {shown} |\n"
        )
    out.append("\n")


def _render_function(resolved: ResolvedFunction, out: List[str]) -> None:
    function: APIFunction = resolved.function
    _log.info("Documenting API command: %s", function.command)

    out.append(f"## {function.command}\n\n")
    if function.description:
        out.append(f"{function.description}\n\n")

    if function.parameters:
        out.append("### Parameters:\n\n")
        out.append("| Name | Type | Description | Required |\n")
        out.append("|------|------|-------------|----------|\n")
        for param in function.parameters:
            required = "Yes" if param.required else "No"
            out.append(
                f"| {param.name} | {escape_cell(param.type)} "
                f"| {escape_cell(param.description)} | {required} |\n"
            )
        out.append("\n")

    if function.results:
        out.append("### Results:\n\n")
        out.append("| Name | Type | Description |\n")
        out.append("|------|------|-------------|\n")
        for result in function.results:
            out.append(
                f"| {result.name} | {escape_cell(result.type)} "
                f"| {escape_cell(result.description)} |\n"
            )
        out.append("\n")

    for structure in resolved.structures:
        _render_structure(structure, out)

    if function.errors:
        out.append("### Errors:\n\n")
        out.append("| Code | Description |\n")
        out.append("|------|-------------|\n")
        for error in function.errors:
            out.append(f"| {error.code} | {escape_cell(error.description)} |\n")
        out.append("\n")

    if function.additional:
        out.append("### Additional Notes:\n\n")
        for note in function.additional:
            out.append(f"- {note}\n")
        out.append("\n")

    out.append("---\n\n")


def render_markdown(
    project_info: ProjectInfo,
    resolved_functions: Sequence[ResolvedFunction],
    include_rfc: bool = True,
) -> str:
    """Render the complete Markdown API document."""
    out: List[str] = []
    _render_header(project_info, out)
    if include_rfc:
        out.append("## JSON-RPC 2.0 Specification\n\n")
        out.append(
            f"This API adheres to the [JSON-RPC 2.0 specification]({JSONRPC_SPEC_URL}).\n\n"
        )
    for resolved in sorted(resolved_functions, key=lambda r: r.function.command):
        _render_function(resolved, out)
    return "".join(out)


# ─────────────────────────────────────────────────────────────
# Graph dumps
# ─────────────────────────────────────────────────────────────

def _structure_sexp(structure: ResolvedStructure) -> List[Any]:
    form: List[Any] = [
        Symbol("struct"),
        structure.key.package,
        structure.key.name,
    ]
    for f in structure.definition.fields:
        form.append([Symbol("field"), f.name, f.raw_type, f.json_name])
    return form


def _function_sexp(resolved: ResolvedFunction) -> List[Any]:
    function = resolved.function
    form: List[Any] = [Symbol("command"), function.command]
    if function.package:
        form.append([Symbol("package"), function.package])
    for param in function.parameters:
        form.append([Symbol("param"), param.name, param.type])
    for result in function.results:
        form.append([Symbol("result"), result.type])
    form.append([Symbol("graph")] + [_structure_sexp(s) for s in resolved.structures])
    return form


def graph_to_sexp(resolved_functions: Sequence[ResolvedFunction]) -> str:
    """One S-expression per function, in command order."""
    ordered = sorted(resolved_functions, key=lambda r: r.function.command)
    return "\n".join(sexpdata.dumps(_function_sexp(r)) for r in ordered) + "\n"


def graph_to_dict(resolved_functions: Sequence[ResolvedFunction]) -> List[Dict[str, Any]]:
    """JSON-ready form of the resolved graphs, in command order."""
    result: List[Dict[str, Any]] = []
    for resolved in sorted(resolved_functions, key=lambda r: r.function.command):
        function = resolved.function
        result.append({
            "command": function.command,
            "package": function.package,
            "types": list(function.referenced_types),
            "structures": [
                {
                    "key": str(s.key),
                    "fields": [
                        {"name": f.name, "type": f.raw_type, "json": f.json_name}
                        for f in s.definition.fields
                    ],
                }
                for s in resolved.structures
            ],
        })
    return result
