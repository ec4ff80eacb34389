# tests/test_render.py
"""Markdown rendering and the graph dumps."""

import json

import pytest
import sexpdata
from sexpdata import Symbol

from jdocgen.catalog import CatalogBuilder
from jdocgen.graph import resolve_functions
from jdocgen.models import APIError, APIFunction, APIParameter, APIResult, ProjectInfo, StructField
from jdocgen.render import escape_cell, graph_to_dict, graph_to_sexp, render_markdown

from tests.conftest import add_struct


INFO = ProjectInfo(
    title="Report API",
    version="1.2.0",
    description="JSON-RPC endpoints for reports",
    author="Jane Doe",
    terms="https://example.com/terms",
    tags=("reports", "admin"),
    copyright="2024 Example",
)


def listing():
    return APIFunction(
        command="reports.list",
        description="List reports",
        parameters=(
            APIParameter("filter", "Details", "Narrow | filter", required=False),
            APIParameter("page", "int", "The page"),
        ),
        results=(APIResult("m.Pagination[ReportItem]", "One page"),),
        errors=(APIError(400, "Invalid page"),),
        additional=("Cached for a minute",),
        package="reports",
        import_aliases={"m": "models"},
    )


def ping():
    return APIFunction(command="admin.ping", description="Liveness check", package="reports")


@pytest.fixture
def resolved(catalog):
    return resolve_functions(catalog, [listing(), ping()]).functions


class TestEscapeCell:

    def test_pipes_and_newlines(self):
        assert escape_cell("a | b\nc") == "a \\| b c"


class TestMarkdownHeader:

    def test_header_lines(self, resolved):
        text = render_markdown(INFO, resolved)
        assert text.startswith("# Report API\n\nVersion: 1.2.0\n\nJSON-RPC endpoints for reports\n\n")
        assert "**Author:** Jane Doe\n" in text
        assert "**Terms of Service:** https://example.com/terms\n" in text
        assert "**Tags:** reports, admin\n" in text
        assert "**Copyright:** 2024 Example\n" in text

    def test_absent_optional_tags_are_omitted(self, resolved):
        text = render_markdown(INFO, resolved)
        assert "**License:**" not in text
        assert "**Contact:**" not in text
        assert "**Repository:**" not in text

    def test_rfc_section(self, resolved):
        assert "## JSON-RPC 2.0 Specification" in render_markdown(INFO, resolved)
        assert "JSON-RPC 2.0 Specification" not in render_markdown(INFO, resolved, include_rfc=False)


class TestMarkdownFunctions:

    def test_commands_are_sorted(self, resolved):
        text = render_markdown(INFO, resolved)
        assert text.index("## admin.ping") < text.index("## reports.list")
        assert text.count("---\n") == 2

    def test_parameter_table(self, resolved):
        text = render_markdown(INFO, resolved)
        assert "### Parameters:\n\n| Name | Type | Description | Required |\n" in text
        assert "| filter | Details | Narrow \\| filter | No |\n" in text
        assert "| page | int | The page | Yes |\n" in text

    def test_result_table(self, resolved):
        text = render_markdown(INFO, resolved)
        assert "| result | m.Pagination[ReportItem] | One page |\n" in text

    def test_structures_follow_graph_order(self, resolved):
        text = render_markdown(INFO, resolved)
        headings = [line for line in text.splitlines() if line.startswith("#### ")]
        assert headings == [
            "#### reports.Details",
            "#### models.Pagination[reports.ReportItem]",
            "#### reports.ReportItem",
            "#### models.User",
        ]

    def test_structure_block(self, resolved):
        text = render_markdown(INFO, resolved)
        block = text.split("#### models.Pagination[reports.ReportItem]\n\n", 1)[1]
        assert block.startswith("One page of results.\n\n| Name | Type | Description | JSON Name |\n")
        assert "| Data | []reports.ReportItem |  | data |\n" in block

    def test_errors_and_notes(self, resolved):
        text = render_markdown(INFO, resolved)
        assert "### Errors:\n\n| Code | Description |\n|------|-------------|\n| 400 | Invalid page |\n" in text
        assert "### Additional Notes:\n\n- Cached for a minute\n" in text

    def test_empty_sections_are_omitted(self, resolved):
        text = render_markdown(INFO, resolved)
        section = text.split("## admin.ping\n\n", 1)[1].split("---", 1)[0]
        assert section == "Liveness check\n\n"

    def test_ignored_json_field_is_shown_as_omitempty(self):
        builder = CatalogBuilder()
        builder.add_declaration("api", "Secret", "", [
            StructField("Token", "string", json_name="-"),
            StructField("Name", "string", json_name="name"),
        ], (), None)
        function = APIFunction(command="x", description="d", results=(APIResult("Secret", "s"),), package="api")
        functions = resolve_functions(builder.build(), [function]).functions
        text = render_markdown(INFO, functions)
        assert "| Token | string |  | omitempty |\n" in text
        assert "| Name | string |  | name |\n" in text
        assert graph_to_dict(functions)[0]["structures"][0]["fields"][0]["json"] == "-"

    def test_structure_without_fields(self):
        builder = CatalogBuilder()
        add_struct(builder, "api", "Empty")
        function = APIFunction(command="x", description="d", results=(APIResult("Empty", "e"),), package="api")
        functions = resolve_functions(builder.build(), [function]).functions
        assert "#### api.Empty\n\n_No fields defined._\n" in render_markdown(INFO, functions)


class TestGraphDumps:

    def test_sexp_forms_parse_back(self, resolved):
        text = graph_to_sexp(resolved)
        assert text.endswith("\n")
        lines = text.strip().split("\n")
        assert len(lines) == 2

        ping_form = sexpdata.loads(lines[0])
        assert ping_form[0] == Symbol("command")
        assert ping_form[1] == "admin.ping"
        assert ping_form[-1] == [Symbol("graph")]

        list_form = sexpdata.loads(lines[1])
        assert list_form[1] == "reports.list"
        assert list_form[2] == [Symbol("package"), "reports"]
        assert list_form[3] == [Symbol("param"), "filter", "Details"]
        assert list_form[5] == [Symbol("result"), "m.Pagination[ReportItem]"]
        graph = list_form[-1]
        assert graph[0] == Symbol("graph")
        assert [s[2] for s in graph[1:]] == [
            "Details", "Pagination[reports.ReportItem]", "ReportItem", "User",
        ]
        assert graph[2][3] == [Symbol("field"), "Data", "[]reports.ReportItem", "data"]

    def test_dict_dump_is_json_ready(self, resolved):
        dump = graph_to_dict(resolved)
        assert json.loads(json.dumps(dump)) == dump
        assert [d["command"] for d in dump] == ["admin.ping", "reports.list"]
        entry = dump[1]
        assert entry["types"] == ["Details", "int", "m.Pagination[ReportItem]"]
        assert entry["structures"][1]["key"] == "models.Pagination[reports.ReportItem]"
        assert entry["structures"][1]["fields"][0] == {
            "name": "Data", "type": "[]reports.ReportItem", "json": "data",
        }
