# tests/conftest.py
"""Shared fixtures: small catalogs and an on-disk Go project."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple

import pytest

from jdocgen.catalog import Catalog, CatalogBuilder, SymbolTable
from jdocgen.diagnostics import DiagnosticCollector
from jdocgen.generics import GenericInstantiator
from jdocgen.graph import GraphCollector
from jdocgen.models import StructField, StructKey
from jdocgen.resolver import ReferenceResolver, ResolutionMode


# ─────────────────────────────────────────────────────────────
# Catalog helpers
# ─────────────────────────────────────────────────────────────

def add_struct(
    builder: CatalogBuilder,
    package: str,
    name: str,
    fields: Sequence[Tuple[str, str]] = (),
    type_params: Sequence[str] = (),
    import_aliases: Optional[Mapping[str, str]] = None,
    description: str = "",
) -> StructKey:
    return builder.add_declaration(
        package,
        name,
        description,
        [StructField(fname, ftype, json_name=fname.lower()) for fname, ftype in fields],
        type_params,
        import_aliases,
    )


def report_catalog(diagnostics: Optional[DiagnosticCollector] = None) -> Catalog:
    """Two packages: generic containers in ``models``, rows in ``reports``."""
    builder = CatalogBuilder(diagnostics)
    add_struct(builder, "models", "User", [
        ("ID", "int"),
        ("Name", "string"),
        ("Manager", "*User"),
    ])
    add_struct(builder, "models", "Pagination", [
        ("Data", "[]T"),
        ("Page", "int"),
    ], type_params=["T"], description="One page of results.")
    add_struct(builder, "models", "Pair", [
        ("Key", "K"),
        ("Value", "V"),
    ], type_params=["K", "V"])
    add_struct(builder, "models", "Lookup", [
        ("Index", "map[string]T"),
        ("Time", "TimeStamp"),
    ], type_params=["T"])
    add_struct(builder, "models", "TimeStamp", [("Unix", "int64")])
    add_struct(builder, "reports", "ReportItem", [
        ("ID", "int"),
        ("Owner", "m.User"),
        ("Next", "*ReportItem"),
    ], import_aliases={"m": "models"})
    add_struct(builder, "reports", "Details", [("Text", "string")])
    add_struct(builder, "reports", "Info", [("Level", "int")])
    return builder.build()


class Pipeline:
    """Resolution-phase components wired the way ``resolve_functions`` does."""

    def __init__(self, catalog: Catalog, mode: ResolutionMode = ResolutionMode.STRICT) -> None:
        self.diagnostics = DiagnosticCollector()
        self.table = SymbolTable(catalog)
        self.resolver = ReferenceResolver(self.table, self.diagnostics, mode)
        self.instantiator = GenericInstantiator(self.table, self.resolver, self.diagnostics)
        self.graph = GraphCollector(self.table, self.resolver, self.instantiator, self.diagnostics)

    def ids(self):
        return [d.error_id for d in self.diagnostics.diagnostics]


@pytest.fixture
def catalog() -> Catalog:
    return report_catalog()


@pytest.fixture
def pipeline(catalog) -> Pipeline:
    return Pipeline(catalog)


# ─────────────────────────────────────────────────────────────
# Go sources
# ─────────────────────────────────────────────────────────────

MODELS_GO = textwrap.dedent('''\
    package models

    // User is an account.
    type User struct {
    \tID      int    `json:"id"`
    \tName    string `json:"name"`
    \tManager *User  `json:"manager,omitempty"` // reporting line
    }

    // Pagination wraps one page of results.
    type Pagination[T any] struct {
    \tData  []T `json:"data"` // items on this page
    \tPage  int `json:"page"`
    \tTotal int `json:"total"`
    }

    // Pair holds two values.
    type Pair[K comparable, V any] struct {
    \tKey   K `json:"key"`
    \tValue V `json:"value"`
    }
''')

REPORTS_GO = textwrap.dedent('''\
    // Package reports serves reports.
    //
    // @title Report API
    // @version 1.2.0
    // @description JSON-RPC endpoints for reports
    // @author Jane Doe
    // @tags reports, admin
    package reports

    import (
    \t"context"

    \tm "example.com/app/models"
    )

    // ReportItem is a single report row.
    type ReportItem struct {
    \tID    int         `json:"id"`
    \tOwner m.User      `json:"owner"`
    \tNext  *ReportItem `json:"next,omitempty"`
    }

    // Filter narrows a listing.
    type Filter struct {
    \tOwner string `json:"owner"`
    }

    // ListReports lists reports.
    // @Command reports.list
    // @Description List reports page by page
    // @Parameter filter Filter optional Narrow the listing
    // @Parameter page int The page number
    // @Result m.Pagination[ReportItem] One page of reports
    // @Error 400 Invalid page | out of range
    func ListReports(ctx context.Context, filter Filter, page int) (m.Pagination[ReportItem], error) {
    \treturn m.Pagination[ReportItem]{}, nil
    }

    // GetOwner returns the owner.
    // @Command reports.owner
    // @Description Fetch the owner of a report
    // @Parameter id int Report id
    // @Result *m.User The owner
    func GetOwner(ctx context.Context, id int) (*m.User, error) {
    \treturn nil, nil
    }

    // helper is not part of the API.
    func helper() {}
''')

BROKEN_GO = textwrap.dedent('''\
    package reports

    // Broken has two results.
    // @Command reports.broken
    // @Description Broken on purpose
    // @Result int first
    // @Result int second
    func Broken() {}
''')

VENDORED_GO = textwrap.dedent('''\
    package reports

    type ReportItem struct {
    \tShadow string
    }
''')


def write_project(root: Path, files: Dict[str, str]) -> Path:
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def go_project(tmp_path) -> Path:
    """A clean two-package project."""
    return write_project(tmp_path / "app", {
        "models/models.go": MODELS_GO,
        "reports/reports.go": REPORTS_GO,
        "vendor/example.com/dep/dep.go": VENDORED_GO,
        "reports/reports_test.go": VENDORED_GO,
        ".git/hooks/hook.go": "this is not go",
    })


@pytest.fixture
def broken_project(go_project) -> Path:
    """The clean project plus a function with two ``@Result`` lines."""
    return write_project(go_project, {"reports/broken.go": BROKEN_GO})
