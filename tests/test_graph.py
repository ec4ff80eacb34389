# tests/test_graph.py
"""Structure graph collection and per-function resolution."""

from jdocgen.catalog import CatalogBuilder
from jdocgen.diagnostics import DiagnosticCollector
from jdocgen.graph import resolve_functions
from jdocgen.models import APIFunction, APIParameter, APIResult, StructKey
from jdocgen.resolver import ResolutionMode

from tests.conftest import Pipeline, add_struct


def keys(*names):
    out = []
    for name in names:
        package, _, rest = name.partition(".")
        out.append(StructKey(package, rest))
    return out


class TestCollect:

    def test_cycle_terminates(self, pipeline):
        order = pipeline.graph.collect(["ReportItem"], "reports")
        assert order == keys("reports.ReportItem", "models.User")

    def test_self_reference_only_once(self, pipeline):
        assert pipeline.graph.collect(["*User", "[]User"], "models") == keys("models.User")

    def test_pre_order_with_instance(self, pipeline):
        order = pipeline.graph.collect(["m.Pagination[ReportItem]"], "reports", {"m": "models"})
        assert order == keys(
            "models.Pagination[reports.ReportItem]",
            "reports.ReportItem",
            "models.User",
        )

    def test_siblings_keep_declaration_order(self, pipeline):
        order = pipeline.graph.collect(["m.Pair[Details, Info]"], "reports", {"m": "models"})
        assert order == keys(
            "models.Pair[reports.Details, reports.Info]",
            "reports.Details",
            "reports.Info",
        )

    def test_fields_resolve_in_owning_package(self, pipeline):
        order = pipeline.graph.collect(["Lookup[User]"], "models")
        assert order == keys("models.Lookup[User]", "models.User", "models.TimeStamp")

    def test_seed_order_is_kept(self, pipeline):
        order = pipeline.graph.collect(["Info", "Details"], "reports")
        assert order == keys("reports.Info", "reports.Details")

    def test_basic_and_opaque_seeds_are_skipped(self, pipeline):
        assert pipeline.graph.collect(["int", "chan User", "func()"], "models") == []
        assert pipeline.ids() == []

    def test_unresolved_seed(self, pipeline):
        assert pipeline.graph.collect(["Ghost"], "reports") == []
        assert pipeline.ids() == ["unresolved-type"]

    def test_malformed_seed(self, pipeline):
        assert pipeline.graph.collect(["Pair[A, B"], "models") == []
        assert pipeline.ids() == ["malformed-type"]

    def test_bare_generic_is_an_arity_mismatch(self, pipeline):
        assert pipeline.graph.collect(["Pagination"], "models") == []
        assert pipeline.ids() == ["generic-arity-mismatch"]

    def test_caller_visited_set_is_honoured_and_updated(self, pipeline):
        visited = {StructKey("models", "User")}
        order = pipeline.graph.collect(["ReportItem"], "reports", visited=visited)
        assert order == keys("reports.ReportItem")
        assert StructKey("reports", "ReportItem") in visited

    def test_long_chain_does_not_recurse(self):
        builder = CatalogBuilder()
        depth = 3000
        for i in range(depth):
            add_struct(builder, "chain", f"Link{i}", [("Next", f"*Link{i + 1}")])
        add_struct(builder, "chain", f"Link{depth}")
        pipeline = Pipeline(builder.build())
        order = pipeline.graph.collect(["Link0"], "chain")
        assert len(order) == depth + 1
        assert order[-1] == StructKey("chain", f"Link{depth}")


class TestResolveKey:

    def test_plain_and_instance_keys(self, pipeline):
        graph = pipeline.graph
        assert graph.resolve_key("[]User", "models") == StructKey("models", "User")
        assert graph.resolve_key("Pagination[User]", "models") == StructKey("models", "Pagination[User]")

    def test_non_structures(self, pipeline):
        assert pipeline.graph.resolve_key("string", "models") is None


def list_function(**overrides):
    values = dict(
        command="reports.list",
        description="List reports",
        parameters=(APIParameter("page", "int"), APIParameter("filter", "Details")),
        results=(APIResult("m.Pagination[ReportItem]", "One page"),),
        package="reports",
        import_aliases={"m": "models"},
    )
    values.update(overrides)
    return APIFunction(**values)


class TestResolveFunctions:

    def test_parameters_before_results(self, catalog):
        result = resolve_functions(catalog, [list_function()])
        (resolved,) = result.functions
        assert resolved.structure_keys() == tuple(keys(
            "reports.Details",
            "models.Pagination[reports.ReportItem]",
            "reports.ReportItem",
            "models.User",
        ))
        assert resolved.structures[1].definition.fields[0].raw_type == "[]reports.ReportItem"
        assert result.diagnostics == []

    def test_each_function_gets_a_fresh_visited_set(self, catalog):
        owner = APIFunction(
            command="reports.owner",
            results=(APIResult("*m.User", "The owner"),),
            package="reports",
            import_aliases={"m": "models"},
        )
        result = resolve_functions(catalog, [list_function(), owner])
        assert result.functions[1].structure_keys() == (StructKey("models", "User"),)

    def test_instances_are_shared_across_functions(self, catalog):
        other = list_function(command="reports.again")
        result = resolve_functions(catalog, [list_function(), other])
        first = result.functions[0].structures[1].definition
        second = result.functions[1].structures[1].definition
        assert first is second
        assert len(result.table.synthesized) == 1

    def test_structure_keys_across_functions(self, catalog):
        owner = APIFunction(command="reports.owner", results=(APIResult("Info", "x"),), package="reports")
        result = resolve_functions(catalog, [list_function(), owner])
        assert result.structure_keys[-1] == StructKey("reports", "Info")
        assert len(result.structure_keys) == len(set(result.structure_keys))

    def test_diagnostics_are_collected(self, catalog):
        collector = DiagnosticCollector()
        broken = list_function(results=(APIResult("Missing", "x"),))
        result = resolve_functions(catalog, [broken], diagnostics=collector)
        assert [d.error_id for d in result.diagnostics] == ["unresolved-type"]
        assert collector.diagnostics == result.diagnostics
        assert result.functions[0].structure_keys() == (StructKey("reports", "Details"),)

    def test_permissive_mode_is_passed_through(self, catalog):
        function = APIFunction(command="x", results=(APIResult("Details", "d"),), package="models")
        strict = resolve_functions(catalog, [function])
        permissive = resolve_functions(catalog, [function], ResolutionMode.PERMISSIVE)
        assert strict.functions[0].structures == ()
        assert permissive.functions[0].structure_keys() == (StructKey("reports", "Details"),)
