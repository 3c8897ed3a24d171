"""
Tests for the recommendation catalog — resolution and validation.
"""

import pytest

from melos_sidebar.core.data.recommendations import RECOMMENDED_SCRIPTS
from melos_sidebar.core.models.script import RecommendedScript, ScriptRecord
from melos_sidebar.core.services.recommendations import (
    get_recommendation,
    missing_recommendations,
    resolve,
    validate_catalog,
)


def _rec(name: str, *deps: str) -> RecommendedScript:
    return RecommendedScript(name=name, run=f"echo {name}", description=name, dependencies=deps)


def _names(entries) -> list[str]:
    return [e.name for e in entries]


class TestBuiltInCatalog:
    def test_catalog_is_valid(self):
        assert validate_catalog() == []

    def test_catalog_order(self):
        assert _names(RECOMMENDED_SCRIPTS) == [
            "lint", "analyze", "format", "test", "test:select", "codegen", "fix", "upgrade",
        ]

    def test_lookup(self):
        lint = get_recommendation("lint")
        assert lint is not None
        assert lint.dependencies == ("analyze",)
        assert get_recommendation("nope") is None

    @pytest.mark.parametrize("entry", RECOMMENDED_SCRIPTS, ids=lambda e: e.name)
    def test_resolve_against_empty_registry(self, entry: RecommendedScript):
        result = _names(resolve(entry.name, []))
        assert result[0] == entry.name
        assert len(result) == len(set(result))
        assert set(entry.dependencies) <= set(result)


class TestResolve:
    def test_lint_pulls_in_analyze(self):
        assert _names(resolve("lint", [])) == ["lint", "analyze"]

    def test_present_script_excluded(self):
        registry = [ScriptRecord(name="analyze", run="dart analyze")]
        assert _names(resolve("lint", registry)) == ["lint"]

    def test_present_requested_still_walks_dependencies(self):
        registry = [ScriptRecord(name="lint", run="melos run analyze")]
        assert _names(resolve("lint", registry)) == ["analyze"]

    def test_everything_present(self):
        assert resolve("lint", ["lint", "analyze"]) == []

    def test_unknown_requested(self):
        assert resolve("does-not-exist", []) == []

    def test_preorder_depth_first(self):
        catalog = [
            _rec("a", "b", "c"),
            _rec("b", "d"),
            _rec("c"),
            _rec("d"),
        ]
        assert _names(resolve("a", [], catalog)) == ["a", "b", "d", "c"]

    def test_shared_dependency_once(self):
        catalog = [
            _rec("a", "b", "c"),
            _rec("b", "c"),
            _rec("c"),
        ]
        assert _names(resolve("a", [], catalog)) == ["a", "b", "c"]

    def test_transitive_dependency_of_present_script(self):
        catalog = [_rec("a", "b"), _rec("b", "c"), _rec("c")]
        assert _names(resolve("a", ["b"], catalog)) == ["a", "c"]

    def test_unknown_dependency_is_inert(self):
        catalog = [_rec("a", "ghost", "b"), _rec("b")]
        assert _names(resolve("a", [], catalog)) == ["a", "b"]

    def test_cycle_terminates(self):
        catalog = [_rec("a", "b"), _rec("b", "c"), _rec("c", "a")]
        assert _names(resolve("a", [], catalog)) == ["a", "b", "c"]
        assert _names(resolve("b", [], catalog)) == ["b", "c", "a"]

    def test_self_cycle(self):
        catalog = [_rec("a", "a")]
        assert _names(resolve("a", [], catalog)) == ["a"]

    def test_deep_chain_does_not_recurse(self):
        catalog = [_rec(f"s{i}", f"s{i + 1}") for i in range(5000)] + [_rec("s5000")]
        result = resolve("s0", [], catalog)
        assert len(result) == 5001
        assert result[-1].name == "s5000"


class TestMissingRecommendations:
    def test_all_missing_in_catalog_order(self):
        assert _names(missing_recommendations([])) == _names(RECOMMENDED_SCRIPTS)

    def test_filters_present_names(self):
        registry = [ScriptRecord(name="format", run="x"), ScriptRecord(name="lint", run="y")]
        names = _names(missing_recommendations(registry))
        assert "format" not in names
        assert "lint" not in names
        assert names[0] == "analyze"


class TestValidateCatalog:
    def test_reports_cycle(self):
        catalog = [_rec("a", "b"), _rec("b", "a"), _rec("c")]
        errors = validate_catalog(catalog)
        assert len(errors) == 1
        assert "cycle" in errors[0]
        assert "a, b" in errors[0]

    def test_reports_unknown_dependency(self):
        errors = validate_catalog([_rec("a", "ghost")])
        assert errors == ["Recommended script 'a' depends on unknown script 'ghost'"]

    def test_reports_duplicates(self):
        errors = validate_catalog([_rec("a"), _rec("a")])
        assert errors == ["Duplicate recommended script: a"]
