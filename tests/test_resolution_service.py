"""End-to-end resolution tests against an in-memory registry."""

import random

import pytest

from versioning.errors import NoRangeMatchError, VersionConflictError
from versioning.models import RootSpec
from versioning.reconcile import flatten
from versioning.service import VersionResolutionService

GRAPH = {
    "App": {"1.0.0": {"Lib": "1.0", "Util": "[1.0,2.0)"}},
    "Lib": {"1.0.0": {"Util": "1.2"}, "2.0.0": {}},
    "Util": {"1.0.0": {}, "1.2.0": {}, "1.5.0": {}, "2.0.0": {}},
    "Tool": {"1.0.0": {"Util": "(,1.5]"}, "2.0.0-beta": {}},
}


def as_strings(resolved):
    return {package_id.lower(): str(version) for package_id, version in resolved.items()}


def reversed_declarations(packages):
    return {
        pid: {ver: dict(reversed(list(deps.items()))) for ver, deps in versions.items()}
        for pid, versions in packages.items()
    }


class TestScenarios:
    """Behaviors of the resolver as a whole."""

    def test_unpinned_root_and_lowest_satisfying_dependency(self, make_registry, v):
        registry = make_registry({
            "A": {"1.0.0": {}, "1.1.0": {"B": "[1.0.0,2.0.0)"}},
            "B": {"1.0.0": {}, "1.5.0": {}},
        })
        resolved = VersionResolutionService(registry, max_workers=1).resolve([RootSpec("A")])
        assert resolved["A"] == v("1.1.0")
        assert resolved["B"] == v("1.0.0")
        assert len(resolved) == 2

    def test_lowest_wins_across_edges(self, make_registry, v):
        registry = make_registry({
            "A": {"1.0.0": {"C": "1.0.0", "D": "1.0"}},
            "D": {"1.0.0": {"C": "[1.0.0,2.0.0)"}},
            "C": {"1.0.0": {}, "1.1.0": {}, "2.0.0": {}},
        })
        resolved = VersionResolutionService(registry, max_workers=1).resolve([RootSpec("A")])
        assert resolved["C"] == v("1.0.0")

    def test_reconciliation_merges_edges_from_different_branches(self, make_registry):
        resolved = VersionResolutionService(make_registry(GRAPH), max_workers=1).resolve(
            [RootSpec("App"), RootSpec("Tool")]
        )
        assert as_strings(resolved) == {"app": "1.0.0", "lib": "1.0.0", "util": "1.2.0", "tool": "1.0.0"}

    def test_prerelease_only_root(self, make_registry, v):
        registry = make_registry({"Beta": {"1.0.0-beta": {}}})
        resolved = VersionResolutionService(registry).resolve([RootSpec("Beta")])
        assert resolved["Beta"] == v("1.0.0-beta")

    def test_pin_is_not_overridden_by_transitive_edge(self, make_registry):
        registry = make_registry({
            "A": {"1.0.0": {"B": "1.0"}, "2.0.0": {}},
            "B": {"1.0.0": {"A": "2.0.0"}},
        })
        with pytest.raises(VersionConflictError) as exc_info:
            VersionResolutionService(registry, max_workers=1).resolve([RootSpec("A", "1.0.0")])
        assert "A" in exc_info.value.conflicts

    def test_no_match_surfaces_unchanged(self, make_registry):
        registry = make_registry({
            "A": {"1.0.0": {"C": "3.0.0"}},
            "C": {"1.0.0": {}, "2.0.0": {}},
        })
        with pytest.raises(NoRangeMatchError, match="dependency C .* from A:1.0.0"):
            VersionResolutionService(registry, max_workers=1).resolve([RootSpec("A")])


class TestProperties:
    """Invariants over the resolved set."""

    @pytest.mark.parametrize("seed", range(5))
    def test_result_independent_of_root_and_declaration_order(self, make_registry, seed):
        roots = [RootSpec("App"), RootSpec("Tool")]
        baseline = VersionResolutionService(make_registry(GRAPH), max_workers=1).resolve(roots)

        shuffled = list(roots)
        random.Random(seed).shuffle(shuffled)
        other = VersionResolutionService(make_registry(reversed_declarations(GRAPH)), max_workers=4).resolve(shuffled)

        assert as_strings(other) == as_strings(baseline)

    def test_every_edge_is_satisfied_and_one_version_per_id(self, make_registry):
        service = VersionResolutionService(make_registry(GRAPH), max_workers=1)
        roots = [RootSpec("App"), RootSpec("Tool")]
        forest = service.build_graph(roots)
        resolved = service.resolve(roots)

        ids = {n.identity.id.lower() for n in flatten(forest)}
        assert {pid.lower() for pid in resolved} == ids
        for n in flatten(forest):
            assert n.requirement.satisfies(resolved[n.identity.id])

    def test_each_run_starts_with_fresh_caches(self, make_registry):
        registry = make_registry(GRAPH)
        service = VersionResolutionService(registry, max_workers=1)
        service.resolve([RootSpec("App")])
        service.resolve([RootSpec("App")])
        assert registry.version_calls["util"] == 2
