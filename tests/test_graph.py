import pytest

from fixturekit.exceptions import CircularDependency, UnknownFixture
from fixturekit.fixture import FixtureDef, fixture
from fixturekit.graph import (
    DependencyGraph,
    build_dependency_graph,
    collect_required,
    execution_order,
    topological_sort,
)


async def _noop(use):
    await use(None)


def _defs(edges):
    return {name: FixtureDef(name=name, provider=_noop, depends=tuple(deps)) for name, deps in edges.items()}


DIAMOND = DependencyGraph({
    "top": [],
    "left": ["top"],
    "right": ["top"],
    "bottom": ["left", "right"],
})


def test_build_uses_signatures_and_explicit_depends():
    async def session(use, *, db, config):
        pass

    async def db(use, *, config):
        pass

    async def config(use):
        pass

    definitions = {
        "session": FixtureDef("session", session),
        "db": FixtureDef("db", db),
        "config": FixtureDef("config", config),
        "explicit": fixture(depends=["db"])(config),
    }
    graph = build_dependency_graph(definitions)

    assert dict(graph) == {
        "session": ("db", "config"),
        "db": ("config",),
        "config": (),
        "explicit": ("db",),
    }


def test_build_drops_rest_tokens():
    async def everything(use, *, db, **others):
        pass

    graph = build_dependency_graph({"everything": FixtureDef("everything", everything)})
    assert graph["everything"] == ("db",)


def test_build_is_permissive_by_default():
    graph = build_dependency_graph(_defs({"a": ["ghost"]}))
    assert graph.dependencies("a") == ("ghost",)
    assert graph.dependencies("ghost") == ()


def test_build_strict_rejects_unknown_names():
    with pytest.raises(UnknownFixture) as exc_info:
        build_dependency_graph(_defs({"a": ["ghost"]}), strict=True)
    assert exc_info.value.name == "ghost"
    assert exc_info.value.dependent == "a"


def test_graph_is_immutable():
    with pytest.raises(TypeError):
        DIAMOND["top"] = ("x",)
    assert len(DIAMOND) == 4
    assert "bottom" in DIAMOND


def test_collect_required_closes_over_dependencies():
    assert collect_required(["bottom"], DIAMOND) == ["bottom", "left", "top", "right"]
    assert collect_required(["left"], DIAMOND) == ["left", "top"]
    assert collect_required(["top", "top"], DIAMOND) == ["top"]


def test_collect_required_tolerates_unknown_names_and_cycles():
    graph = DependencyGraph({"x": ["y"], "y": ["x"]})
    assert collect_required(["x", "unknown"], graph) == ["x", "y", "unknown"]


def test_topological_sort_diamond():
    assert topological_sort(collect_required(["bottom"], DIAMOND), DIAMOND) == ["top", "left", "right", "bottom"]


def test_topological_sort_follows_input_order_for_unrelated_nodes():
    graph = DependencyGraph({"a": [], "b": [], "c": []})
    assert topological_sort(["c", "a", "b"], graph) == ["c", "a", "b"]
    assert topological_sort(["b", "c", "a"], graph) == ["b", "c", "a"]


def test_topological_sort_detects_cycle():
    graph = DependencyGraph({"x": ["z"], "y": ["x"], "z": ["y"]})
    with pytest.raises(CircularDependency) as exc_info:
        topological_sort(["x", "y", "z"], graph)
    assert exc_info.value.fixture == "x"
    assert 'involving fixture "x"' in str(exc_info.value)


def test_topological_sort_detects_self_dependency():
    with pytest.raises(CircularDependency):
        topological_sort(["me"], DependencyGraph({"me": ["me"]}))


def test_execution_order_is_deterministic():
    graph = build_dependency_graph(_defs({
        "a": [], "b": ["a"], "c": ["b"], "d": ["b", "c"],
    }))
    orders = {tuple(execution_order(["d"], graph)) for _ in range(5)}
    assert orders == {("a", "b", "c", "d")}


def test_execution_order_skips_unrequested_fixtures():
    graph = build_dependency_graph(_defs({"a": [], "b": ["a"], "c": []}))
    assert execution_order(["c"], graph) == ["c"]


def test_deep_chain_is_ordered_without_recursion_limit():
    depth = 5000
    graph = DependencyGraph({f"f{i}": [f"f{i + 1}"] if i + 1 < depth else [] for i in range(depth)})

    required = collect_required(["f0"], graph)
    assert required == [f"f{i}" for i in range(depth)]
    assert topological_sort(required, graph) == [f"f{i}" for i in reversed(range(depth))]


def test_deep_cycle_is_detected():
    depth = 3000
    graph = DependencyGraph({f"f{i}": [f"f{(i + 1) % depth}"] for i in range(depth)})
    with pytest.raises(CircularDependency) as exc_info:
        topological_sort(["f0"], graph)
    assert exc_info.value.fixture == "f0"
