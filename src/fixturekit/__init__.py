"""
fixturekit - dependency-aware async test fixtures.

This package provides:
- Fixture definitions and provider adaptation (fixture.py)
- Name resolution from signatures and source text (names.py)
- Dependency graph, requirement collection and ordering (graph.py)
- Per-invocation setup/teardown orchestration (orchestrator.py)
- Registration and test wrapping (registry.py)
- Exception hierarchy (exceptions.py)
- State and configuration models (models/)
"""

from . import models

from .fixture import FixtureDef, fixture
from .graph import (
    DependencyGraph,
    build_dependency_graph,
    collect_required,
    topological_sort,
    execution_order,
)
from .names import resolve_names, names_of, validate_key
from .orchestrator import FixtureRun, FixtureSlot
from .registry import FixtureRegistry, fixtures
from .models import FixtureState, FixtureKitConfig, LoggingConfig
from .exceptions import (
    FixtureKitError,
    ConfigError,
    InvalidFixtureKey,
    CircularDependency,
    UnknownFixture,
    DoublePublish,
    FixtureTeardownFailure,
)

__all__ = [
    "models",
    # Registration
    "fixtures",
    "fixture",
    "FixtureRegistry",
    "FixtureDef",
    # Graph
    "DependencyGraph",
    "build_dependency_graph",
    "collect_required",
    "topological_sort",
    "execution_order",
    # Names
    "resolve_names",
    "names_of",
    "validate_key",
    # Orchestration
    "FixtureRun",
    "FixtureSlot",
    "FixtureState",
    # Config
    "FixtureKitConfig",
    "LoggingConfig",
    # Exceptions
    "FixtureKitError",
    "ConfigError",
    "InvalidFixtureKey",
    "CircularDependency",
    "UnknownFixture",
    "DoublePublish",
    "FixtureTeardownFailure",
]
