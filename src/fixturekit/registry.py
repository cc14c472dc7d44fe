"""
Fixture registration and test wrapping.

    fx = fixtures({
        "config": config_provider,
        "db": db_provider,          # async def db_provider(use, *, config)
    })

    @fx
    async def test_query(*, db):
        ...

    await test_query()
"""
import functools
import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .exceptions import UnknownFixture
from .fixture import FixtureDef, Provider, fixture as make_fixture
from .graph import DependencyGraph, build_dependency_graph, execution_order
from .models.config import FixtureKitConfig
from .names import names_of, validate_key
from .orchestrator import FixtureRun

logger = logging.getLogger(__name__)


class FixtureRegistry:
    """
    Holds fixture definitions and their dependency graph, and wraps test
    bodies so each call runs inside a fresh FixtureRun.

    The graph is built on construction and rebuilt lazily after
    :meth:`fixture` adds a definition; it is shared by all invocations.
    """

    def __init__(
        self,
        providers: Optional[Mapping[str, Union[Provider, FixtureDef]]] = None,
        config: Optional[FixtureKitConfig] = None,
    ):
        self.config = config or FixtureKitConfig()
        self._definitions: Dict[str, FixtureDef] = {}
        self._graph: Optional[DependencyGraph] = None
        for name, provider in (providers or {}).items():
            self._add(name, provider)
        self._graph = build_dependency_graph(self._definitions, strict=self.config.strict_dependencies)

    def _add(self, name: str, provider: Union[Provider, FixtureDef]) -> FixtureDef:
        validate_key(name)
        if isinstance(provider, FixtureDef):
            definition = provider.renamed(name)
        else:
            definition = FixtureDef(name=name, provider=provider)
        if name in self._definitions:
            logger.warning(f"Fixture '{name}' already registered, replacing")
        self._definitions[name] = definition
        self._graph = None
        logger.debug(f"Registered fixture '{name}'")
        return definition

    @property
    def definitions(self) -> Mapping[str, FixtureDef]:
        return MappingProxyType(self._definitions)

    @property
    def graph(self) -> DependencyGraph:
        if self._graph is None:
            self._graph = build_dependency_graph(self._definitions, strict=self.config.strict_dependencies)
        return self._graph

    def fixture(
        self,
        func: Optional[Provider] = None,
        *,
        name: Optional[str] = None,
        depends: Optional[Iterable[str]] = None,
    ):
        """Decorator registering a provider; returns the provider unchanged."""
        def decorate(provider: Provider) -> Provider:
            definition = make_fixture(provider, name=name, depends=depends)
            self._add(definition.name, definition)
            return provider

        if func is not None:
            return decorate(func)
        return decorate

    def order(self, requested: Iterable[str]) -> List[str]:
        """Setup order of the fixtures needed for ``requested``."""
        return execution_order(requested, self.graph)

    def requested_names(self, body: Callable[..., Any], requires: Optional[Iterable[str]] = None) -> List[str]:
        """
        Names ``body`` asks for, validated.

        Raises:
            InvalidFixtureKey: If a name is not a simple identifier, e.g. ``**rest``.
            UnknownFixture: In strict mode, if a name is not registered.
        """
        names = list(requires) if requires is not None else names_of(body)
        for name in names:
            validate_key(name)
            if self.config.strict_dependencies and name not in self._definitions:
                raise UnknownFixture(name, getattr(body, "__name__", repr(body)))
        return names

    def wrap(self, body: Callable[..., Any], requires: Optional[Iterable[str]] = None) -> Callable[..., Any]:
        requested = self.requested_names(body, requires)

        @functools.wraps(body)
        async def invoke(*args: Any, **kwargs: Any) -> Any:
            order = self.order(requested)
            logger.debug(f"Running {getattr(body, '__name__', body)!s} with fixtures {order}")
            run = FixtureRun(
                self._definitions,
                order,
                attach_teardown_notes=self.config.attach_teardown_notes,
            )
            return await run.execute(body, args, kwargs, requested)

        # Hide the injected parameters from signature-based callers such as pytest.
        try:
            sig = inspect.signature(body)
        except (TypeError, ValueError):
            pass
        else:
            invoke.__signature__ = sig.replace(
                parameters=[p for p in sig.parameters.values() if p.name not in requested]
            )
        return invoke

    def __call__(self, body: Optional[Callable[..., Any]] = None, *, requires: Optional[Iterable[str]] = None):
        """Wrap ``body``; usable as ``@registry`` or ``@registry(requires=[...])``."""
        if body is not None:
            return self.wrap(body, requires)
        return functools.partial(self.wrap, requires=requires)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


def fixtures(
    providers: Mapping[str, Union[Provider, FixtureDef]],
    *,
    config: Optional[FixtureKitConfig] = None,
) -> FixtureRegistry:
    """Register ``providers`` and return the wrapper factory."""
    return FixtureRegistry(providers, config=config)
