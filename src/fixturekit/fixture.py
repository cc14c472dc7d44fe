"""
Fixture definitions and provider adaptation.

Two provider shapes are supported::

    async def db(use, *, config):        # publish with use(), suspended until teardown
        conn = await connect(config)
        await use(conn)
        await conn.close()

    async def db(*, config):             # async generator: first yield publishes
        conn = await connect(config)
        yield conn
        await conn.close()
"""
import dataclasses
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .exceptions import DoublePublish
from .names import names_of

logger = logging.getLogger(__name__)

Publish = Callable[[Any], Awaitable[None]]
Provider = Callable[..., Any]


@dataclass(frozen=True)
class FixtureDef:
    """A named provider plus the fixture names it depends on."""
    name: str
    provider: Provider
    # None means "resolve from the provider's signature"
    depends: Optional[Tuple[str, ...]] = None

    @property
    def dependencies(self) -> Tuple[str, ...]:
        if self.depends is not None:
            return self.depends
        return tuple(names_of(self.provider))

    @property
    def is_generator(self) -> bool:
        return inspect.isasyncgenfunction(self.provider)

    def bind(self, view: Mapping[str, Any]) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        """
        Arguments for the provider, taken from the dependency view.

        Keyword-only parameters receive their fixture's value, ``**rest``
        receives the whole view. A provider that takes the view as an extra
        positional parameter (``async def p(use, deps)``) gets it that way.
        """
        args: Tuple[Any, ...] = ()
        kwargs: Dict[str, Any] = {}
        try:
            params = inspect.signature(self.provider).parameters.values()
        except (TypeError, ValueError):
            return args, kwargs

        positional = 0
        for param in params:
            if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
                positional += 1
            elif param.kind is inspect.Parameter.KEYWORD_ONLY:
                if param.name in view:
                    kwargs[param.name] = view[param.name]
                elif param.default is inspect.Parameter.empty:
                    kwargs[param.name] = None
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                for key, value in view.items():
                    kwargs.setdefault(key, value)

        # coroutine providers take use() first
        view_slot = 1 if self.is_generator else 2
        if positional >= view_slot:
            args = (view,)
        return args, kwargs

    async def run(self, use: Publish, view: Mapping[str, Any]) -> None:
        """Run the provider to completion; ``use`` suspends it until teardown."""
        args, kwargs = self.bind(view)
        if not self.is_generator:
            await self.provider(use, *args, **kwargs)
            return

        agen = self.provider(*args, **kwargs)
        try:
            value = await agen.__anext__()
        except StopAsyncIteration:
            return
        await use(value)
        try:
            await agen.__anext__()
        except StopAsyncIteration:
            return
        await agen.aclose()
        raise DoublePublish(self.name)

    def renamed(self, name: str) -> "FixtureDef":
        if name == self.name:
            return self
        return dataclasses.replace(self, name=name)


def fixture(
    func: Optional[Provider] = None,
    *,
    name: Optional[str] = None,
    depends: Optional[Iterable[str]] = None,
):
    """
    Declare a provider, optionally with explicit dependencies.

    Usable bare (``@fixture``) or with arguments
    (``@fixture(depends=["config"])``). Explicit ``depends`` replace the
    names found in the provider's signature.
    """
    def decorate(provider: Provider) -> FixtureDef:
        return FixtureDef(
            name=name or getattr(provider, "__name__", "fixture"),
            provider=provider,
            depends=tuple(depends) if depends is not None else None,
        )

    if func is not None:
        return decorate(func)
    return decorate
