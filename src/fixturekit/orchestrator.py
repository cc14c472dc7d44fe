"""
Per-invocation setup/teardown engine.

A FixtureRun owns all mutable state of one test invocation: a slot per
required fixture, the stack of fixtures whose setup completed, and the
teardown errors collected along the way. Providers run as asyncio tasks;
``use(value)`` publishes the value and parks the task until teardown.
"""
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .exceptions import DoublePublish, FixtureTeardownFailure
from .fixture import FixtureDef
from .models.states import FixtureState

logger = logging.getLogger(__name__)


@dataclass
class FixtureSlot:
    """Run state of one fixture."""
    definition: FixtureDef
    setup_done: asyncio.Event = field(default_factory=asyncio.Event)
    teardown_requested: asyncio.Event = field(default_factory=asyncio.Event)
    value: Any = None
    used: bool = False
    state: FixtureState = FixtureState.PENDING
    task: Optional[asyncio.Task] = None
    error: Optional[BaseException] = None

    @property
    def name(self) -> str:
        return self.definition.name

    async def use(self, value: Any) -> None:
        if self.used:
            raise DoublePublish(self.name)
        self.used = True
        self.value = value
        self.state = FixtureState.PUBLISHED
        self.setup_done.set()
        await self.teardown_requested.wait()


class FixtureRun:
    """
    Drives the providers of one invocation.

    Usage:
        run = FixtureRun(definitions, ["top", "left", "right", "bottom"])
        result = await run.execute(body, args, kwargs, requested=["bottom"])
    """

    def __init__(
        self,
        definitions: Mapping[str, FixtureDef],
        order: Sequence[str],
        attach_teardown_notes: bool = True,
    ):
        self.order: List[str] = list(order)
        self.slots: Dict[str, FixtureSlot] = {
            name: FixtureSlot(definitions[name]) for name in self.order if name in definitions
        }
        self.attach_teardown_notes = attach_teardown_notes
        # Slots in the order their setup completed; popped for teardown.
        self._started: List[FixtureSlot] = []
        self.teardown_errors: List[Tuple[str, BaseException]] = []

    @property
    def started(self) -> List[str]:
        return [slot.name for slot in self._started]

    def value_of(self, name: str) -> Any:
        slot = self.slots.get(name)
        return slot.value if slot else None

    def view_for(self, name: str) -> Mapping[str, Any]:
        """Read-only values of every other required fixture; not yet published ones are None."""
        return MappingProxyType({
            other: self.value_of(other) for other in self.order if other != name
        })

    async def _drive(self, slot: FixtureSlot, view: Mapping[str, Any]) -> None:
        try:
            await slot.definition.run(slot.use, view)
        finally:
            if not slot.used:
                slot.setup_done.set()

    async def _start(self, slot: FixtureSlot) -> None:
        logger.debug(f"Setting up fixture '{slot.name}'")
        slot.state = FixtureState.SETTING_UP
        slot.task = asyncio.create_task(
            self._drive(slot, self.view_for(slot.name)),
            name=f"fixture-{slot.name}",
        )
        try:
            await slot.setup_done.wait()
        except BaseException:
            slot.task.cancel()
            await _settle(slot.task)
            slot.state = FixtureState.SETUP_FAILED
            slot.error = _outcome(slot.task)
            raise

        if not slot.used:
            try:
                await slot.task
            except BaseException as e:
                slot.state = FixtureState.SETUP_FAILED
                slot.error = e
                logger.debug(f"Fixture '{slot.name}' failed during setup: {e!r}")
                raise
            slot.state = FixtureState.UNPUBLISHED
            logger.debug(f"Fixture '{slot.name}' finished without publishing a value")

        self._started.append(slot)

    async def setup(self) -> None:
        """Start every required fixture in order, one at a time."""
        for name in self.order:
            slot = self.slots.get(name)
            if slot is None:
                logger.debug(f"No provider registered for '{name}', leaving it unset")
                continue
            await self._start(slot)

    async def teardown(self) -> List[Tuple[str, BaseException]]:
        """
        Tear down started fixtures in reverse setup order.

        Every started fixture gets a teardown attempt, whatever the earlier
        attempts raised. Returns the ``(fixture, error)`` pairs of failed
        attempts in order of occurrence.

        Raises:
            asyncio.CancelledError: if the caller was cancelled while waiting
                on a provider. Raised only after every teardown finished.
        """
        errors: List[Tuple[str, BaseException]] = []
        cancelled: Optional[asyncio.CancelledError] = None
        while self._started:
            slot = self._started.pop()
            logger.debug(f"Tearing down fixture '{slot.name}'")
            slot.state = FixtureState.TEARING_DOWN
            slot.teardown_requested.set()
            interrupted = await _settle(slot.task)
            if interrupted is not None and cancelled is None:
                cancelled = interrupted
                logger.debug(f"Cancelled while tearing down '{slot.name}', finishing remaining teardowns")

            error = _outcome(slot.task)
            if error is None:
                slot.state = FixtureState.DONE
                continue
            slot.state = FixtureState.TEARDOWN_FAILED
            slot.error = error
            errors.append((slot.name, error))
            logger.debug(f"Teardown of fixture '{slot.name}' failed: {error!r}")

        self.teardown_errors.extend(errors)
        if cancelled is not None:
            self._report_secondary(errors, cancelled)
            raise cancelled
        return errors

    def _report_secondary(self, errors: List[Tuple[str, BaseException]], primary: BaseException) -> None:
        for name, error in errors:
            logger.error(
                f"Teardown of fixture '{name}' failed while handling {type(primary).__name__}",
                exc_info=error,
            )
            if self.attach_teardown_notes:
                primary.add_note(f"fixture '{name}' teardown also failed: {error!r}")

    async def execute(
        self,
        body: Callable[..., Any],
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        requested: Sequence[str],
    ) -> Any:
        """
        Set up, run ``body`` with the requested values as keyword arguments,
        then tear down.

        Raises:
            The setup or body exception unchanged, or FixtureTeardownFailure
            when only teardown failed. A teardown that raised a
            BaseException that is not an Exception is re-raised as is.
        """
        try:
            await self.setup()
        except BaseException as e:
            errors = await self.teardown()
            self._report_secondary(errors, e)
            raise

        for slot in self._started:
            if slot.state is FixtureState.PUBLISHED:
                slot.state = FixtureState.IN_USE
        values = {name: self.value_of(name) for name in requested}

        try:
            result = body(*args, **kwargs, **values)
            if inspect.isawaitable(result):
                result = await result
        except BaseException as e:
            errors = await self.teardown()
            self._report_secondary(errors, e)
            raise

        errors = await self.teardown()
        interrupts = [error for _, error in errors if not isinstance(error, Exception)]
        if interrupts:
            self._report_secondary([pair for pair in errors if pair[1] is not interrupts[0]], interrupts[0])
            raise interrupts[0]
        if errors:
            raise FixtureTeardownFailure(
                [error for _, error in errors],
                [name for name, _ in errors],
            )
        return result


async def _settle(task: asyncio.Task) -> Optional[asyncio.CancelledError]:
    """
    Wait for ``task`` to finish without passing a cancellation on to it.

    Returns the CancelledError the caller received while waiting, if any.
    """
    cancelled: Optional[asyncio.CancelledError] = None
    while not task.done():
        try:
            await asyncio.wait([task])
        except asyncio.CancelledError as e:
            cancelled = cancelled or e
    return cancelled


def _outcome(task: asyncio.Task) -> Optional[BaseException]:
    if task.cancelled():
        try:
            task.result()
        except asyncio.CancelledError as e:
            return e
    return task.exception()
