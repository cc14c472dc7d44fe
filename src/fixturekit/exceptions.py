"""
fixturekit exceptions.

Every error raised by the library derives from FixtureKitError. Errors raised
by providers or test bodies are never wrapped, with the single exception of
teardown errors collected after a successful test body.
"""
from typing import Optional, Any, Dict, List


class FixtureKitError(Exception):
    """Base exception for all fixturekit errors."""

    def __init__(self, detail: str = "A fixture error occurred", context: Optional[Dict[str, Any]] = None):
        self.detail = detail
        self.context = context or {}
        super().__init__(detail)


class ConfigError(FixtureKitError):
    """Raised when a configuration file cannot be read or is invalid."""

    def __init__(self, detail: str = "Configuration error", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail=detail, context=context)


class InvalidFixtureKey(FixtureKitError):
    """Raised when a fixture name is not a simple identifier."""

    def __init__(self, key: Any, detail: Optional[str] = None):
        self.key = key
        super().__init__(
            detail=detail or f"Invalid fixture key {key!r}: rest parameters are not allowed as fixture keys",
            context={"key": key},
        )


class CircularDependency(FixtureKitError):
    """Raised when the required fixtures depend on each other in a cycle."""

    def __init__(self, fixture: str):
        self.fixture = fixture
        super().__init__(
            detail=f'Circular dependency detected involving fixture "{fixture}"',
            context={"fixture": fixture},
        )


class UnknownFixture(FixtureKitError):
    """Raised in strict mode when a provider depends on an unregistered name."""

    def __init__(self, name: str, dependent: str):
        self.name = name
        self.dependent = dependent
        super().__init__(
            detail=f"Fixture '{dependent}' depends on unknown fixture '{name}'",
            context={"name": name, "dependent": dependent},
        )


class DoublePublish(FixtureKitError):
    """Raised to a provider that publishes a value more than once."""

    def __init__(self, fixture: str):
        self.fixture = fixture
        super().__init__(
            detail=f"Fixture '{fixture}' cannot call use() more than once",
            context={"fixture": fixture},
        )


class FixtureTeardownFailure(FixtureKitError):
    """
    Raised when the test body succeeded but one or more teardowns failed.

    ``errors`` lists the underlying exceptions in the order they occurred,
    which is the reverse of the setup order.
    """

    def __init__(self, errors: List[BaseException], fixtures: Optional[List[str]] = None):
        self.errors = list(errors)
        self.fixtures = list(fixtures or [])
        names = ", ".join(self.fixtures) if self.fixtures else "unknown"
        super().__init__(
            detail=f"{len(self.errors)} fixture teardown(s) failed: {names}",
            context={"fixtures": self.fixtures},
        )
