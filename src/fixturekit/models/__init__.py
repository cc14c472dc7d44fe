# fixturekit.models - State and configuration models

from .states import FixtureState
from .config import FixtureKitConfig, LoggingConfig

__all__ = [
    "FixtureState",
    "FixtureKitConfig",
    "LoggingConfig",
]
