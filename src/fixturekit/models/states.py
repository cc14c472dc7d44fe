from enum import Enum, auto


class FixtureState(Enum):
    """Lifecycle of one fixture within a single invocation."""
    PENDING = auto()
    SETTING_UP = auto()
    PUBLISHED = auto()
    UNPUBLISHED = auto()      # provider returned without calling use()
    SETUP_FAILED = auto()
    IN_USE = auto()
    TEARING_DOWN = auto()
    DONE = auto()
    TEARDOWN_FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (FixtureState.DONE, FixtureState.SETUP_FAILED, FixtureState.TEARDOWN_FAILED)
