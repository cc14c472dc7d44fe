# fixturekit.common - Shared utilities

from .logging_config import setup_logging, configure_from

__all__ = [
    "setup_logging",
    "configure_from",
]
