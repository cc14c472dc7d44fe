import logging

import pytest

from fixturekit import FixtureDef


@pytest.fixture(autouse=True)
def reset_fixturekit_logging():
    yield
    # setup_logging may bind handlers to streams that are closed after a test
    base = logging.getLogger("fixturekit")
    for handler in list(base.handlers):
        base.removeHandler(handler)
        handler.close()
    base.propagate = True
    base.setLevel(logging.NOTSET)


@pytest.fixture
def trace():
    return []


@pytest.fixture
def tracked(trace):
    """Factory for providers that record their setup/teardown in ``trace``."""
    def make(name, depends=(), value=None, teardown_error=None):
        async def provider(use, deps):
            trace.append(f"{name}:setup")
            await use(name if value is None else value)
            trace.append(f"{name}:teardown")
            if teardown_error is not None:
                raise teardown_error
        return FixtureDef(name=name, provider=provider, depends=tuple(depends))
    return make
