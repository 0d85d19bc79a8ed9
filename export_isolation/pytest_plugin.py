"""
pytest fixtures that run the isolation protocol around storefront tests.

Enable from a conftest.py:

    pytest_plugins = ["export_isolation.pytest_plugin"]

Connections live for the whole session, so tests using ``isolated_pipeline``
must run on the session event loop:

    pytestmark = pytest.mark.asyncio(loop_scope="session")

Override ``export_consumers`` to register the pipeline's queue consumers and
``export_seed`` to create a test's source records after the queues were
purged and before consumers are drained.
"""
from typing import List, Optional

import pytest
import pytest_asyncio

from .config import Config, config
from .consumers import Consumer
from .fixture import IsolationProtocol, Seed, open_context
from .logging_config import set_test_id


@pytest.fixture(scope="session")
def isolation_config() -> Config:
    return config


@pytest.fixture(scope="session")
def export_consumers() -> List[Consumer]:
    return []


@pytest.fixture(scope="session")
def require_queued_mode(isolation_config) -> None:
    if not isolation_config.execution_mode.uses_queues:
        pytest.skip("Storefront pipeline checks need the queued execution mode")


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def isolation_protocol(require_queued_mode, isolation_config, export_consumers):
    """Suite-wide protocol; runs before_suite once. Skips in direct mode."""
    async with open_context(isolation_config, export_consumers) as context:
        protocol = IsolationProtocol(context)
        await protocol.before_suite()
        yield protocol


@pytest.fixture
def export_seed() -> Optional[Seed]:
    return None


@pytest_asyncio.fixture(loop_scope="session")
async def isolated_pipeline(request, isolation_protocol, export_seed):
    """Per-test isolation: purge, seed and drain before the test, reset after it."""
    set_test_id(request.node.nodeid)
    try:
        await isolation_protocol.before_each(export_seed)
        yield isolation_protocol
    finally:
        await isolation_protocol.after_each()
        set_test_id(None)
