import pytest


@pytest.fixture
def anyio_backend():
    # Poller and tracker schedule work with asyncio tasks directly
    return "asyncio"
