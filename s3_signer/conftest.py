import pytest

from s3_signer.storage.memory import InMemoryBackend


@pytest.fixture
def fs() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
