"""Shared pytest fixtures for History Time Machine tests."""

import base64
import io
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest
from PIL import Image

from timemachine.core.config import TimeMachineConfig
from timemachine.core.secret_store import InMemorySecretStore, SecretStore


def make_png_b64(width: int = 8, height: int = 8) -> str:
    """Return a small base64-encoded PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled, in order."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> TimeMachineConfig:
    """Create a test configuration rooted in a temporary directory.

    Base URLs point at ``.test`` hosts so nothing can reach the network.
    """
    return TimeMachineConfig(
        _env_file=None,
        data_dir=str(temp_dir / "data"),
        pollinations_base_url="https://pollinations.test",
        gemini_base_url="https://gemini.test/v1beta",
        openai_base_url="https://openai.test/v1",
        wikimedia_base_url="https://wikimedia.test",
        request_timeout=5,
    )


@pytest.fixture
def secret_store(temp_dir: Path) -> SecretStore:
    """SQLite-backed secret store in a temporary directory."""
    return SecretStore(temp_dir / "secrets" / "credentials.db")


@pytest.fixture
def memory_store() -> InMemorySecretStore:
    """Empty in-memory secret store."""
    return InMemorySecretStore()


@pytest.fixture
def png_b64() -> str:
    """A valid base64-encoded 8x8 PNG."""
    return make_png_b64()


@pytest.fixture
def mock_http() -> Callable[..., tuple[httpx.AsyncClient, RecordingTransport]]:
    """Factory for an AsyncClient backed by a recording mock transport.

    Returns:
        Callable taking a request handler and returning ``(client, transport)``
    """

    def _factory(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return _factory
