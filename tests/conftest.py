"""Shared fixtures for bashgpt tests."""

from pathlib import Path
from typing import List, Optional

import httpx
import pytest
import structlog

from bashgpt.config import BashGPTSettings

ORIGINAL_BINARY = b"\x7fELF original bashgpt v1.2.0"
NEW_BINARY = b"\x7fELF new bashgpt v1.3.0" * 64


class FakeRegistry:
    """Release registry and asset host served through httpx.MockTransport."""

    def __init__(self, tag: Optional[str] = "v1.3.0", payload: bytes = NEW_BINARY) -> None:
        self.tag = tag
        self.payload = payload
        self.latest_status = 200
        self.latest_body: Optional[bytes] = None
        self.download_status = 200
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/releases/latest"):
            if self.latest_body is not None:
                return httpx.Response(self.latest_status, content=self.latest_body)
            return httpx.Response(self.latest_status, json={"tag_name": self.tag})
        if "/releases/download/" in path:
            return httpx.Response(self.download_status, content=self.payload)
        return httpx.Response(404)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    @property
    def lookups(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/releases/latest")]

    @property
    def downloads(self) -> List[httpx.Request]:
        return [r for r in self.requests if "/releases/download/" in r.url.path]


@pytest.fixture(autouse=True)
def reset_structlog():
    # CLI tests configure structlog against CliRunner's streams
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings(tmp_path: Path) -> BashGPTSettings:
    return BashGPTSettings(version="v1.2.0", config_dir=tmp_path / "config")


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def installed_binary(tmp_path: Path) -> Path:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    path = bin_dir / "bashgpt"
    path.write_bytes(ORIGINAL_BINARY)
    path.chmod(0o755)
    return path


@pytest.fixture
def artifact(tmp_path: Path) -> Path:
    download_dir = tmp_path / "download"
    download_dir.mkdir()
    path = download_dir / "bashgpt-artifact"
    path.write_bytes(NEW_BINARY)
    path.chmod(0o755)
    return path
