"""Download a release binary into a temp file."""

import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

import httpx
import structlog

from ..config import BashGPTSettings
from ..errors import ErrorKind, UpgradeError
from ..models import DownloadedArtifact

logger = structlog.get_logger(__name__)

ARTIFACT_MODE = 0o755


class ArtifactFetcher:
    """Fetch the binary published under a tag."""

    def __init__(
        self,
        settings: BashGPTSettings,
        client: httpx.Client,
        temp_dir: Optional[Path] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        # None means the process temp directory
        self._temp_dir = temp_dir

    def fetch_artifact(self, tag: str) -> DownloadedArtifact:
        """Download ``tag``'s binary and return it as an executable temp file.

        The temp file is not assumed to live on the same filesystem as the
        installed binary.

        Raises:
            UpgradeError: ``NETWORK`` for transport/HTTP failures or an empty
                payload, ``IO`` for local file failures.
        """
        url = self._settings.download_url(tag)
        try:
            fd, name = tempfile.mkstemp(
                prefix=f"{self._settings.command_name}-",
                dir=str(self._temp_dir) if self._temp_dir else None,
            )
        except OSError as exc:
            raise UpgradeError(
                ErrorKind.IO, "Failed to create temp file", version=tag
            ) from exc

        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as handle:
                size = self._stream_into(url, handle, tag)
            os.chmod(path, ARTIFACT_MODE)
        except UpgradeError:
            self._discard(path)
            raise
        except OSError as exc:
            self._discard(path)
            raise UpgradeError(
                ErrorKind.IO, f"Failed to save version {tag}", path=path, version=tag
            ) from exc

        logger.info("artifact_downloaded", url=url, path=str(path), size=size)
        return DownloadedArtifact(path=path, tag=tag, size=size)

    def _stream_into(self, url: str, handle: BinaryIO, tag: str) -> int:
        size = 0
        try:
            # Release assets are served through a redirect
            with self._client.stream(
                "GET", url, timeout=self._settings.http_timeout, follow_redirects=True
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes():
                    handle.write(chunk)
                    size += len(chunk)
        except httpx.HTTPError as exc:
            raise UpgradeError(
                ErrorKind.NETWORK, f"Failed to download version {tag} from {url}", version=tag
            ) from exc

        if size == 0:
            raise UpgradeError(
                ErrorKind.NETWORK, f"Empty download for version {tag} from {url}", version=tag
            )
        return size

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("partial_download_left_behind", path=str(path), error=str(exc))
