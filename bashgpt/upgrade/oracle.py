"""Latest-release lookup against the release registry."""

import json

import httpx
import structlog

from ..config import BashGPTSettings
from ..errors import ErrorKind, UpgradeError
from ..models import ReleaseDescriptor

logger = structlog.get_logger(__name__)


class VersionOracle:
    """Ask the registry which tag is the latest release."""

    def __init__(self, settings: BashGPTSettings, client: httpx.Client) -> None:
        self._settings = settings
        self._client = client

    def get_latest_version(self) -> ReleaseDescriptor:
        """Return the latest release.

        Raises:
            UpgradeError: ``NETWORK`` on transport, timeout or HTTP status
                failures; ``PARSE`` when the body has no string ``tag_name``.
        """
        url = self._settings.latest_release_url
        try:
            response = self._client.get(
                url,
                headers={"Accept": "application/vnd.github+json"},
                timeout=self._settings.http_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("release_lookup_failed", url=url, error=str(exc))
            raise UpgradeError(
                ErrorKind.NETWORK, f"Could not look up the latest release at {url}"
            ) from exc

        try:
            document = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise UpgradeError(ErrorKind.PARSE, f"Could not parse {url}") from exc

        tag = document.get("tag_name") if isinstance(document, dict) else None
        if not isinstance(tag, str) or not tag:
            raise UpgradeError(ErrorKind.PARSE, f"Could not parse {url}: no tag_name")

        logger.debug("release_lookup_ok", url=url, tag=tag)
        return ReleaseDescriptor(tag=tag, download_url=self._settings.download_url(tag))
