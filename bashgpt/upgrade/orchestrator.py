"""Upgrade flow: look up, confirm, fetch, install."""

from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

import httpx
import structlog
from rich.console import Console
from rich.prompt import Confirm

from ..config import BashGPTSettings
from ..errors import UpgradeError
from ..models import UpgradeOutcome, UpgradeStatus
from .fetcher import ArtifactFetcher
from .installer import AtomicInstaller
from .oracle import VersionOracle

logger = structlog.get_logger(__name__)

# (current_version, latest_version) -> proceed?
ConfirmUpgrade = Callable[[str, str], bool]


def console_confirm(console: Console, command_name: str) -> ConfirmUpgrade:
    """Ask on the terminal; pressing enter means yes."""

    def ask(current: str, latest: str) -> bool:
        return Confirm.ask(
            f"A new version of {command_name} is available ({latest}). Upgrade?",
            default=True,
            console=console,
        )

    return ask


class Upgrader:
    """Self-upgrade for the installed bashgpt binary."""

    def __init__(
        self,
        settings: BashGPTSettings,
        *,
        client: Optional[httpx.Client] = None,
        confirm: Optional[ConfirmUpgrade] = None,
        installer: Optional[AtomicInstaller] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)
        self._confirm = confirm or console_confirm(self._console, settings.command_name)
        self._installer = installer or AtomicInstaller(command_name=settings.command_name)

    @contextmanager
    def _session(self) -> Iterator[httpx.Client]:
        if self._client is not None:
            yield self._client
            return
        with httpx.Client(
            timeout=self.settings.http_timeout,
            follow_redirects=True,
            headers={"User-Agent": f"{self.settings.command_name}/{self.settings.version}"},
        ) as client:
            yield client

    def run_upgrade(self) -> UpgradeOutcome:
        """Upgrade to the latest release if there is one and the user agrees.

        Errors from the lookup, the download and the install propagate as
        :class:`~bashgpt.errors.UpgradeError` unchanged.
        """
        name = self.settings.command_name
        current = self.settings.version

        if self.settings.is_dev_build:
            self._err_console.print(f"Skipping {name} upgrade on development version")
            return UpgradeOutcome(status=UpgradeStatus.SKIPPED_DEV_BUILD, current_version=current)

        with self._session() as client:
            release = VersionOracle(self.settings, client).get_latest_version()
            if release.tag == current:
                self._console.print(f"{name} {current} is already the latest version")
                return UpgradeOutcome(
                    status=UpgradeStatus.UP_TO_DATE,
                    current_version=current,
                    latest_version=release.tag,
                )

            if not self._confirm(current, release.tag):
                logger.info("upgrade_declined", current=current, latest=release.tag)
                return UpgradeOutcome(
                    status=UpgradeStatus.DECLINED,
                    current_version=current,
                    latest_version=release.tag,
                )

            self._console.print(f"Upgrading {name} from {current} to {release.tag}...")
            artifact = ArtifactFetcher(self.settings, client).fetch_artifact(release.tag)

        try:
            report = self._installer.install(artifact.path, release.tag)
        except UpgradeError:
            self._discard_artifact(artifact.path)
            raise

        if not report.backup_removed:
            self._err_console.print(
                f"[yellow]Warning:[/yellow] could not remove backup {report.target}.bak"
            )
        self._console.print(f"Upgrade {report.target} to {release.tag} complete")
        return UpgradeOutcome(
            status=UpgradeStatus.UPGRADED,
            current_version=current,
            latest_version=release.tag,
            install=report,
        )

    @staticmethod
    def _discard_artifact(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("downloaded_artifact_left_behind", path=str(path), error=str(exc))

    def check_for_upgrade(self) -> bool:
        """Warn on stderr when a newer release exists. Never raises."""
        if self.settings.is_dev_build:
            return False

        try:
            with self._session() as client:
                release = VersionOracle(self.settings, client).get_latest_version()
        except Exception as exc:
            logger.debug("upgrade_check_failed", error=str(exc))
            return False

        if release.tag == self.settings.version:
            return False

        name = self.settings.command_name
        self._err_console.print(
            f"[yellow]*WARN*: A new version of {name} is available ({release.tag}). "
            f"Please upgrade via '{name} upgrade'.[/yellow]\n"
        )
        return True
