"""Swap a downloaded binary into the running executable's place.

Install steps, for a target path ``P``:

1. Resolve ``P`` through symlinks.
2. Back up ``P`` to ``P.bak``: a hard link when the filesystem allows it
   (``P`` never disappears), otherwise a rename.
3. ``os.replace`` the artifact onto ``P``.
4. If that fails with ``EXDEV`` (artifact on another filesystem), copy the
   artifact into a temp file beside ``P`` and ``os.replace`` that onto ``P``.
5. On any other failure, put ``P.bak`` back if ``P`` no longer holds the
   original. If that also fails the install is DEGRADED.
6. Remove ``P.bak``; failing to do so only earns a warning.

At every point after step 2, ``P`` holds either the complete original binary
or the complete new one, except in the rename-backup case between steps 2
and 3.
"""

import errno
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import Optional, Tuple, Union

import structlog

from ..errors import ErrorKind, UpgradeError
from ..models import InstallMethod, InstallReport, InstallState

logger = structlog.get_logger(__name__)

INSTALL_MODE = 0o755
BACKUP_SUFFIX = ".bak"


def running_executable(command_name: str) -> Path:
    """Best guess at the path of the binary that is running right now."""
    # Frozen builds: sys.executable is the binary itself
    if getattr(sys, "frozen", False):
        return Path(sys.executable)
    found = shutil.which(command_name)
    if found:
        return Path(found)
    return Path(sys.argv[0])


def backup_path_for(target: Path) -> Path:
    return target.with_name(target.name + BACKUP_SUFFIX)


class AtomicInstaller:
    """Replace the installed binary, rolling back on failure."""

    def __init__(
        self,
        executable: Optional[Union[str, Path]] = None,
        command_name: str = "bashgpt",
    ) -> None:
        self._executable = Path(executable) if executable is not None else None
        self._command_name = command_name
        self.state = InstallState.ORIGINAL

    def resolve_target(self) -> Path:
        """Canonical path of the installed binary, symlinks fully followed."""
        candidate = self._executable or running_executable(self._command_name)
        try:
            return Path(candidate).resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            raise UpgradeError(
                ErrorKind.IO,
                f"Could not determine path to {self._command_name}",
                path=candidate,
            ) from exc

    def install(self, artifact_path: Union[str, Path], target_version: str) -> InstallReport:
        """Install ``artifact_path`` as the new binary for ``target_version``.

        Raises:
            UpgradeError: ``PERMISSION`` if the backup could not be made
                (nothing changed), ``INSTALL`` if placing the new binary
                failed and the original was restored, ``DEGRADED`` if the
                restore failed too.
        """
        self.state = InstallState.ORIGINAL
        artifact = Path(artifact_path)
        target = self.resolve_target()
        backup = backup_path_for(target)

        self._back_up(target, backup, target_version)
        self._set_state(InstallState.BACKED_UP, target)

        try:
            method, stray = self._place(artifact, target)
        except OSError as exc:
            raise self._roll_back(target, backup, target_version) from exc

        self._set_state(InstallState.REPLACED, target)
        backup_removed = self._remove_quietly(backup, "stale_backup_left_behind")
        logger.info(
            "binary_installed",
            target=str(target),
            version=target_version,
            method=method.value,
        )
        return InstallReport(
            target=target,
            version=target_version,
            method=method,
            backup_removed=backup_removed,
            stray_artifact=stray,
        )

    def _back_up(self, target: Path, backup: Path, version: str) -> None:
        if os.path.lexists(backup):
            self._remove_quietly(backup, "old_backup_not_removed")

        try:
            os.link(target, backup)
            return
        except OSError as exc:
            logger.debug("backup_link_unavailable", target=str(target), error=str(exc))

        try:
            os.rename(target, backup)
        except OSError as exc:
            raise UpgradeError(
                ErrorKind.PERMISSION,
                f"Could not replace existing {target}; do you need to be root?",
                path=target,
                version=version,
            ) from exc

    def _place(self, artifact: Path, target: Path) -> Tuple[InstallMethod, Optional[Path]]:
        try:
            os.replace(artifact, target)
            return InstallMethod.RENAME, None
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise
            logger.info("cross_device_install", artifact=str(artifact), target=str(target))

        self._copy_into_place(artifact, target)
        removed = self._remove_quietly(artifact, "downloaded_artifact_left_behind")
        return InstallMethod.COPY, None if removed else artifact

    @staticmethod
    def _copy_into_place(artifact: Path, target: Path) -> None:
        # Copy next to the target, then replace: the target may share its
        # inode with the backup, so it must never be written in place.
        fd, name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.")
        staged = Path(name)
        try:
            with os.fdopen(fd, "wb") as out, open(artifact, "rb") as src:
                shutil.copyfileobj(src, out)
                out.flush()
                os.fsync(out.fileno())
            os.chmod(staged, INSTALL_MODE)
            os.replace(staged, target)
        except OSError:
            try:
                staged.unlink()
            except OSError:
                pass
            raise

    def _roll_back(self, target: Path, backup: Path, version: str) -> UpgradeError:
        """Restore the original binary and return the error to raise."""
        failed = UpgradeError(
            ErrorKind.INSTALL,
            f"Could not replace existing {target}; do you need to be root?",
            path=target,
            version=version,
        )

        if self._holds_original(target, backup):
            self._set_state(InstallState.ROLLED_BACK, target)
            self._remove_quietly(backup, "stale_backup_left_behind")
            return failed

        try:
            os.replace(backup, target)
        except OSError as rollback_exc:
            self._set_state(InstallState.DEGRADED, target)
            logger.error(
                "rollback_failed",
                target=str(target),
                backup=str(backup),
                error=str(rollback_exc),
            )
            return UpgradeError(
                ErrorKind.DEGRADED,
                f"Could not install {version} and could not restore {target} from {backup}",
                path=target,
                version=version,
                backup_path=backup,
                rollback_error=rollback_exc,
            )

        self._set_state(InstallState.ROLLED_BACK, target)
        return failed

    @staticmethod
    def _holds_original(target: Path, backup: Path) -> bool:
        try:
            return os.path.samefile(target, backup)
        except OSError:
            return False

    @staticmethod
    def _remove_quietly(path: Path, event: str) -> bool:
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return True
        except OSError as exc:
            logger.warning(event, path=str(path), error=str(exc))
            return False

    def _set_state(self, state: InstallState, target: Path) -> None:
        logger.debug("install_state", target=str(target), previous=self.state.value, state=state.value)
        self.state = state
