"""Error types for bashgpt."""

from enum import Enum
from pathlib import Path
from typing import Optional, Union


class BashGPTError(Exception):
    """Base class for every error bashgpt reports to the user."""


class ConfigError(BashGPTError):
    """The local configuration (API key, config dir) is missing or unusable."""


class CompletionError(BashGPTError):
    """The completion service call failed or returned something unusable."""


class CommandFailedError(BashGPTError):
    """An executed shell command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(f"{command}: exit status {returncode}")
        self.command = command
        self.returncode = returncode


class ErrorKind(str, Enum):
    """What part of an upgrade attempt failed."""
    NETWORK = "network"
    PARSE = "parse"
    IO = "io"
    PERMISSION = "permission"
    INSTALL = "install"
    DEGRADED = "degraded"


class UpgradeError(BashGPTError):
    """
    A failed upgrade step.

    The underlying exception is kept as ``__cause__`` (use ``raise ... from``)
    and is also reachable through :attr:`cause`. ``path`` and ``version`` name
    what was being worked on, for manual diagnosis. A DEGRADED error also
    carries the failed restore in ``rollback_error`` and the file holding the
    original binary in ``backup_path``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        path: Optional[Union[str, Path]] = None,
        version: Optional[str] = None,
        backup_path: Optional[Union[str, Path]] = None,
        rollback_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.path = Path(path) if path is not None else None
        self.version = version
        self.backup_path = Path(backup_path) if backup_path is not None else None
        self.rollback_error = rollback_error

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    @property
    def is_degraded(self) -> bool:
        return self.kind is ErrorKind.DEGRADED

    def __str__(self) -> str:
        text = self.message
        context = []
        if self.path is not None:
            context.append(f"path={self.path}")
        if self.version:
            context.append(f"version={self.version}")
        if context:
            text += f" ({', '.join(context)})"
        if self.__cause__ is not None:
            text += f": {self.__cause__}"
        return text
