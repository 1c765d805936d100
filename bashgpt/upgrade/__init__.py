"""
Self-upgrade for the bashgpt binary.

Looks up the latest release, downloads its binary and swaps it in place of
the running executable with rollback on failure.
"""

from .fetcher import ArtifactFetcher
from .installer import AtomicInstaller, backup_path_for, running_executable
from .oracle import VersionOracle
from .orchestrator import ConfirmUpgrade, Upgrader, console_confirm

__all__ = [
    "ArtifactFetcher",
    "AtomicInstaller",
    "backup_path_for",
    "running_executable",
    "VersionOracle",
    "ConfirmUpgrade",
    "Upgrader",
    "console_confirm",
]
