"""Data models for bashgpt upgrades."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel


class InstallState(str, Enum):
    """Where an install attempt stands."""
    ORIGINAL = "original"
    BACKED_UP = "backed_up"
    REPLACED = "replaced"
    ROLLED_BACK = "rolled_back"
    DEGRADED = "degraded"


class InstallMethod(str, Enum):
    """How the new binary reached the target path."""
    RENAME = "rename"
    COPY = "copy"


class UpgradeStatus(str, Enum):
    """Final result of ``bashgpt upgrade``."""
    SKIPPED_DEV_BUILD = "skipped_dev_build"
    UP_TO_DATE = "up_to_date"
    DECLINED = "declined"
    UPGRADED = "upgraded"


class ReleaseDescriptor(BaseModel):
    """Latest published release."""
    tag: str
    download_url: str


class DownloadedArtifact(BaseModel):
    """A fully downloaded binary waiting in a temp file."""
    path: Path
    tag: str
    size: int


class InstallReport(BaseModel):
    """Outcome of a successful install."""
    target: Path
    version: str
    method: InstallMethod
    backup_removed: bool = True
    stray_artifact: Optional[Path] = None


class UpgradeOutcome(BaseModel):
    """What ``run_upgrade`` did."""
    status: UpgradeStatus
    current_version: str
    latest_version: Optional[str] = None
    install: Optional[InstallReport] = None
