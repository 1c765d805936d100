"""
bashgpt - Natural language to shell command autocompletion

Turns a query typed at the shell prompt into a suggested command, and keeps
its own binary and autocomplete script up to date.
"""

__version__ = "0.1.0"
__author__ = "bashgpt Team"

from .config import BashGPTSettings, get_settings
from .errors import BashGPTError, ErrorKind, UpgradeError

__all__ = [
    "BashGPTSettings",
    "get_settings",
    "BashGPTError",
    "ErrorKind",
    "UpgradeError",
]
