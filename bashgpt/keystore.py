"""OpenAI API key storage and the installed autocomplete script."""

import os
from importlib import resources
from pathlib import Path

import structlog

from .config import BashGPTSettings
from .errors import ConfigError

logger = structlog.get_logger(__name__)

CONFIG_DIR_MODE = 0o700
KEY_FILE_MODE = 0o600
SCRIPT_MODE = 0o755


def save_key(settings: BashGPTSettings, key: str) -> Path:
    """Write the API key to the config dir, readable only by the user."""
    key = key.strip()
    if not key:
        raise ConfigError("No OpenAI API key entered")

    try:
        settings.config_dir.mkdir(mode=CONFIG_DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Could not create config directory {settings.config_dir}: {exc}") from exc

    key_path = settings.key_path
    try:
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(key)
        os.chmod(key_path, KEY_FILE_MODE)
    except OSError as exc:
        raise ConfigError(f"Could not write OpenAI API key file {key_path}: {exc}") from exc

    logger.info("api_key_saved", path=str(key_path))
    return key_path


def load_key(settings: BashGPTSettings) -> str:
    """Read the stored API key."""
    key_path = settings.key_path
    try:
        key = key_path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as exc:
        raise ConfigError(
            f"Could not load OpenAI API key: run `{settings.command_name} config` to configure"
        ) from exc
    except OSError as exc:
        raise ConfigError(f"Could not load OpenAI API key: {exc}") from exc

    if not key:
        raise ConfigError(
            f"OpenAI API key file {key_path} is empty: run `{settings.command_name} config`"
        )
    return key


def packaged_autocomplete_script() -> str:
    return resources.files("bashgpt").joinpath("data/bashgpt_autocomplete.sh").read_text(encoding="utf-8")


def ensure_autocomplete_script(settings: BashGPTSettings) -> bool:
    """Install the packaged autocomplete script unless it is already current.

    Returns:
        True if the script was (re)written.
    """
    script = packaged_autocomplete_script()
    path = settings.autocomplete_path

    try:
        if path.read_text(encoding="utf-8") == script:
            return False
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("autocomplete_script_unreadable", path=str(path), error=str(exc))

    try:
        path.write_text(script, encoding="utf-8")
        os.chmod(path, SCRIPT_MODE)
    except OSError as exc:
        raise ConfigError(f"Could not update script {path}: {exc}") from exc

    logger.info("autocomplete_script_updated", path=str(path))
    return True


def refresh_autocomplete_script(settings: BashGPTSettings) -> None:
    """Startup refresh; only touches an already configured install."""
    if not settings.config_dir.is_dir():
        return
    try:
        ensure_autocomplete_script(settings)
    except ConfigError as exc:
        logger.warning("autocomplete_refresh_failed", error=str(exc))


def bashrc_snippet(settings: BashGPTSettings) -> str:
    path = settings.autocomplete_path
    return (
        "Add the following to your .bashrc or equivalent:\n"
        f"  if [ -f {path} ]; then\n"
        f"      . {path}\n"
        "  fi\n"
    )
