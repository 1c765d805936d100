"""Configuration management for bashgpt."""

from importlib import resources
from pathlib import Path
from typing import Any, Dict, Tuple, Type

from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


DEV_VERSION = "v0.devbuild"

# Only these may be tuned through BASHGPT_* variables. The release identity,
# the registry and the completion endpoint are fixed at build time.
ENV_OVERRIDABLE = frozenset({"http_timeout", "model", "log_level"})


def embedded_version() -> str:
    """Return the version stamped into the package at build time."""
    text = resources.files("bashgpt").joinpath("data/version.txt").read_text(encoding="utf-8")
    return text.strip() or DEV_VERSION


class RestrictedEnvSource(EnvSettingsSource):
    """Environment source that drops every field outside ENV_OVERRIDABLE."""

    def __call__(self) -> Dict[str, Any]:
        values = super().__call__()
        return {name: value for name, value in values.items() if name in ENV_OVERRIDABLE}


class BashGPTSettings(BaseSettings):
    """Read-only settings for a single bashgpt invocation."""

    model_config = SettingsConfigDict(
        env_prefix="BASHGPT_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    command_name: str = "bashgpt"

    # Release identity
    version: str = embedded_version()
    dev_version: str = DEV_VERSION

    # Release registry
    release_repo: str = "mikeb26/bashgpt"
    api_base: str = "https://api.github.com"
    download_base: str = "https://github.com"
    binary_name: str = "bashgpt"
    http_timeout: float = 30.0

    # Local files
    config_dir: Path = Path.home() / ".config" / "bashgpt"
    key_file: str = ".openai.key"
    autocomplete_script: str = "bashgpt_autocomplete.sh"

    # Completion service
    openai_base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-3.5-turbo"

    # Logging
    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Keyword arguments and the filtered environment; no .env, no secrets dir.
        return init_settings, RestrictedEnvSource(settings_cls)

    @property
    def is_dev_build(self) -> bool:
        return self.version == self.dev_version

    @property
    def latest_release_url(self) -> str:
        """Registry endpoint describing the latest published release."""
        return f"{self.api_base}/repos/{self.release_repo}/releases/latest"

    def download_url(self, tag: str) -> str:
        """Locator of the binary published under ``tag``."""
        return f"{self.download_base}/{self.release_repo}/releases/download/{tag}/{self.binary_name}"

    @property
    def key_path(self) -> Path:
        return self.config_dir / self.key_file

    @property
    def autocomplete_path(self) -> Path:
        return self.config_dir / self.autocomplete_script


def get_settings() -> BashGPTSettings:
    """Get the settings for this invocation."""
    return BashGPTSettings()
