# config.py
# Settings for the jq console, read from JQ_CONSOLE_* environment variables
# (or a .env file). Resolution of the jq release asset for this host lives
# here too; add a row to ASSETS to support another platform.

import os
import platform
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

JQ_VERSION = "jq-1.7.1"
RELEASE_URL = "https://github.com/jqlang/jq/releases/download/{version}/{asset}"

# (platform.system(), platform.machine()) -> release asset name
ASSETS: dict[tuple[str, str], str] = {
    ("Darwin", "x86_64"): "jq-macos-amd64",
    ("Darwin", "arm64"): "jq-macos-arm64",
    ("Linux", "x86_64"): "jq-linux-amd64",
    ("Linux", "aarch64"): "jq-linux-arm64",
    ("Linux", "arm64"): "jq-linux-arm64",
    ("Windows", "AMD64"): "jq-windows-amd64.exe",
}

ENV_PREFIX = "JQ_CONSOLE_"


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


class Settings(BaseModel):
    """Runtime configuration. One instance is injected at startup."""

    model_config = ConfigDict(frozen=True)

    support_dir: Path = Field(default_factory=lambda: Path.home() / ".jq-console")
    jq_version: str = Field(default=JQ_VERSION)
    download_url: str = Field(..., description="Pinned release asset URL.")
    download_timeout: float = Field(default=60.0, gt=0)
    debounce_seconds: float = Field(default=0.3, ge=0)
    truncate_limit: int = Field(default=5000, gt=0)
    initial_query: str = Field(default=".")

    @property
    def binary_path(self) -> Path:
        return self.support_dir / "jq"


def resolve_asset(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Return the jq release asset name for a host (defaults to this one)."""
    key = (system or platform.system(), machine or platform.machine())
    try:
        return ASSETS[key]
    except KeyError:
        raise ConfigError(
            f"No jq build known for {key[0]}/{key[1]}. "
            f"Set {ENV_PREFIX}PLATFORM_ASSET or {ENV_PREFIX}DOWNLOAD_URL."
        ) from None


def release_url(version: str, asset: str) -> str:
    return RELEASE_URL.format(version=version, asset=asset)


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Raises:
        ConfigError: if a value does not validate or the platform is unknown
                     and no explicit asset/URL was given.
    """
    load_dotenv()

    def env(name: str) -> Optional[str]:
        value = os.environ.get(ENV_PREFIX + name)
        return value if value else None

    version = env("JQ_VERSION") or JQ_VERSION
    support_dir = env("SUPPORT_DIR")
    url = env("DOWNLOAD_URL")
    if url is None:
        url = release_url(version, env("PLATFORM_ASSET") or resolve_asset())

    raw = {
        "support_dir": os.path.expanduser(support_dir) if support_dir else None,
        "jq_version": version,
        "download_url": url,
        "download_timeout": env("DOWNLOAD_TIMEOUT"),
        "debounce_seconds": env("DEBOUNCE_SECONDS"),
        "truncate_limit": env("TRUNCATE_LIMIT"),
        "initial_query": os.environ.get(ENV_PREFIX + "INITIAL_QUERY"),
    }
    try:
        return Settings(**{k: v for k, v in raw.items() if v is not None})
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
