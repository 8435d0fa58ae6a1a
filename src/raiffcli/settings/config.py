"""Configuration loader for raiffcli using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (RAIFF_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml

Settings are read once at startup and treated as immutable for the
lifetime of the process.
"""

from __future__ import annotations

import os
import tomllib
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("RAIFF_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "RAIFF_ENV"
DEFAULT_ENV = "local"


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BankSettings(BaseSettings):
    """Remote banking UI location and credentials."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_BANK__")

    base_url: str = "https://www.rbbbg.bg/"
    username: str = ""
    password: str = ""


class DriverSettings(BaseSettings):
    """Remote-UI driver selection.

    ``playwright`` drives a local headless browser; ``selenium`` talks to a
    Selenium server (``selenium_host``) driving a full browser.
    """

    model_config = SettingsConfigDict(env_prefix="RAIFF_DRIVER__")

    default: str = "playwright"  # playwright | selenium
    playwright_browser: str = "chromium"
    playwright_headless: bool = True
    selenium_host: str = "http://localhost:4444/wd/hub"
    selenium_browser: str = "firefox"
    action_timeout_ms: int = 5_000


class WaitSettings(BaseSettings):
    """Condition poller defaults."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_WAIT__")

    timeout_sec: float = 20.0
    poll_interval_sec: float = 0.5
    probe_timeout_sec: float = 1.0


class RecoverySettings(BaseSettings):
    """Recovery supervisor defaults."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_RECOVERY__")

    max_attempts: int = Field(default=3, ge=1, le=10)
    # exception class name -> recovery routine ("close_dialog" or "retry")
    transient_errors: dict[str, str] = Field(
        default_factory=lambda: {"ClickObscuredError": "close_dialog", "StaleElementError": "retry"}
    )


class StorageSettings(BaseSettings):
    """Location of the transaction queue and the address book."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_STORAGE__")

    data_dir: str = "data"


class UISettings(BaseSettings):
    """Which selector profile describes the current remote UI version."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_UI__")

    profile: str = "default"
    profile_dir: str = "config/ui_profiles"


class TransferSettings(BaseSettings):
    """Currency and regulatory rules applied while collecting transactions."""

    model_config = SettingsConfigDict(env_prefix="RAIFF_TRANSFER__")

    domestic_currency: str = "BGN"
    foreign_currency: str = "EUR"
    domestic_iban_prefix: str = "BG"
    funds_origin_threshold: Decimal = Decimal("30000.00")
    default_country: str = "Belgium"


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root raiffcli settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="RAIFF_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)

    bank: BankSettings = Field(default_factory=BankSettings)
    driver: DriverSettings = Field(default_factory=DriverSettings)
    wait: WaitSettings = Field(default_factory=WaitSettings)
    recovery: RecoverySettings = Field(default_factory=RecoverySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ui: UISettings = Field(default_factory=UISettings)
    transfer: TransferSettings = Field(default_factory=TransferSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths against project_root."""
        root = self.project_root
        if not Path(self.storage.data_dir).is_absolute():
            self.storage.data_dir = str(root / self.storage.data_dir)
        if not Path(self.ui.profile_dir).is_absolute():
            self.ui.profile_dir = str(root / self.ui.profile_dir)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
