"""Unit tests for raiffcli settings.

Covers default loading, TOML layering, env var overrides and path
resolution.
"""

from __future__ import annotations

import os
from decimal import Decimal

import pytest
from pydantic import ValidationError


class TestSettings:
    """Core settings loading and override mechanics."""

    def test_default_settings_load(self, monkeypatch):
        """Defaults load from settings.default.toml."""
        monkeypatch.delenv("RAIFF_ENV", raising=False)
        from raiffcli.settings import get_settings

        s = get_settings()
        assert s.env == "local"
        assert s.driver.default == "playwright"
        assert s.wait.timeout_sec == 20.0
        assert s.wait.poll_interval_sec == 0.5
        assert s.recovery.max_attempts == 3
        assert s.transfer.funds_origin_threshold == Decimal("30000.00")

    def test_transient_errors_default(self):
        """The default recovery policy covers obscured clicks and stale elements."""
        from raiffcli.settings.config import Settings

        s = Settings()
        assert s.recovery.transient_errors == {
            "ClickObscuredError": "close_dialog",
            "StaleElementError": "retry",
        }

    def test_env_override(self, monkeypatch):
        """RAIFF_WAIT__TIMEOUT_SEC should override the default."""
        monkeypatch.setenv("RAIFF_WAIT__TIMEOUT_SEC", "45")
        from raiffcli.settings.config import Settings

        s = Settings()
        assert s.wait.timeout_sec == 45.0
        assert s.wait.poll_interval_sec == 0.5

    def test_multiple_section_overrides(self, monkeypatch):
        """Env vars override several sections at once."""
        monkeypatch.setenv("RAIFF_DRIVER__DEFAULT", "selenium")
        monkeypatch.setenv("RAIFF_BANK__USERNAME", "jane")
        monkeypatch.setenv("RAIFF_BANK__PASSWORD", "s3cret")
        from raiffcli.settings.config import Settings

        s = Settings()
        assert s.driver.default == "selenium"
        assert s.bank.username == "jane"
        assert s.bank.password == "s3cret"

    def test_paths_resolved_relative_to_project_root(self):
        """Relative paths are resolved against the project root."""
        from raiffcli.settings.config import Settings

        s = Settings()
        assert os.path.isabs(s.storage.data_dir)
        assert os.path.isabs(s.ui.profile_dir)

    def test_absolute_data_dir_kept(self, tmp_path, monkeypatch):
        """An absolute data directory is kept as given."""
        monkeypatch.setenv("RAIFF_STORAGE__DATA_DIR", str(tmp_path))
        from raiffcli.settings.config import Settings

        assert Settings().storage.data_dir == str(tmp_path)

    def test_max_attempts_bounds(self, monkeypatch):
        """A retry count below one is rejected."""
        monkeypatch.setenv("RAIFF_RECOVERY__MAX_ATTEMPTS", "0")
        from raiffcli.settings.config import Settings

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_is_cached(self):
        """get_settings returns the same instance."""
        from raiffcli.settings import get_settings

        assert get_settings() is get_settings()


class TestTomlLayering:
    """settings.default.toml < settings.<env>.toml < settings.local.toml < env vars."""

    @pytest.fixture()
    def config_dir(self, tmp_path, monkeypatch):
        """Config directory with a minimal settings.default.toml."""
        from raiffcli.settings import config

        monkeypatch.setattr(config, "CONFIG_DIR", tmp_path)
        (tmp_path / "settings.default.toml").write_text(
            '[driver]\ndefault = "playwright"\nselenium_browser = "firefox"\n\n[wait]\ntimeout_sec = 20.0\n'
        )
        return tmp_path

    def test_env_file_overrides_defaults(self, config_dir, monkeypatch):
        """settings.<env>.toml overrides the defaults key by key."""
        (config_dir / "settings.dev.toml").write_text('[driver]\ndefault = "selenium"\n')
        monkeypatch.setenv("RAIFF_ENV", "dev")
        from raiffcli.settings.config import Settings

        s = Settings()
        assert s.env == "dev"
        assert s.driver.default == "selenium"
        # Sections merge key by key.
        assert s.driver.selenium_browser == "firefox"

    def test_local_file_overrides_env_file(self, config_dir, monkeypatch):
        """settings.local.toml overrides settings.<env>.toml."""
        (config_dir / "settings.dev.toml").write_text('[driver]\ndefault = "selenium"\n')
        (config_dir / "settings.local.toml").write_text('[driver]\nselenium_browser = "chrome"\n')
        monkeypatch.setenv("RAIFF_ENV", "dev")
        from raiffcli.settings.config import Settings

        s = Settings()
        assert s.driver.default == "selenium"
        assert s.driver.selenium_browser == "chrome"

    def test_env_var_beats_files(self, config_dir, monkeypatch):
        """Env vars override every TOML layer."""
        (config_dir / "settings.local.toml").write_text("[wait]\ntimeout_sec = 30.0\n")
        monkeypatch.setenv("RAIFF_WAIT__TIMEOUT_SEC", "5")
        from raiffcli.settings.config import Settings

        assert Settings().wait.timeout_sec == 5.0

    def test_transient_errors_from_toml(self, config_dir):
        """The recovery policy table replaces the default one."""
        (config_dir / "settings.local.toml").write_text(
            '[recovery.transient_errors]\nElementNotInteractableError = "retry"\n'
        )
        from raiffcli.settings.config import Settings

        assert Settings().recovery.transient_errors == {"ElementNotInteractableError": "retry"}
