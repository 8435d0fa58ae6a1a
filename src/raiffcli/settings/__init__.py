"""raiffcli settings package."""

from raiffcli.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
