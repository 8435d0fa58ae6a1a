"""raiffcli — resilient batch transfers against the Raiffeisen online banking UI."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("raiffcli")
except Exception:
    __version__ = "0.0.0"
