"""Remote-UI driver abstraction and its Playwright / Selenium implementations."""

from raiffcli.browser.factory import create_remote_session
from raiffcli.browser.session import RemoteElement, RemoteSession, Selector

__all__ = ["RemoteElement", "RemoteSession", "Selector", "create_remote_session"]
