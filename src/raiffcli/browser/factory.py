"""Factory for creating remote sessions from raiffcli settings.

Supports two drivers:

    create_remote_session()                   — driver from ``driver.default``
    create_remote_session("playwright")       — local headless browser
    create_remote_session("selenium")         — browser behind a Selenium server
"""

from __future__ import annotations

import logging

from raiffcli.browser.session import RemoteSession
from raiffcli.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def create_remote_session(driver: str | None = None) -> RemoteSession:
    """Create an (unstarted) remote session.

    Args:
        driver: Override driver name. If None, reads ``get_settings().driver.default``.

    Returns:
        A ``RemoteSession``; use it as a context manager to start and close it.

    Raises:
        ConfigurationError: If the driver name is not recognized.
    """
    from raiffcli.settings import get_settings

    settings = get_settings()
    driver_name = (driver or settings.driver.default).lower().strip()

    if driver_name == "playwright":
        from raiffcli.browser.playwright_driver import PlaywrightSession

        session: RemoteSession = PlaywrightSession(
            browser_name=settings.driver.playwright_browser,
            headless=settings.driver.playwright_headless,
            action_timeout_ms=settings.driver.action_timeout_ms,
        )

    elif driver_name == "selenium":
        from raiffcli.browser.selenium_driver import SeleniumSession

        session = SeleniumSession(
            host=settings.driver.selenium_host,
            browser_name=settings.driver.selenium_browser,
        )

    else:
        raise ConfigurationError(
            f"Unknown driver: {driver_name!r}. Supported: 'playwright', 'selenium'."
        )

    logger.info("Created %s remote session", driver_name)
    return session
