"""Selenium-backed remote session (full browser through a Selenium server).

Connects to a Selenium Grid / standalone server with ``webdriver.Remote``
so the browser can run on another host, with a real window when needed.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from selenium import webdriver
from selenium.common.exceptions import (
    ElementClickInterceptedException,
    ElementNotInteractableException,
    InvalidSessionIdException,
    NoSuchElementException,
    NoSuchWindowException,
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import Select

from raiffcli.browser.session import RemoteElement, RemoteSession, Selector
from raiffcli.exceptions import (
    ClickObscuredError,
    ElementNotFoundError,
    ElementNotInteractableError,
    RemoteInteractionError,
    RemoteSessionError,
    StaleElementError,
)

logger = logging.getLogger(__name__)

_OPTIONS = {
    "chrome": webdriver.ChromeOptions,
    "firefox": webdriver.FirefoxOptions,
    "edge": webdriver.EdgeOptions,
}


def translate_error(exc: WebDriverException) -> RemoteInteractionError:
    """Map a Selenium exception onto the driver-independent hierarchy."""
    message = exc.msg or str(exc)
    if isinstance(exc, ElementClickInterceptedException):
        return ClickObscuredError(message)
    if isinstance(exc, StaleElementReferenceException):
        return StaleElementError(message)
    if isinstance(exc, ElementNotInteractableException):
        return ElementNotInteractableError(message)
    if isinstance(exc, NoSuchElementException):
        return ElementNotFoundError(message)
    if isinstance(exc, (InvalidSessionIdException, NoSuchWindowException)):
        return RemoteSessionError(message)
    # Older drivers report obscured clicks as a generic "unknown error".
    if "is not clickable at point" in message:
        return ClickObscuredError(message)
    return RemoteInteractionError(message)


@contextmanager
def _translated() -> Iterator[None]:
    try:
        yield
    except WebDriverException as exc:
        raise translate_error(exc) from exc


def _by(selector: Selector) -> tuple[str, str]:
    return (By.XPATH if selector.engine == "xpath" else By.CSS_SELECTOR, selector.value)


class SeleniumElement(RemoteElement):
    """Wraps a Selenium ``WebElement``."""

    def __init__(self, element: Any) -> None:
        self._element = element

    def click(self) -> None:
        with _translated():
            self._element.click()

    def set_value(self, value: str) -> None:
        with _translated():
            self._element.clear()
            self._element.send_keys(value)

    def select_option(self, *, value: str | None = None, label: str | None = None) -> None:
        with _translated():
            select = Select(self._element)
            if value is not None:
                select.select_by_value(value)
            else:
                select.select_by_visible_text(label)

    def is_visible(self) -> bool:
        with _translated():
            return bool(self._element.is_displayed())

    def text(self) -> str:
        with _translated():
            return self._element.text or ""

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        with _translated():
            found = self._element.find_elements(*_by(selector))
        return [SeleniumElement(e) for e in found]


class SeleniumSession(RemoteSession):
    """Remote session driven through a Selenium server.

    Args:
        host: Command executor URL, e.g. ``http://localhost:4444/wd/hub``.
        browser_name: ``firefox``, ``chrome`` or ``edge``.
    """

    def __init__(self, *, host: str, browser_name: str = "firefox") -> None:
        if browser_name not in _OPTIONS:
            raise ValueError(f"Unsupported Selenium browser: {browser_name!r}")
        self._host = host
        self._browser_name = browser_name
        self._driver: Any = None

    def start(self) -> None:
        """Open a remote WebDriver session."""
        options = _OPTIONS[self._browser_name]()
        try:
            self._driver = webdriver.Remote(command_executor=self._host, options=options)
        except WebDriverException as exc:
            raise RemoteSessionError(f"Cannot open Selenium session at {self._host}: {exc}") from exc
        logger.info("Selenium %s session started at %s", self._browser_name, self._host)

    def close(self) -> None:
        """Quit the remote WebDriver session."""
        if self._driver is None:
            return
        try:
            self._driver.quit()
        except WebDriverException as e:
            logger.warning("WebDriver quit error (non-fatal): %s", e)
        finally:
            self._driver = None
        logger.info("Selenium session closed")

    @property
    def driver(self) -> Any:
        if self._driver is None:
            raise RemoteSessionError("WebDriver not started. Call start() first.")
        return self._driver

    def open(self, url: str) -> None:
        try:
            self.driver.get(url)
        except WebDriverException as exc:
            raise RemoteSessionError(f"Navigation to {url} failed: {exc}") from exc

    def find_all(self, selector: Selector) -> list[RemoteElement]:
        with _translated():
            found = self.driver.find_elements(*_by(selector))
        return [SeleniumElement(e) for e in found]

    def evaluate(self, script: str) -> Any:
        with _translated():
            return self.driver.execute_script(f"return {script}")
