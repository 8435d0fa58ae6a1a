"""Abstract remote-UI session interface.

The engine talks to the remote banking UI exclusively through
``RemoteSession`` and ``RemoteElement``. Concrete drivers (Playwright,
Selenium) translate their native exceptions into the driver-level classes
in ``raiffcli.exceptions`` so that wait loops and the recovery supervisor
can classify failures without knowing which driver is in use.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Literal

Engine = Literal["css", "xpath"]


@dataclass(frozen=True)
class Selector:
    """A structural selector.

    Profiles write selectors as strings; an ``xpath=`` prefix selects the
    XPath engine, anything else is CSS.
    """

    value: str
    engine: Engine = "css"

    @classmethod
    def parse(cls, raw: str) -> "Selector":
        if raw.startswith("xpath="):
            return cls(raw[len("xpath="):], "xpath")
        if raw.startswith("css="):
            return cls(raw[len("css="):], "css")
        return cls(raw, "css")

    def __str__(self) -> str:
        return f"xpath={self.value}" if self.engine == "xpath" else self.value


class RemoteElement(abc.ABC):
    """A located element in the remote UI."""

    @abc.abstractmethod
    def click(self) -> None:
        """Click the element."""

    @abc.abstractmethod
    def set_value(self, value: str) -> None:
        """Replace the value of a text input or textarea."""

    @abc.abstractmethod
    def select_option(self, *, value: str | None = None, label: str | None = None) -> None:
        """Select an ``<option>`` of a ``<select>`` by value or visible label."""

    @abc.abstractmethod
    def is_visible(self) -> bool:
        """Return True if the element is currently rendered visibly."""

    @abc.abstractmethod
    def text(self) -> str:
        """Return the element's visible text content."""

    @abc.abstractmethod
    def find_all(self, selector: Selector) -> list["RemoteElement"]:
        """Return descendants matching *selector*."""

    def find(self, selector: Selector) -> "RemoteElement | None":
        """Return the first descendant matching *selector*, or ``None``."""
        found = self.find_all(selector)
        return found[0] if found else None


class RemoteSession(abc.ABC):
    """One opened connection to the remote UI."""

    @abc.abstractmethod
    def open(self, url: str) -> None:
        """Navigate to *url*."""

    @abc.abstractmethod
    def find_all(self, selector: Selector) -> list[RemoteElement]:
        """Return every element in the page matching *selector*."""

    @abc.abstractmethod
    def evaluate(self, script: str) -> Any:
        """Evaluate a JavaScript expression in the page and return its value."""

    def find(self, selector: Selector) -> RemoteElement | None:
        """Return the first element matching *selector*, or ``None``."""
        found = self.find_all(selector)
        return found[0] if found else None

    def start(self) -> None:
        """Acquire driver resources. Override if needed."""

    def close(self) -> None:
        """Release driver resources. Override if needed."""

    def __enter__(self) -> "RemoteSession":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
