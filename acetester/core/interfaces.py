"""
Core interfaces and abstract base classes for AceTester.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from acetester.core.types import PersistenceResult, Plan


class PageDriver(ABC):
    """
    The page capabilities the step executor relies on.

    Every wait takes an explicit timeout in milliseconds; implementations
    must not depend on a page-wide default.
    """

    @abstractmethod
    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Open a URL and wait for the document's initial load."""
        pass

    @abstractmethod
    async def click(self, selector: str, timeout_ms: int) -> None:
        """Wait for the element to be visible, then click it."""
        pass

    @abstractmethod
    async def fill(self, selector: str, value: str, timeout_ms: int) -> None:
        """Wait for the field to be visible, then set its value."""
        pass

    @abstractmethod
    async def wait_for_load_state(self, timeout_ms: int) -> None:
        """Block until the page reports its load state reached."""
        pass


class BrowserDriver(PageDriver):
    """A page driver that owns a browser process."""

    @abstractmethod
    async def start(self) -> None:
        """Launch the browser and open a page."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Close the page and browser, releasing all resources."""
        pass


class Planner(ABC):
    """Turns a natural-language instruction into a plan."""

    @abstractmethod
    async def create_plan(
        self,
        url: str,
        instruction: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Plan:
        """
        Create an ordered plan of browser steps.

        Args:
            url: Website under test
            instruction: Natural-language testing instruction
            username: Optional login username
            password: Optional login password

        Returns:
            A non-empty plan

        Raises:
            PlanningError: If no usable plan could be produced
        """
        pass


class LogFormatter(ABC):
    """Formats a single step's narration into one log line."""

    @abstractmethod
    async def format_entry(
        self, url: str, instruction: str, action_description: str
    ) -> Optional[str]:
        """
        Format one action log entry.

        Returns:
            The formatted line, or None when nothing was produced
        """
        pass


class ReportSynthesizer(ABC):
    """Writes the human-readable report from the narrated log."""

    @abstractmethod
    async def synthesize(
        self, url: str, instruction: str, action_log: str
    ) -> Optional[str]:
        """
        Generate the testing report.

        Returns:
            Report text, or None when nothing was produced
        """
        pass


class ReportStore(ABC):
    """Persists synthesized reports."""

    @abstractmethod
    async def save(
        self,
        path: Path,
        report: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PersistenceResult:
        """Save a report. Must report failure through the result, not raise."""
        pass
