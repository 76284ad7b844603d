"""
Shared fixtures for AceTester tests.
"""

from typing import Dict, List, Optional, Tuple

import pytest

from acetester.config.settings import get_settings
from acetester.core.interfaces import BrowserDriver
from acetester.core.types import SessionConfig


class FakeDriver(BrowserDriver):
    """In-memory page driver that records calls and fails on request."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config or SessionConfig()
        self.calls: List[Tuple] = []
        self.started = False
        self.stopped = 0
        self.visible_selectors = {"#username", "#password", "#login", "#submit"}
        self.fail_start: Optional[Exception] = None
        self.fail_stop: Optional[Exception] = None
        self.fail_navigation: Dict[str, Exception] = {}

    async def start(self) -> None:
        if self.fail_start:
            raise self.fail_start
        self.started = True

    async def stop(self) -> None:
        self.stopped += 1
        if self.fail_stop:
            raise self.fail_stop

    async def navigate(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("navigate", url, timeout_ms))
        if url in self.fail_navigation:
            raise self.fail_navigation[url]

    async def click(self, selector: str, timeout_ms: int) -> None:
        self.calls.append(("click", selector, timeout_ms))
        self._wait_visible(selector, timeout_ms)

    async def fill(self, selector: str, value: str, timeout_ms: int) -> None:
        self.calls.append(("fill", selector, value, timeout_ms))
        self._wait_visible(selector, timeout_ms)

    async def wait_for_load_state(self, timeout_ms: int) -> None:
        self.calls.append(("wait_for_load_state", timeout_ms))

    def _wait_visible(self, selector: str, timeout_ms: int) -> None:
        if selector not in self.visible_selectors:
            raise TimeoutError(
                f"Timeout {timeout_ms}ms exceeded waiting for locator('{selector}') to be visible"
            )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Give every test a freshly loaded settings object."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_driver():
    """A fake driver instance."""
    return FakeDriver()


@pytest.fixture
def driver_factory(fake_driver):
    """Driver factory that always hands out the same fake driver."""
    configs: List[SessionConfig] = []

    def factory(config: SessionConfig) -> FakeDriver:
        configs.append(config)
        fake_driver.config = config
        return fake_driver

    factory.configs = configs
    return factory
