"""
Browser session ownership for a single test run.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional
from uuid import uuid4

from acetester.browser.driver import PlaywrightDriver
from acetester.core.interfaces import BrowserDriver, PageDriver
from acetester.core.types import SessionConfig
from acetester.error_handling import SessionError
from acetester.monitoring.logger import get_logger

DriverFactory = Callable[[SessionConfig], BrowserDriver]

logger = get_logger(__name__)


@dataclass
class Session:
    """A live browser session, exclusively owned by one run."""

    driver: BrowserDriver
    config: SessionConfig
    session_id: str = field(default_factory=lambda: uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    released: bool = False

    @property
    def page(self) -> PageDriver:
        if self.released:
            raise SessionError(
                "Session has already been released",
                phase="use",
                session_id=self.session_id,
            )
        return self.driver

    @property
    def action_timeout_ms(self) -> int:
        return self.config.action_timeout_ms


class SessionManager:
    """
    Acquires and releases browser sessions.

    Each acquired session is released exactly once. A failed acquisition
    never yields a session, so there is nothing to release.
    """

    def __init__(self, driver_factory: Optional[DriverFactory] = None) -> None:
        self.driver_factory: DriverFactory = driver_factory or PlaywrightDriver
        self.acquired_count = 0
        self.released_count = 0

    async def acquire(self, config: SessionConfig) -> Session:
        """
        Launch a browser session.

        Args:
            config: Session parameters, including startup and action timeouts

        Returns:
            A started session

        Raises:
            SessionError: If the browser cannot be started
        """
        driver: Optional[BrowserDriver] = None
        try:
            driver = self.driver_factory(config)
            await driver.start()
        except Exception as exc:
            logger.error(
                "Browser session could not be started",
                extra={"error": str(exc)},
            )
            if driver is not None:
                await self._discard_partial(driver)
            raise SessionError(
                f"Failed to start browser session: {exc}",
                phase="acquire",
                cause=exc,
            ) from exc

        session = Session(driver=driver, config=config)
        self.acquired_count += 1
        logger.info(
            "Browser session acquired",
            extra={
                "session_id": session.session_id,
                "action_timeout_ms": config.action_timeout_ms,
            },
        )
        return session

    async def release(self, session: Session) -> None:
        """
        Tear down a session unconditionally.

        Raises:
            SessionError: If teardown failed. The session is still marked
                released and will not be torn down again.
        """
        if session.released:
            logger.warning(
                "Ignoring repeated release of session",
                extra={"session_id": session.session_id},
            )
            return

        session.released = True
        self.released_count += 1
        try:
            await session.driver.stop()
        except Exception as exc:
            logger.error(
                "Browser session teardown failed",
                extra={"session_id": session.session_id, "error": str(exc)},
            )
            raise SessionError(
                f"Failed to tear down browser session: {exc}",
                phase="release",
                session_id=session.session_id,
                cause=exc,
            ) from exc

        logger.info(
            "Browser session released",
            extra={"session_id": session.session_id},
        )

    @asynccontextmanager
    async def session(self, config: SessionConfig) -> AsyncIterator[Session]:
        """Acquire a session for the duration of the block, releasing it on every exit path."""
        session = await self.acquire(config)
        try:
            yield session
        finally:
            await self.release(session)

    async def _discard_partial(self, driver: BrowserDriver) -> None:
        """Best-effort cleanup of resources allocated before startup failed."""
        try:
            await driver.stop()
        except Exception:
            logger.warning(
                "Cleanup after failed browser start also failed", exc_info=True
            )
