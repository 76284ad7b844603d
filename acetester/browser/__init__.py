"""
Browser automation module exports.
"""

from acetester.browser.driver import PlaywrightDriver
from acetester.browser.session import Session, SessionManager

__all__ = [
    "PlaywrightDriver",
    "Session",
    "SessionManager",
]
