"""
Credential sanitization for log output.

Test runs carry login credentials and API keys; these patterns and the
per-run secret registry keep them out of logs and narrated output.
"""

import re
import logging
from collections import Counter
from copy import deepcopy
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)


class RedactionMethod(Enum):
    """Methods for redacting sensitive data."""
    MASK = auto()          # Replace with asterisks
    PARTIAL = auto()       # Show first/last few chars
    PLACEHOLDER = auto()   # Replace with placeholder text


@dataclass
class SensitiveDataPattern:
    """Pattern for identifying sensitive data."""

    name: str
    pattern: Pattern[str]
    redaction_method: RedactionMethod = RedactionMethod.PLACEHOLDER
    placeholder: str = "[REDACTED]"
    partial_chars: int = 4
    description: str = ""
    enabled: bool = True

    def matches(self, text: str) -> List[re.Match]:
        """Find all matches in text."""
        if not self.enabled:
            return []
        return list(self.pattern.finditer(text))


SENSITIVE_KEYS = ("password", "passwd", "api_key", "apikey", "token", "secret", "authorization")


class DataSanitizer:
    """Redacts credentials from strings, dicts and log records."""

    def __init__(self) -> None:
        self.patterns: List[SensitiveDataPattern] = []
        self._secrets: Counter = Counter()
        self._setup_default_patterns()

    def _setup_default_patterns(self) -> None:
        """Set up default sensitive data patterns."""
        self.patterns.extend([
            SensitiveDataPattern(
                name="openai_key",
                pattern=re.compile(r'\bsk-[A-Za-z0-9_-]{16,}\b'),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=3,
                description="OpenAI-style secret keys"
            ),
            SensitiveDataPattern(
                name="bearer_token",
                pattern=re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE),
                placeholder="Bearer [REDACTED]",
                description="Bearer authentication tokens"
            ),
            SensitiveDataPattern(
                name="password_field",
                pattern=re.compile(
                    r'(password|passwd|pwd)\s*[:=]\s*["\']?[^"\'\s,}]+["\']?', re.IGNORECASE
                ),
                placeholder="password=[PASSWORD]",
                description="Inline password assignments"
            ),
            SensitiveDataPattern(
                name="jwt_token",
                pattern=re.compile(r'eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'),
                description="JWT tokens"
            ),
        ])

    def add_pattern(self, pattern: SensitiveDataPattern) -> None:
        """Add a custom pattern."""
        self.patterns.append(pattern)

    def register_secret(self, value: Optional[str]) -> None:
        """
        Redact every literal occurrence of a known secret, e.g. a run's password.

        Registrations are counted; the secret stays redacted until every
        registration has been matched by forget_secret().
        """
        if value and len(value) >= 3:
            self._secrets[value] += 1

    def forget_secret(self, value: Optional[str]) -> None:
        """Release one registration of a secret once its run is over."""
        if not value or value not in self._secrets:
            return
        self._secrets[value] -= 1
        if self._secrets[value] <= 0:
            del self._secrets[value]

    def sanitize_string(self, text: str) -> str:
        """
        Sanitize a string using registered secrets and enabled patterns.

        Args:
            text: Text to sanitize

        Returns:
            Sanitized text
        """
        if not text:
            return text

        result = text
        for secret in sorted(self._secrets, key=len, reverse=True):
            result = result.replace(secret, "[SECRET]")

        all_matches = []
        for pattern in self.patterns:
            for match in pattern.matches(result):
                all_matches.append((match, pattern))

        # Apply from the end so earlier spans stay valid
        all_matches.sort(key=lambda x: x[0].start(), reverse=True)
        last_start = len(result) + 1
        for match, pattern in all_matches:
            if match.end() > last_start:
                continue
            result = self._apply_redaction(result, match, pattern)
            last_start = match.start()

        return result

    def _apply_redaction(
        self,
        text: str,
        match: re.Match,
        pattern: SensitiveDataPattern
    ) -> str:
        """Apply redaction based on method."""
        start, end = match.span()
        matched_text = match.group()

        if pattern.redaction_method == RedactionMethod.MASK:
            replacement = "*" * len(matched_text)
        elif pattern.redaction_method == RedactionMethod.PARTIAL:
            if len(matched_text) > pattern.partial_chars * 2:
                replacement = (
                    matched_text[:pattern.partial_chars] +
                    "*" * (len(matched_text) - pattern.partial_chars * 2) +
                    matched_text[-pattern.partial_chars:]
                )
            else:
                replacement = "*" * len(matched_text)
        else:
            replacement = pattern.placeholder

        return text[:start] + replacement + text[end:]

    def sanitize_dict(self, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """
        Sanitize a dictionary recursively.

        Values under sensitive keys are replaced wholesale; other string
        values go through sanitize_string.

        Returns:
            Sanitized copy
        """
        if max_depth <= 0:
            logger.warning("Max recursion depth reached in sanitize_dict")
            return data

        result = deepcopy(data)

        def _sanitize_value(value: Any, key: Optional[str] = None) -> Any:
            if key and value and any(k in key.lower() for k in SENSITIVE_KEYS):
                return "[REDACTED]"
            if isinstance(value, str):
                return self.sanitize_string(value)
            if isinstance(value, dict):
                return self.sanitize_dict(value, max_depth - 1)
            if isinstance(value, list):
                return [_sanitize_value(item) for item in value]
            return value

        for key, value in result.items():
            result[key] = _sanitize_value(value, str(key))

        return result

    def sanitize_log_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """
        Sanitize a log record in place.

        Args:
            record: Log record to sanitize

        Returns:
            The same record, sanitized
        """
        if hasattr(record, 'msg'):
            record.msg = self.sanitize_string(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = self.sanitize_dict(record.args)
            else:
                record.args = tuple(
                    self.sanitize_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        for key in SENSITIVE_KEYS:
            if getattr(record, key, None):
                setattr(record, key, "[REDACTED]")

        return record


_default_sanitizer = DataSanitizer()


def get_sanitizer() -> DataSanitizer:
    """Return the process-wide sanitizer shared by log handlers."""
    return _default_sanitizer


def sanitize_string(text: str) -> str:
    """Sanitize a string using the shared sanitizer."""
    return _default_sanitizer.sanitize_string(text)


def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize a dictionary using the shared sanitizer."""
    return _default_sanitizer.sanitize_dict(data)
