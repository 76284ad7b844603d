"""
Unit tests for data sanitization.
"""

import logging
import re

import pytest

from acetester.security.sanitizer import (
    DataSanitizer,
    RedactionMethod,
    SensitiveDataPattern,
    get_sanitizer,
    sanitize_dict,
    sanitize_string,
)


class TestSensitiveDataPattern:
    """Test sensitive data pattern matching."""

    def test_pattern_matching(self):
        pattern = SensitiveDataPattern(
            name="order_number",
            pattern=re.compile(r'\bORD-\d{6}\b')
        )

        matches = pattern.matches("Orders ORD-123456 and ORD-654321 shipped.")

        assert [m.group() for m in matches] == ["ORD-123456", "ORD-654321"]

    def test_disabled_pattern(self):
        pattern = SensitiveDataPattern(
            name="test",
            pattern=re.compile(r'test'),
            enabled=False
        )

        assert pattern.matches("This is a test") == []


class TestDataSanitizer:
    """Test data sanitizer functionality."""

    def test_default_patterns(self):
        sanitizer = DataSanitizer()
        names = {p.name for p in sanitizer.patterns}
        assert {"openai_key", "bearer_token", "password_field", "jwt_token"} <= names

    def test_sanitize_openai_key(self):
        sanitizer = DataSanitizer()
        key = "sk-abcdefghijklmnopqrstuvwx"

        result = sanitizer.sanitize_string(f"Using key {key}")

        assert key not in result
        assert "sk-" in result

    def test_sanitize_bearer_token(self):
        sanitizer = DataSanitizer()
        result = sanitizer.sanitize_string("Authorization: Bearer abc.def.ghi")
        assert "abc.def.ghi" not in result
        assert "Bearer [REDACTED]" in result

    def test_sanitize_inline_password(self):
        sanitizer = DataSanitizer()
        result = sanitizer.sanitize_string("login with password=hunter22 now")
        assert "hunter22" not in result
        assert "password=[PASSWORD]" in result

    def test_registered_secret_is_redacted(self):
        sanitizer = DataSanitizer()
        sanitizer.register_secret("correct-horse")

        result = sanitizer.sanitize_string("Filled #password with correct-horse")

        assert result == "Filled #password with [SECRET]"

    def test_forget_secret(self):
        sanitizer = DataSanitizer()
        sanitizer.register_secret("correct-horse")
        sanitizer.forget_secret("correct-horse")

        assert sanitizer.sanitize_string("correct-horse") == "correct-horse"

    def test_shared_secret_stays_redacted_until_last_forget(self):
        sanitizer = DataSanitizer()
        sanitizer.register_secret("correct-horse")
        sanitizer.register_secret("correct-horse")

        sanitizer.forget_secret("correct-horse")
        assert sanitizer.sanitize_string("correct-horse") == "[SECRET]"

        sanitizer.forget_secret("correct-horse")
        assert sanitizer.sanitize_string("correct-horse") == "correct-horse"

    def test_forget_unknown_secret_is_noop(self):
        sanitizer = DataSanitizer()
        sanitizer.forget_secret("never-registered")
        sanitizer.register_secret("correct-horse")

        assert sanitizer.sanitize_string("correct-horse") == "[SECRET]"

    def test_short_secrets_are_ignored(self):
        sanitizer = DataSanitizer()
        sanitizer.register_secret("ab")
        assert sanitizer.sanitize_string("tab") == "tab"

    def test_mask_redaction(self):
        sanitizer = DataSanitizer()
        sanitizer.add_pattern(SensitiveDataPattern(
            name="pin",
            pattern=re.compile(r'PIN \d{4}'),
            redaction_method=RedactionMethod.MASK,
        ))

        assert sanitizer.sanitize_string("PIN 1234") == "********"

    def test_sanitize_dict(self):
        sanitizer = DataSanitizer()
        data = {
            "username": "demo",
            "password": "hunter22",
            "nested": {"api_key": "abc", "note": "password=hunter22"},
            "items": ["Bearer token123"],
        }

        result = sanitizer.sanitize_dict(data)

        assert result["username"] == "demo"
        assert result["password"] == "[REDACTED]"
        assert result["nested"]["api_key"] == "[REDACTED]"
        assert "hunter22" not in result["nested"]["note"]
        assert result["items"] == ["Bearer [REDACTED]"]
        assert data["password"] == "hunter22"

    def test_sanitize_log_record(self):
        sanitizer = DataSanitizer()
        sanitizer.register_secret("hunter22")
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="Filling %s with %s", args=("#password", "hunter22"), exc_info=None,
        )
        record.password = "hunter22"

        sanitizer.sanitize_log_record(record)

        assert "hunter22" not in record.getMessage()
        assert record.password == "[REDACTED]"


class TestModuleHelpers:
    """Test module-level convenience functions."""

    def test_shared_sanitizer(self):
        assert get_sanitizer() is get_sanitizer()

    def test_helpers_use_shared_sanitizer(self):
        sanitizer = get_sanitizer()
        sanitizer.register_secret("shared-secret")
        try:
            assert sanitize_string("x shared-secret") == "x [SECRET]"
            assert sanitize_dict({"note": "shared-secret"}) == {"note": "[SECRET]"}
        finally:
            sanitizer.forget_secret("shared-secret")
