"""
Security module exports.
"""

from acetester.security.sanitizer import (
    DataSanitizer,
    RedactionMethod,
    SensitiveDataPattern,
    get_sanitizer,
    sanitize_dict,
    sanitize_string,
)

__all__ = [
    "DataSanitizer",
    "RedactionMethod",
    "SensitiveDataPattern",
    "get_sanitizer",
    "sanitize_dict",
    "sanitize_string",
]
