"""Utility modules for GHDEPUP.

This package contains:
- console: Rich-based terminal output utilities
- env_utils: Sensitive configuration key detection
- errors: Custom exceptions and exit codes
- logging: Logging configuration
- retry: Backoff and Retry-After delay calculation
"""

from ghdepup.utils.console import (
    console,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from ghdepup.utils.env_utils import SENSITIVE_KEY_PATTERNS, is_sensitive_key, redact
from ghdepup.utils.errors import (
    ConstraintParseError,
    ExitCode,
    FileReadError,
    FileWriteError,
    FormatError,
    GhdepupError,
    IncompleteDescriptorError,
    UnknownFieldError,
    VersionsFileMissingError,
)
from ghdepup.utils.logging import log_message, log_request, setup_logging

__all__ = [
    # Console
    "console",
    "print_error",
    "print_success",
    "print_warning",
    "print_info",
    "print_header",
    # Env Utils
    "SENSITIVE_KEY_PATTERNS",
    "is_sensitive_key",
    "redact",
    # Errors
    "ExitCode",
    "GhdepupError",
    "FormatError",
    "UnknownFieldError",
    "IncompleteDescriptorError",
    "ConstraintParseError",
    "VersionsFileMissingError",
    "FileReadError",
    "FileWriteError",
    # Logging
    "setup_logging",
    "log_message",
    "log_request",
]
