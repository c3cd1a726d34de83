"""Custom exceptions and exit codes for GHDEPUP.

This module defines the exit codes and exception hierarchy used throughout
the application. Every error that aborts a run derives from GhdepupError and
carries the exit code the CLI terminates with; the versions file is never
touched once one of them has been raised.
"""

from enum import IntEnum
from typing import ClassVar


class ExitCode(IntEnum):
    """Process exit codes.

    These codes are used for consistent error reporting and can be
    checked by calling scripts or CI systems.
    """

    SUCCESS = 0
    GENERAL_ERROR = 1
    FORMAT_ERROR = 2  # Malformed record file
    DECLARATION_ERROR = 3  # Unknown field, missing project, bad requirement
    FETCH_ERROR = 4
    AUTH_ERROR = 5
    USER_CANCELLED = 6


class GhdepupError(Exception):
    """Base exception for GHDEPUP errors.

    All custom exceptions in this application should inherit from this class.
    Each exception type has an associated exit code for proper error reporting.
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.GENERAL_ERROR

    def __init__(self, message: str, exit_code: ExitCode | None = None) -> None:
        """Initialize the exception."""
        super().__init__(message)
        self._exit_code = exit_code

    @property
    def exit_code(self) -> ExitCode:
        """Get the exit code for this exception."""
        if self._exit_code is not None:
            return self._exit_code
        return self.__class__._default_exit_code


class FormatError(GhdepupError):
    """A line violates the record grammar.

    Raised when:
    - A non-comment line is not exactly KEY="VALUE"
    - A value holds a character or escape outside the shared charset
    - A file is not valid UTF-8
    - A record handed to the serializer could not be parsed back

    Attributes:
        source: File name (or "<string>") the line came from
        line: 1-based line number, if known
        key: Record key, if it could be recognised
        reason: What is wrong with the line
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.FORMAT_ERROR

    def __init__(
        self,
        reason: str,
        *,
        source: str = "<string>",
        line: int | None = None,
        key: str | None = None,
    ) -> None:
        self.source = source
        self.line = line
        self.key = key
        self.reason = reason
        location = source if line is None else f"{source}:{line}"
        if key:
            message = f"{location}: {key}: {reason}"
        else:
            message = f"{location}: {reason}"
        super().__init__(message)


class UnknownFieldError(GhdepupError):
    """A record key does not end in one of the known dependency suffixes."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.DECLARATION_ERROR

    def __init__(self, key: str, known_suffixes: tuple[str, ...] = ()) -> None:
        self.key = key
        message = f"Unknown dependency field: {key}"
        if known_suffixes:
            message += f" (expected a key ending in one of {', '.join(known_suffixes)})"
        super().__init__(message)


class IncompleteDescriptorError(GhdepupError):
    """A dependency lacks a usable value for a required field.

    Attributes:
        name: Dependency name (the key prefix, e.g. "HYPER")
        field: Key suffix of the missing field (e.g. "_GH_PROJECT")
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.DECLARATION_ERROR

    def __init__(self, name: str, field: str, detail: str | None = None) -> None:
        self.name = name
        self.field = field
        message = f"Dependency {name} is missing {name}{field}"
        if detail:
            message = f"Dependency {name} has an unusable {name}{field}: {detail}"
        super().__init__(message)


class ConstraintParseError(GhdepupError):
    """A version requirement expression could not be parsed.

    Attributes:
        expression: The offending requirement string
        name: Dependency the requirement belongs to, if known
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.DECLARATION_ERROR

    def __init__(self, expression: str, reason: str, name: str | None = None) -> None:
        self.expression = expression
        self.name = name
        prefix = f"{name}: " if name else ""
        super().__init__(f"{prefix}invalid version requirement {expression!r}: {reason}")


class VersionsFileMissingError(GhdepupError):
    """The versions file must exist before a run (it is input and output)."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Versions file does not exist: {path}")


class FileReadError(GhdepupError):
    """A declaration or versions file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read {path}: {reason}")


class FileWriteError(GhdepupError):
    """The versions file could not be replaced (the old contents are kept)."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write {path}: {reason}")


__all__ = [
    "ExitCode",
    "GhdepupError",
    "FormatError",
    "UnknownFieldError",
    "IncompleteDescriptorError",
    "ConstraintParseError",
    "VersionsFileMissingError",
    "FileReadError",
    "FileWriteError",
]
