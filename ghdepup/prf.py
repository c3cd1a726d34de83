"""Polyglot Record Format (PRF) codec.

Declaration and versions files consist of lines of the form

    KEY="VALUE"

that must mean the same thing to a POSIX shell (`. ./ghversions.toml`), an
INI parser, GNU make (`include ghversions.toml`) and a TOML parser. Rather
than validating against each grammar, this module implements the single
grammar they all agree on:

- keys match ``[A-Z][A-Z0-9_]*``
- values are always double-quoted and never span lines
- inside a value, only ``\\"`` and ``\\\\`` escapes are allowed
- ``$ ` # ; ! %`` and control characters never appear in a value
- ``#`` starts a comment only in column 0; blank lines are ignored

Anything else is rejected with a FormatError naming the file, line and key.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ghdepup.utils.errors import FileReadError, FormatError

KEY_PATTERN = re.compile(r"[A-Z][A-Z0-9_]*")
RECORD_PATTERN = re.compile(r'([A-Z][A-Z0-9_]*)="((?:[^"\\]|\\.)*)"')
_KEY_PREFIX_PATTERN = re.compile(r"([A-Z][A-Z0-9_]*)=")

COMMENT_LEADER = "#"

# Expansion in shell and make, comment leaders in make and INI,
# history expansion in interactive shells, configparser interpolation
UNSAFE_CHARACTERS = frozenset("$`#;!%")

_ESCAPES = {'"': '"', "\\": "\\"}


@dataclass(frozen=True)
class Record:
    """A single KEY="VALUE" line.

    Attributes:
        key: Record key
        value: Unescaped value
        line: 1-based line number in the source text (not part of equality)
    """

    key: str
    value: str
    line: int | None = field(default=None, compare=False)


def _check_character(char: str) -> str | None:
    """Return why char cannot appear in a value, or None if it can."""
    if char in UNSAFE_CHARACTERS:
        return f"character {char!r} is not allowed in values"
    if ord(char) < 0x20 or ord(char) == 0x7F:
        return f"control character {char!r} is not allowed in values"
    return None


def unescape_value(
    raw: str,
    *,
    source: str = "<string>",
    line: int | None = None,
    key: str | None = None,
) -> str:
    """Decode the text between the quotes of a record.

    Args:
        raw: Escaped value as it appears in the file
        source: File name for error messages
        line: Line number for error messages
        key: Record key for error messages

    Returns:
        The unescaped value

    Raises:
        FormatError: If the value uses an unsupported escape or character
    """
    chars: list[str] = []
    position = 0
    while position < len(raw):
        char = raw[position]
        if char == "\\":
            escaped = raw[position + 1 : position + 2]
            if escaped not in _ESCAPES:
                raise FormatError(
                    f"unsupported escape sequence '\\{escaped}'",
                    source=source,
                    line=line,
                    key=key,
                )
            chars.append(_ESCAPES[escaped])
            position += 2
            continue
        problem = _check_character(char)
        if problem:
            raise FormatError(problem, source=source, line=line, key=key)
        chars.append(char)
        position += 1
    return "".join(chars)


def escape_value(value: str, *, key: str | None = None) -> str:
    """Encode a value for use between double quotes.

    The encoding is deterministic: the same value always produces the
    same text.

    Raises:
        FormatError: If the value holds a character outside the shared charset
    """
    for char in value:
        problem = _check_character(char)
        if problem:
            raise FormatError(problem, source="<serialize>", key=key)
    # Escape backslashes first, then quotes
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _describe_bad_line(line: str) -> tuple[str, str | None]:
    """Explain why a non-blank, non-comment line failed to match."""
    key_match = _KEY_PREFIX_PATTERN.match(line)
    key = key_match.group(1) if key_match else None
    if line.endswith("\r"):
        return "carriage return at end of line (use LF line endings)", key
    if line[:1].isspace():
        if line.lstrip().startswith(COMMENT_LEADER):
            return "comments must start in column 0", None
        return "leading whitespace is not allowed", key
    if key_match is None:
        return 'expected KEY="VALUE" with an upper-case key', None
    if not line[key_match.end() :].startswith('"'):
        return "value must be enclosed in double quotes", key
    return "value must be a single double-quoted string with nothing after it", key


def parse(text: str, source: str = "<string>") -> list[Record]:
    """Parse PRF text into records.

    Duplicate keys are allowed; the returned list holds one record per key,
    positioned where the key first appeared and carrying the value of its
    last occurrence.

    Args:
        text: File contents
        source: Name used in error messages

    Returns:
        Records in order of first appearance

    Raises:
        FormatError: On the first line that violates the grammar
    """
    records: dict[str, Record] = {}
    for number, line in enumerate(text.split("\n"), start=1):
        # Only ASCII blanks; make and sh choke on other whitespace
        if not line.strip(" \t"):
            continue
        if line.startswith(COMMENT_LEADER):
            if line.endswith("\\"):
                raise FormatError(
                    "comment ends with a backslash (make would continue it onto the next line)",
                    source=source,
                    line=number,
                )
            continue
        match = RECORD_PATTERN.fullmatch(line)
        if match is None:
            reason, key = _describe_bad_line(line)
            raise FormatError(reason, source=source, line=number, key=key)
        key, raw = match.groups()
        value = unescape_value(raw, source=source, line=number, key=key)
        records[key] = Record(key, value, line=number)
    return list(records.values())


def _format_comment(text: str) -> str:
    # A trailing backslash would continue the comment onto the record in make
    flattened = " ".join(text.splitlines()).rstrip("\\").rstrip()
    return f"{COMMENT_LEADER} {flattened}".rstrip() + "\n"


def serialize(
    records: Iterable[Record],
    comments: Mapping[str, Sequence[str]] | None = None,
) -> str:
    """Serialize records to PRF text.

    Records are written in the order given, one per line, each terminated by
    a single newline. Callers that need a stable order across runs sort the
    records before calling.

    Args:
        records: Records to write
        comments: Optional comment lines to emit directly above a key's record

    Returns:
        PRF text ("" for no records)

    Raises:
        FormatError: If a key or value cannot be represented
    """
    lines: list[str] = []
    for record in records:
        if not KEY_PATTERN.fullmatch(record.key):
            raise FormatError(
                "key must match [A-Z][A-Z0-9_]*", source="<serialize>", key=record.key
            )
        for comment in (comments or {}).get(record.key, ()):
            lines.append(_format_comment(comment))
        lines.append(f'{record.key}="{escape_value(record.value, key=record.key)}"\n')
    return "".join(lines)


def read_text(path: Path) -> str:
    """Read a record file as UTF-8 text.

    Raises:
        FileReadError: If the file cannot be read
        FormatError: If the file is not valid UTF-8
    """
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileReadError(str(path), e.strerror or str(e)) from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FormatError(f"file is not valid UTF-8 ({e.reason})", source=str(path)) from e


def read_records(path: Path) -> list[Record]:
    """Read and parse a record file."""
    return parse(read_text(path), source=str(path))


__all__ = [
    "COMMENT_LEADER",
    "KEY_PATTERN",
    "RECORD_PATTERN",
    "UNSAFE_CHARACTERS",
    "Record",
    "escape_value",
    "parse",
    "read_records",
    "read_text",
    "serialize",
    "unescape_value",
]
