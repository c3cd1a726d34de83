"""Dependency descriptors built from records.

A dependency named HYPER is declared by up to four records:

    HYPER_GH_PROJECT="hyperium/hyper"
    HYPER_GH_TAG_PREFIX="v"
    HYPER_GH_VERSION_REQ=">=0.14, <1"
    HYPER_GH_VERSION="0.14.26"

The records may be spread over several files. Files are folded in order and
a later file overrides an earlier one field by field.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from ghdepup.deps.resolver import VersionRequirement
from ghdepup.prf import Record
from ghdepup.utils.errors import IncompleteDescriptorError, UnknownFieldError

logger = logging.getLogger(__name__)

# Segments made only of dots would walk the API path
PROJECT_SLUG_PATTERN = re.compile(r"(?!\.+/)[A-Za-z0-9_.-]+/(?!\.+$)[A-Za-z0-9_.-]+")


class DepField(Enum):
    """Dependency fields and their key suffixes."""

    PROJECT = "_GH_PROJECT"
    TAG_PREFIX = "_GH_TAG_PREFIX"
    VERSION_REQ = "_GH_VERSION_REQ"
    VERSION = "_GH_VERSION"

    @property
    def suffix(self) -> str:
        return self.value

    def key_for(self, name: str) -> str:
        """Build the record key of this field for dependency name."""
        return f"{name}{self.value}"


# Longest first, so that _GH_VERSION_REQ is never read as _GH_VERSION
_FIELDS_BY_SUFFIX_LENGTH = sorted(DepField, key=lambda f: len(f.suffix), reverse=True)
KNOWN_SUFFIXES = tuple(f.suffix for f in DepField)


def split_key(key: str) -> tuple[str, DepField]:
    """Split a record key into dependency name and field.

    Raises:
        UnknownFieldError: If the key has no known suffix or an empty name
    """
    for dep_field in _FIELDS_BY_SUFFIX_LENGTH:
        if key.endswith(dep_field.suffix) and len(key) > len(dep_field.suffix):
            return key[: -len(dep_field.suffix)], dep_field
    raise UnknownFieldError(key, KNOWN_SUFFIXES)


@dataclass(frozen=True)
class DependencyDescriptor:
    """Everything needed to resolve one dependency.

    Attributes:
        name: Upper-case key prefix shared by the dependency's records
        project: GitHub "owner/repo" slug
        tag_prefix: Prefix stripped from tag names before parsing ("" for none)
        version_req: Version requirement expression (None accepts any stable version)
        current_version: Version recorded by the previous run (None on first run)
    """

    name: str
    project: str
    tag_prefix: str = ""
    version_req: str | None = None
    current_version: str | None = None

    def to_records(self) -> list[Record]:
        """Render the descriptor as declaration records (absent fields omitted)."""
        records = [Record(DepField.PROJECT.key_for(self.name), self.project)]
        if self.tag_prefix:
            records.append(Record(DepField.TAG_PREFIX.key_for(self.name), self.tag_prefix))
        if self.version_req:
            records.append(Record(DepField.VERSION_REQ.key_for(self.name), self.version_req))
        if self.current_version:
            records.append(Record(DepField.VERSION.key_for(self.name), self.current_version))
        return records


def fold_fields(
    record_sets: Iterable[Sequence[Record]],
) -> dict[str, dict[DepField, str]]:
    """Fold records into field values per dependency name, last write wins.

    Empty values are kept here; build_descriptors treats them as absent.

    Raises:
        UnknownFieldError: On a key without a known suffix
    """
    fields: dict[str, dict[DepField, str]] = {}
    for records in record_sets:
        for record in records:
            name, dep_field = split_key(record.key)
            fields.setdefault(name, {})[dep_field] = record.value
    return fields


def build_descriptors(
    record_sets: Iterable[Sequence[Record]],
) -> dict[str, DependencyDescriptor]:
    """Build validated descriptors from ordered record sets (one per file).

    Args:
        record_sets: Parsed files, in command-line order

    Returns:
        Descriptors keyed by name, in sorted name order

    Raises:
        UnknownFieldError: On a key without a known suffix
        IncompleteDescriptorError: If a dependency has no usable project
        ConstraintParseError: If a version requirement is malformed
    """
    descriptors: dict[str, DependencyDescriptor] = {}
    for name, values in sorted(fold_fields(record_sets).items()):
        project = values.get(DepField.PROJECT, "")
        if not project:
            raise IncompleteDescriptorError(name, DepField.PROJECT.suffix)
        if not PROJECT_SLUG_PATTERN.fullmatch(project):
            raise IncompleteDescriptorError(
                name,
                DepField.PROJECT.suffix,
                detail=f"{project!r} is not an owner/repo slug",
            )
        descriptor = DependencyDescriptor(
            name=name,
            project=project,
            tag_prefix=values.get(DepField.TAG_PREFIX, ""),
            version_req=values.get(DepField.VERSION_REQ) or None,
            current_version=values.get(DepField.VERSION) or None,
        )
        # Fail on a bad requirement before anything is fetched
        VersionRequirement.parse(descriptor.version_req, name=name)
        descriptors[name] = descriptor

    logger.info("Built %d dependency descriptor(s)", len(descriptors))
    return descriptors


__all__ = [
    "DepField",
    "DependencyDescriptor",
    "KNOWN_SUFFIXES",
    "PROJECT_SLUG_PATTERN",
    "build_descriptors",
    "fold_fields",
    "split_key",
]
