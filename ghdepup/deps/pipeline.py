"""Merge and emit pipeline.

Reads declaration files and the versions file, resolves every dependency
against its tag source and renders the new versions file. The versions file
is rewritten only after every dependency has been resolved, and never when
any of them failed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Protocol

from ghdepup import prf
from ghdepup.deps.descriptor import DepField, DependencyDescriptor, build_descriptors, split_key
from ghdepup.deps.resolver import Resolution, resolve_async
from ghdepup.integrations.exceptions import FetchError, FetchErrorGroup
from ghdepup.prf import Record
from ghdepup.utils.errors import FileWriteError, UnknownFieldError, VersionsFileMissingError

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARALLEL = 4


class TagSource(Protocol):
    """Anything that can list the tag names of a project."""

    def list_tags(self, project: str) -> AsyncIterator[str]: ...


@dataclass(frozen=True)
class RunResult:
    """Outcome of one pipeline run.

    Attributes:
        text: Rendered versions file
        resolutions: Resolution per dependency, in name order
        preserved: Non-version records of the versions file, re-emitted as-is
        descriptors: Descriptors the run resolved, in name order
        written: True if the versions file was replaced
    """

    text: str
    resolutions: dict[str, Resolution]
    preserved: list[Record]
    descriptors: dict[str, DependencyDescriptor] = field(default_factory=dict)
    written: bool = False

    @property
    def unresolved(self) -> list[Resolution]:
        return [r for r in self.resolutions.values() if not r.resolved]


def collect_descriptors(
    declarations: Sequence[tuple[str, str]],
) -> dict[str, DependencyDescriptor]:
    """Parse declaration texts and fold them into descriptors.

    Args:
        declarations: (source, text) pairs in command-line order
    """
    record_sets = [prf.parse(text, source=source) for source, text in declarations]
    return build_descriptors(record_sets)


def prior_versions(records: Sequence[Record]) -> tuple[dict[str, str], list[Record]]:
    """Split versions file records into recorded versions and everything else.

    Returns:
        (version by dependency name, records preserved verbatim)
    """
    versions: dict[str, str] = {}
    preserved: list[Record] = []
    for record in records:
        try:
            name, dep_field = split_key(record.key)
        except UnknownFieldError:
            preserved.append(record)
            continue
        if dep_field is DepField.VERSION:
            versions[name] = record.value
        else:
            preserved.append(record)
    return versions, preserved


def _unresolved_comment(descriptor: DependencyDescriptor) -> str:
    reason = f"unresolved: no tag of {descriptor.project}"
    if descriptor.tag_prefix:
        reason += f" with prefix '{descriptor.tag_prefix}'"
    if descriptor.version_req:
        reason += f" matches '{descriptor.version_req}'"
    else:
        reason += " is a stable semantic version"
    return reason


def _log_resolution(descriptor: DependencyDescriptor, resolution: Resolution) -> None:
    logger.info(
        "%s: project=%s previous=%s tags=%d candidates=%d -> %s%s",
        descriptor.name,
        descriptor.project,
        resolution.previous,
        resolution.tags_seen,
        resolution.candidates,
        resolution.version,
        "" if resolution.resolved else " (unresolved)",
    )


async def run(
    declarations: Sequence[tuple[str, str]],
    prior_text: str,
    tag_source: TagSource,
    *,
    max_parallel: int = DEFAULT_MAX_PARALLEL,
    prior_source: str = "<versions>",
) -> RunResult:
    """Resolve every declared dependency and render the new versions file.

    Args:
        declarations: (source, text) pairs in command-line order
        prior_text: Current contents of the versions file
        tag_source: Lists tag names per project
        max_parallel: Maximum number of dependencies fetched at once
        prior_source: Name of the versions file for error messages

    Returns:
        The rendered file and the per-dependency resolutions

    Raises:
        FormatError, UnknownFieldError, IncompleteDescriptorError,
        ConstraintParseError: Before any fetch, on bad input
        FetchErrorGroup: If fetching failed for one or more dependencies
    """
    descriptors = collect_descriptors(declarations)
    versions, preserved = prior_versions(prf.parse(prior_text, source=prior_source))

    for orphan in sorted(set(versions) - set(descriptors)):
        logger.info(f"Dropping {orphan}{DepField.VERSION.suffix}: no such dependency declared")

    # The versions file is the state of record for the previous version
    descriptors = {
        name: replace(d, current_version=versions.get(name) or d.current_version)
        for name, d in descriptors.items()
    }

    semaphore = asyncio.Semaphore(max(1, max_parallel))

    async def resolve_one(descriptor: DependencyDescriptor) -> Resolution:
        async with semaphore:
            return await resolve_async(descriptor, tag_source.list_tags(descriptor.project))

    outcomes = await asyncio.gather(
        *(resolve_one(d) for d in descriptors.values()), return_exceptions=True
    )

    resolutions: dict[str, Resolution] = {}
    failures: dict[str, FetchError] = {}
    for descriptor, outcome in zip(descriptors.values(), outcomes, strict=True):
        if isinstance(outcome, FetchError):
            logger.info(f"{descriptor.name}: fetch failed: {outcome}")
            failures[descriptor.name] = outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            _log_resolution(descriptor, outcome)
            resolutions[descriptor.name] = outcome
    if failures:
        raise FetchErrorGroup(failures)

    records = list(preserved)
    comments: dict[str, list[str]] = {}
    for name, descriptor in descriptors.items():
        resolution = resolutions[name]
        key = DepField.VERSION.key_for(name)
        records.append(Record(key, resolution.version or ""))
        if not resolution.resolved:
            comments[key] = [_unresolved_comment(descriptor)]

    return RunResult(
        text=prf.serialize(records, comments),
        resolutions=resolutions,
        preserved=preserved,
        descriptors=descriptors,
    )


def write_atomically(path: Path, text: str) -> None:
    """Replace path with text so that readers see the old or new file, never half.

    The temp file lives in the target's directory so os.replace() stays
    on one filesystem. The original file mode is kept.

    Raises:
        OSError: If file operations fail (the original file is untouched)
    """
    fd, tmp_path = tempfile.mkstemp(
        suffix=".tmp",
        prefix=f".{path.name}.",
        dir=path.parent,
    )
    fd_closed = False
    success = False
    try:
        with os.fdopen(fd, "wb") as f:
            fd_closed = True  # os.fdopen takes ownership of fd
            f.write(text.encode("utf-8"))
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)
        os.replace(tmp_path, path)
        success = True
    finally:
        if not fd_closed:
            try:
                os.close(fd)
            except OSError:
                pass
        if not success:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


async def update_versions_file(
    declaration_paths: Sequence[Path],
    versions_path: Path,
    tag_source: TagSource,
    *,
    max_parallel: int = DEFAULT_MAX_PARALLEL,
    dry_run: bool = False,
) -> RunResult:
    """Run the pipeline over files and replace the versions file.

    Every file is read before the first fetch. The versions file is written
    only when the run succeeds, its contents changed and dry_run is False.

    Raises:
        VersionsFileMissingError: If versions_path does not exist
        FileWriteError: If the new file cannot be put in place
        GhdepupError: Any error raised by run(); nothing is written
    """
    if not versions_path.is_file():
        raise VersionsFileMissingError(str(versions_path))

    declarations = [(str(p), prf.read_text(p)) for p in declaration_paths]
    prior_text = prf.read_text(versions_path)

    result = await run(
        declarations,
        prior_text,
        tag_source,
        max_parallel=max_parallel,
        prior_source=str(versions_path),
    )

    if dry_run or result.text == prior_text:
        logger.info(f"Not writing {versions_path} (dry_run={dry_run})")
        return result

    try:
        write_atomically(versions_path, result.text)
    except OSError as e:
        raise FileWriteError(str(versions_path), e.strerror or str(e)) from e
    logger.info(f"Wrote {len(result.resolutions)} version(s) to {versions_path}")
    return replace(result, written=True)


__all__ = [
    "DEFAULT_MAX_PARALLEL",
    "RunResult",
    "TagSource",
    "collect_descriptors",
    "prior_versions",
    "run",
    "update_versions_file",
    "write_atomically",
]
