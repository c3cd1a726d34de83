"""Version resolution from tag names.

Turns a stream of raw tag names into the single best semantic version for a
dependency:

1. Tags not starting with the dependency's tag prefix are discarded.
2. The remainder is parsed as a semantic version; unparseable tags are noise.
3. Versions are filtered by the version requirement.
4. The maximum surviving version wins; the first of several identical
   versions is kept.

Requirements use the Cargo comparator syntax (`>=0.14, <1`, `^1.2`, `~1.2.3`,
`1.*`). Each comparator is expanded into plain bounds and handed to
semantic_version's SimpleSpec. Pre-release versions are only selected when a
comparator names a pre-release of the same major.minor.patch.

The fold keeps one candidate at a time, so arbitrarily long tag histories are
consumed page by page without being buffered.
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from semantic_version import SimpleSpec, Version  # type: ignore[import-untyped]

from ghdepup.utils.errors import ConstraintParseError

if TYPE_CHECKING:
    from ghdepup.deps.descriptor import DependencyDescriptor

_NUMBER = r"\*|0|[1-9][0-9]*"
_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

COMPARATOR_PATTERN = re.compile(
    rf"""
    (?P<op>==|=|>=|>|<=|<|~|\^)?\s*
    (?P<major>{_NUMBER})
    (?:\.(?P<minor>{_NUMBER})
        (?:\.(?P<patch>{_NUMBER})
            (?:-(?P<pre>{_IDENTIFIERS}))?
            (?:\+(?P<build>{_IDENTIFIERS}))?
        )?
    )?
    """,
    re.VERBOSE,
)

WILDCARD = "*"


@dataclass(frozen=True)
class Comparator:
    """One comparator of a requirement, with unset parts as None.

    Attributes:
        op: Operator ("" for a bare version)
        major: Major version, None for a "*" wildcard
        minor: Minor version, None if omitted or wildcard
        patch: Patch version, None if omitted or wildcard
        pre: Pre-release identifiers, if any
    """

    op: str
    major: int | None
    minor: int | None = None
    patch: int | None = None
    pre: str | None = None

    def _full(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        return f"{text}-{self.pre}" if self.pre else text

    def bounds(self) -> list[str]:
        """Expand into SimpleSpec clauses over full versions."""
        major, minor, patch = self.major, self.minor, self.patch
        if major is None:
            return []
        op = self.op
        if op in ("=", "=="):
            if patch is not None:
                return [f"=={self._full()}"]
            if minor is not None:
                return [f">={major}.{minor}.0", f"<{major}.{minor + 1}.0"]
            return [f">={major}.0.0", f"<{major + 1}.0.0"]
        if op == ">":
            if patch is not None:
                return [f">{self._full()}"]
            if minor is not None:
                return [f">={major}.{minor + 1}.0"]
            return [f">={major + 1}.0.0"]
        if op == ">=":
            if patch is not None:
                return [f">={self._full()}"]
            return [f">={major}.{minor or 0}.0"]
        if op == "<":
            if patch is not None:
                return [f"<{self._full()}"]
            return [f"<{major}.{minor or 0}.0"]
        if op == "<=":
            if patch is not None:
                return [f"<={self._full()}"]
            if minor is not None:
                return [f"<{major}.{minor + 1}.0"]
            return [f"<{major + 1}.0.0"]
        if op == "~":
            if patch is not None:
                return [f">={self._full()}", f"<{major}.{(minor or 0) + 1}.0"]
            return Comparator("=", major, minor).bounds()
        # Caret, also the meaning of a bare version
        if patch is not None:
            lower = f">={self._full()}"
            if major > 0:
                return [lower, f"<{major + 1}.0.0"]
            if minor:
                return [lower, f"<0.{minor + 1}.0"]
            return [lower, f"<0.0.{patch + 1}"]
        if minor is not None:
            if major > 0:
                return [f">={major}.{minor}.0", f"<{major + 1}.0.0"]
            return [f">=0.{minor}.0", f"<0.{minor + 1}.0"]
        return [f">={major}.0.0", f"<{major + 1}.0.0"]

    def admits_prerelease_of(self, version: Version) -> bool:
        """True if this comparator names a pre-release on version's core."""
        return (
            self.pre is not None
            and (self.major, self.minor, self.patch)
            == (version.major, version.minor, version.patch)
        )


def _parse_comparator(text: str, expression: str, name: str | None) -> Comparator:
    match = COMPARATOR_PATTERN.fullmatch(text)
    if match is None:
        raise ConstraintParseError(expression, f"cannot parse comparator {text!r}", name=name)
    op = match.group("op") or ""
    parts = [match.group("major"), match.group("minor"), match.group("patch")]

    numbers: list[int | None] = []
    wildcard_seen = False
    for part in parts:
        if part is None or part == WILDCARD:
            wildcard_seen = wildcard_seen or part == WILDCARD
            numbers.append(None)
            continue
        if wildcard_seen:
            raise ConstraintParseError(
                expression, f"version parts after a wildcard in {text!r}", name=name
            )
        numbers.append(int(part))

    if wildcard_seen and op not in ("", "=", "=="):
        raise ConstraintParseError(
            expression, f"wildcard cannot follow {op!r} in {text!r}", name=name
        )
    if match.group("pre") and numbers[2] is None:
        raise ConstraintParseError(
            expression, f"pre-release needs a full version in {text!r}", name=name
        )
    if wildcard_seen:
        op = "="
    return Comparator(op, numbers[0], numbers[1], numbers[2], match.group("pre"))


class VersionRequirement:
    """A conjunction of comparators, e.g. ``>=0.14, <1``.

    An empty expression accepts every stable version.
    """

    def __init__(self, expression: str, comparators: tuple[Comparator, ...]) -> None:
        self.expression = expression
        self.comparators = comparators
        clauses = [clause for c in comparators for clause in c.bounds()]
        self._spec: SimpleSpec | None = SimpleSpec(",".join(clauses)) if clauses else None

    @classmethod
    def parse(cls, expression: str | None, name: str | None = None) -> VersionRequirement:
        """Parse a requirement expression.

        Args:
            expression: Comma-separated comparators (None or "" for any)
            name: Dependency name for error messages

        Raises:
            ConstraintParseError: If any comparator is malformed
        """
        text = (expression or "").strip()
        if not text:
            return cls("", ())
        comparators = tuple(
            _parse_comparator(part.strip(), text, name) for part in text.split(",")
        )
        try:
            return cls(text, comparators)
        except ValueError as e:
            raise ConstraintParseError(text, str(e), name=name) from e

    def matches(self, version: Version) -> bool:
        """Check whether version satisfies every comparator."""
        if version.prerelease and not any(
            c.admits_prerelease_of(version) for c in self.comparators
        ):
            return False
        if self._spec is None:
            return True
        result: bool = self._spec.match(version)
        return result

    def __str__(self) -> str:
        return self.expression

    def __repr__(self) -> str:
        return f"VersionRequirement({self.expression!r})"


def parse_tag(tag: str, prefix: str = "") -> Version | None:
    """Strip prefix from tag and parse the rest as a semantic version.

    Returns:
        The version, or None if the tag does not start with prefix or the
        remainder is not a full semantic version
    """
    if not tag.startswith(prefix):
        return None
    try:
        return Version(tag[len(prefix) :])
    except ValueError:
        return None


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one dependency.

    Attributes:
        name: Dependency name
        version: Selected version, or the retained previous one when unresolved
        previous: Version recorded before this run (None on first run)
        resolved: False when no tag satisfied the requirement
        tag: Tag the selected version came from
        tags_seen: Number of tag names consumed
        candidates: Number of tags that survived prefix, parse and filter
    """

    name: str
    version: str | None
    previous: str | None
    resolved: bool
    tag: str | None = None
    tags_seen: int = 0
    candidates: int = 0

    @property
    def changed(self) -> bool:
        return self.version != self.previous


class VersionFold:
    """Running maximum over a tag stream."""

    def __init__(self, tag_prefix: str = "", requirement: VersionRequirement | None = None) -> None:
        self.tag_prefix = tag_prefix
        self.requirement = requirement or VersionRequirement("", ())
        self.best: Version | None = None
        self.best_tag: str | None = None
        self.tags_seen = 0
        self.candidates = 0

    @classmethod
    def for_descriptor(cls, descriptor: DependencyDescriptor) -> VersionFold:
        requirement = VersionRequirement.parse(descriptor.version_req, name=descriptor.name)
        return cls(descriptor.tag_prefix, requirement)

    def offer(self, tag: str) -> None:
        """Consider one tag name."""
        self.tags_seen += 1
        version = parse_tag(tag, self.tag_prefix)
        if version is None or not self.requirement.matches(version):
            return
        self.candidates += 1
        # Strictly greater: the first of equal versions stays
        if self.best is None or version > self.best:
            self.best = version
            self.best_tag = tag

    def result(self, descriptor: DependencyDescriptor) -> Resolution:
        previous = descriptor.current_version
        if self.best is None:
            return Resolution(
                name=descriptor.name,
                version=previous,
                previous=previous,
                resolved=False,
                tags_seen=self.tags_seen,
            )
        return Resolution(
            name=descriptor.name,
            version=str(self.best),
            previous=previous,
            resolved=True,
            tag=self.best_tag,
            tags_seen=self.tags_seen,
            candidates=self.candidates,
        )


def resolve(descriptor: DependencyDescriptor, tags: Iterable[str]) -> Resolution:
    """Resolve descriptor against a (possibly lazy) sequence of tag names."""
    fold = VersionFold.for_descriptor(descriptor)
    for tag in tags:
        fold.offer(tag)
    return fold.result(descriptor)


async def resolve_async(
    descriptor: DependencyDescriptor, tags: AsyncIterable[str]
) -> Resolution:
    """Resolve descriptor against an asynchronous tag stream."""
    fold = VersionFold.for_descriptor(descriptor)
    async for tag in tags:
        fold.offer(tag)
    return fold.result(descriptor)


__all__ = [
    "COMPARATOR_PATTERN",
    "Comparator",
    "Resolution",
    "VersionFold",
    "VersionRequirement",
    "parse_tag",
    "resolve",
    "resolve_async",
]
