"""Dependency model, version resolution and the update pipeline.

This package contains:
- descriptor: Folding records into per-dependency descriptors
- resolver: Choosing the best version from a tag stream
- pipeline: Resolving all dependencies and rewriting the versions file
"""

from ghdepup.deps.descriptor import (
    DepField,
    DependencyDescriptor,
    build_descriptors,
    split_key,
)
from ghdepup.deps.pipeline import (
    RunResult,
    TagSource,
    collect_descriptors,
    prior_versions,
    run,
    update_versions_file,
    write_atomically,
)
from ghdepup.deps.resolver import (
    Resolution,
    VersionFold,
    VersionRequirement,
    parse_tag,
    resolve,
    resolve_async,
)

__all__ = [
    # Descriptor
    "DepField",
    "DependencyDescriptor",
    "build_descriptors",
    "split_key",
    # Resolver
    "Resolution",
    "VersionFold",
    "VersionRequirement",
    "parse_tag",
    "resolve",
    "resolve_async",
    # Pipeline
    "RunResult",
    "TagSource",
    "collect_descriptors",
    "prior_versions",
    "run",
    "update_versions_file",
    "write_atomically",
]
