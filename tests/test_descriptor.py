"""Tests for ghdepup.deps.descriptor module."""

import pytest

from ghdepup import prf
from ghdepup.deps.descriptor import (
    DepField,
    DependencyDescriptor,
    build_descriptors,
    split_key,
)
from ghdepup.prf import Record
from ghdepup.utils.errors import (
    ConstraintParseError,
    ExitCode,
    IncompleteDescriptorError,
    UnknownFieldError,
)


class TestSplitKey:
    """Tests for split_key()."""

    @pytest.mark.parametrize(
        "key,name,dep_field",
        [
            ("HYPER_GH_PROJECT", "HYPER", DepField.PROJECT),
            ("HYPER_GH_TAG_PREFIX", "HYPER", DepField.TAG_PREFIX),
            ("HYPER_GH_VERSION_REQ", "HYPER", DepField.VERSION_REQ),
            ("HYPER_GH_VERSION", "HYPER", DepField.VERSION),
            ("TOKIO_UTIL_GH_VERSION", "TOKIO_UTIL", DepField.VERSION),
            ("A_GH_PROJECT_GH_PROJECT", "A_GH_PROJECT", DepField.PROJECT),
        ],
    )
    def test_known_suffixes(self, key, name, dep_field):
        """Name is everything before the suffix."""
        assert split_key(key) == (name, dep_field)

    def test_version_req_not_mistaken_for_version(self):
        """The longer _GH_VERSION_REQ suffix wins over _GH_VERSION."""
        assert split_key("X_GH_VERSION_REQ")[1] is DepField.VERSION_REQ

    @pytest.mark.parametrize("key", ["HYPER_PROJECT", "HYPER_GH_URL", "_GH_PROJECT", "PATH"])
    def test_unknown_suffix(self, key):
        """Keys without a known suffix, or with an empty name, are rejected."""
        with pytest.raises(UnknownFieldError) as exc_info:
            split_key(key)

        assert exc_info.value.key == key
        assert exc_info.value.exit_code == ExitCode.DECLARATION_ERROR


class TestBuildDescriptors:
    """Tests for build_descriptors()."""

    def test_builds_full_descriptor(self, hyper_declaration):
        """All four fields are read."""
        records = prf.parse(hyper_declaration + 'HYPER_GH_VERSION="0.14.20"\n')

        descriptors = build_descriptors([records])

        assert descriptors == {
            "HYPER": DependencyDescriptor(
                name="HYPER",
                project="hyperium/hyper",
                tag_prefix="v",
                version_req=">=0.14, <1",
                current_version="0.14.20",
            )
        }

    def test_optional_fields_default(self):
        """Only the project is required."""
        descriptors = build_descriptors([[Record("X_GH_PROJECT", "o/r")]])

        assert descriptors["X"] == DependencyDescriptor(name="X", project="o/r")

    def test_empty_values_are_absent(self):
        """Empty optional values mean "not set"."""
        records = [
            Record("X_GH_PROJECT", "o/r"),
            Record("X_GH_TAG_PREFIX", ""),
            Record("X_GH_VERSION_REQ", ""),
            Record("X_GH_VERSION", ""),
        ]

        descriptor = build_descriptors([records])["X"]

        assert descriptor.tag_prefix == ""
        assert descriptor.version_req is None
        assert descriptor.current_version is None

    def test_sorted_by_name(self):
        """The mapping iterates in name order regardless of input order."""
        records = [Record("ZED_GH_PROJECT", "a/z"), Record("ALPHA_GH_PROJECT", "a/a")]

        assert list(build_descriptors([records])) == ["ALPHA", "ZED"]

    def test_later_file_overrides_field_by_field(self):
        """Merge precedence: the file listed later wins, per field."""
        first = prf.parse(
            'HYPER_GH_PROJECT="hyperium/hyper"\n'
            'HYPER_GH_TAG_PREFIX="v"\n'
            'HYPER_GH_VERSION_REQ=">=0.13"\n'
        )
        second = prf.parse('HYPER_GH_VERSION_REQ=">=0.14, <1"\n')

        descriptor = build_descriptors([first, second])["HYPER"]

        assert descriptor.version_req == ">=0.14, <1"
        assert descriptor.tag_prefix == "v"
        assert descriptor.project == "hyperium/hyper"

    def test_fields_may_come_from_different_files(self):
        """A descriptor can be assembled from pieces in several files."""
        first = [Record("X_GH_TAG_PREFIX", "release-")]
        second = [Record("X_GH_PROJECT", "o/r")]

        descriptor = build_descriptors([first, second])["X"]

        assert descriptor == DependencyDescriptor(name="X", project="o/r", tag_prefix="release-")

    def test_missing_project_is_fatal(self):
        """A name with only a tag prefix fails naming the missing field."""
        with pytest.raises(IncompleteDescriptorError) as exc_info:
            build_descriptors([[Record("HYPER_GH_TAG_PREFIX", "v")]])

        error = exc_info.value
        assert error.name == "HYPER"
        assert error.field == "_GH_PROJECT"
        assert "HYPER_GH_PROJECT" in str(error)
        assert error.exit_code == ExitCode.DECLARATION_ERROR

    def test_empty_project_is_missing(self):
        """An empty project value does not satisfy the requirement."""
        with pytest.raises(IncompleteDescriptorError):
            build_descriptors([[Record("X_GH_PROJECT", "")]])

    @pytest.mark.parametrize(
        "project",
        ["hyper", "a/b/c", "/repo", "owner/", "own er/repo", "../..", "owner/..", "./repo"],
    )
    def test_malformed_project_slug(self, project):
        """Project must be a two-segment owner/repo slug."""
        with pytest.raises(IncompleteDescriptorError, match="slug"):
            build_descriptors([[Record("X_GH_PROJECT", project)]])

    @pytest.mark.parametrize("project", ["socketio/socket.io", "o/.github", "my-org/repo_2"])
    def test_dotted_project_slug(self, project):
        """Dots are fine as long as a segment is not only dots."""
        descriptor = build_descriptors([[Record("X_GH_PROJECT", project)]])["X"]

        assert descriptor.project == project

    def test_invalid_requirement_fails_at_build_time(self):
        """Bad version requirements surface before anything is fetched."""
        records = [Record("X_GH_PROJECT", "o/r"), Record("X_GH_VERSION_REQ", ">=banana")]

        with pytest.raises(ConstraintParseError) as exc_info:
            build_descriptors([records])

        assert exc_info.value.name == "X"

    def test_unknown_field(self):
        """Records with unknown suffixes abort the build."""
        with pytest.raises(UnknownFieldError):
            build_descriptors([[Record("X_GH_PROJECT", "o/r"), Record("X_GH_URL", "u")]])

    def test_no_records(self):
        """No records give no descriptors."""
        assert build_descriptors([]) == {}


class TestToRecords:
    """Tests for DependencyDescriptor.to_records()."""

    def test_renders_set_fields_only(self):
        """Absent fields are omitted."""
        descriptor = DependencyDescriptor(name="X", project="o/r", version_req="^1")

        assert descriptor.to_records() == [
            Record("X_GH_PROJECT", "o/r"),
            Record("X_GH_VERSION_REQ", "^1"),
        ]

    def test_round_trips_through_build(self, hyper_declaration):
        """Records rendered from a descriptor build the same descriptor."""
        descriptor = build_descriptors([prf.parse(hyper_declaration)])["HYPER"]

        assert build_descriptors([descriptor.to_records()])["HYPER"] == descriptor
