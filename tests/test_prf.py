"""Tests for ghdepup.prf module.

Tests cover:
- Accepted and rejected line shapes
- Escape subset and unsafe characters
- Duplicate key handling
- Serializer determinism and comment placement
- Round-trip laws
- Reading files
"""

import pytest

from ghdepup import prf
from ghdepup.prf import Record
from ghdepup.utils.errors import ExitCode, FileReadError, FormatError


class TestParse:
    """Tests for prf.parse()."""

    def test_parses_records_in_order(self):
        """Returns one record per line in file order."""
        text = 'A_GH_PROJECT="a/b"\nB_GH_PROJECT="c/d"\n'

        records = prf.parse(text)

        assert records == [Record("A_GH_PROJECT", "a/b"), Record("B_GH_PROJECT", "c/d")]

    def test_records_line_numbers(self):
        """Each record carries its 1-based source line."""
        records = prf.parse('# comment\n\nKEY="v"\n')

        assert records[0].line == 3

    def test_skips_blank_and_comment_lines(self):
        """Blank, whitespace-only and column-0 comment lines are ignored."""
        text = "\n   \n# a comment with $ and ; in it\nKEY=\"v\"\n#another\n"

        assert prf.parse(text) == [Record("KEY", "v")]

    def test_empty_text(self):
        """Empty text yields no records."""
        assert prf.parse("") == []

    def test_missing_final_newline_accepted(self):
        """The last record does not need a trailing newline."""
        assert prf.parse('KEY="v"') == [Record("KEY", "v")]

    def test_empty_value(self):
        """An empty quoted value is allowed."""
        assert prf.parse('KEY=""\n') == [Record("KEY", "")]

    def test_duplicate_keys_last_value_first_position(self):
        """A repeated key keeps its first position and its last value."""
        text = 'A="1"\nB="2"\nA="3"\n'

        assert prf.parse(text) == [Record("A", "3"), Record("B", "2")]

    def test_unescapes_quote_and_backslash(self):
        """Only \\" and \\\\ are decoded."""
        records = prf.parse(r'KEY="say \"hi\" C:\\dir"' + "\n")

        assert records[0].value == 'say "hi" C:\\dir'

    def test_utf8_values_allowed(self):
        """Non-ASCII printable characters are kept."""
        assert prf.parse('KEY="héllo ✓"')[0].value == "héllo ✓"

    @pytest.mark.parametrize(
        "line",
        [
            "KEY=value",
            "KEY='value'",
            'key="value"',
            '1KEY="value"',
            ' KEY="value"',
            'KEY="value" ',
            'KEY = "value"',
            'KEY="value"junk',
            'KEY="unterminated',
            'export KEY="value"',
            '  # indented comment',
        ],
    )
    def test_rejects_malformed_lines(self, line):
        """Lines outside the KEY="VALUE" shape raise FormatError."""
        with pytest.raises(FormatError):
            prf.parse(line + "\n")

    def test_rejects_carriage_return(self):
        """CRLF line endings are rejected with a specific reason."""
        with pytest.raises(FormatError, match="carriage return"):
            prf.parse('KEY="v"\r\n')

    def test_rejects_comment_ending_in_backslash(self):
        """make would swallow the next line into such a comment."""
        with pytest.raises(FormatError, match="backslash") as exc_info:
            prf.parse('# note \\\nA_GH_PROJECT="o/r"\n', source="deps.env")

        assert exc_info.value.line == 1

    def test_backslash_inside_comment_is_fine(self):
        """Only a trailing backslash continues a make comment."""
        records = prf.parse('# C:\\dir is the path\nA_GH_PROJECT="o/r"\n')

        assert records == [Record("A_GH_PROJECT", "o/r")]

    def test_ascii_blank_lines_skipped(self):
        """Lines of spaces and tabs count as blank."""
        assert prf.parse(' \t \n\nA_GH_PROJECT="o/r"\n') == [Record("A_GH_PROJECT", "o/r")]

    @pytest.mark.parametrize("blank", ["\u3000", "\xa0", "\x0b", "\x0c"])
    def test_rejects_other_whitespace_only_lines(self, blank):
        """Unicode and vertical whitespace lines are not blank to make or sh."""
        with pytest.raises(FormatError) as exc_info:
            prf.parse(f'{blank}\nA_GH_PROJECT="o/r"\n')

        assert exc_info.value.line == 1

    @pytest.mark.parametrize("char", ["$", "`", "#", ";", "!", "%", "\t", "\x7f"])
    def test_rejects_unsafe_characters(self, char):
        """Characters with meaning to one of the grammars are rejected."""
        with pytest.raises(FormatError) as exc_info:
            prf.parse(f'KEY="a{char}b"\n')

        assert exc_info.value.key == "KEY"

    @pytest.mark.parametrize("escape", [r"\n", r"\t", r"\$", r"\x"])
    def test_rejects_other_escapes(self, escape):
        """Escapes other than \\" and \\\\ are rejected."""
        with pytest.raises(FormatError, match="escape"):
            prf.parse(f'KEY="a{escape}b"\n')

    def test_error_names_source_line_and_key(self):
        """FormatError carries the location of the bad line."""
        with pytest.raises(FormatError) as exc_info:
            prf.parse('OK="1"\nBAD=unquoted\n', source="deps.toml")

        error = exc_info.value
        assert error.source == "deps.toml"
        assert error.line == 2
        assert error.key == "BAD"
        assert str(error).startswith("deps.toml:2: BAD:")
        assert error.exit_code == ExitCode.FORMAT_ERROR


class TestSerialize:
    """Tests for prf.serialize()."""

    def test_one_line_per_record(self):
        """Each record is one line terminated by a single newline."""
        text = prf.serialize([Record("A", "1"), Record("B", "2")])

        assert text == 'A="1"\nB="2"\n'

    def test_empty(self):
        """No records serialize to the empty string."""
        assert prf.serialize([]) == ""

    def test_keeps_given_order(self):
        """Records are written in the order given, not sorted."""
        text = prf.serialize([Record("Z", "1"), Record("A", "2")])

        assert text.splitlines() == ['Z="1"', 'A="2"']

    def test_escapes_deterministically(self):
        """Quotes and backslashes are escaped the same way every time."""
        record = Record("KEY", 'a "b" \\c')

        first = prf.serialize([record])
        second = prf.serialize([record])

        assert first == second == 'KEY="a \\"b\\" \\\\c"\n'

    def test_comments_above_record(self):
        """Comments are written directly above their key."""
        text = prf.serialize(
            [Record("A", "1"), Record("B", "2")],
            comments={"B": ["unresolved: nothing matched"]},
        )

        assert text == 'A="1"\n# unresolved: nothing matched\nB="2"\n'

    def test_multiline_comment_flattened(self):
        """A comment never spills onto a second line."""
        text = prf.serialize([Record("A", "1")], comments={"A": ["one\ntwo\\"]})

        assert text == '# one two\nA="1"\n'

    @pytest.mark.parametrize("value", ["$HOME", "a;b", "100%", "tab\there", "new\nline"])
    def test_rejects_unrepresentable_values(self, value):
        """Nothing is emitted that parse() would reject."""
        with pytest.raises(FormatError):
            prf.serialize([Record("KEY", value)])

    @pytest.mark.parametrize("key", ["lower", "1ABC", "WITH-DASH", ""])
    def test_rejects_invalid_keys(self, key):
        """Keys outside [A-Z][A-Z0-9_]* are rejected."""
        with pytest.raises(FormatError):
            prf.serialize([Record(key, "v")])


class TestRoundTrip:
    """Round-trip laws between parse() and serialize()."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            'A="1"\n',
            '# header\n\nA="1"\nB="x \\"q\\" \\\\"\n',
            'A="1"\nB="2"\nA="3"\n',
            'HYPER_GH_PROJECT="hyperium/hyper"\nHYPER_GH_VERSION_REQ=">=0.14, <1"',
        ],
    )
    def test_parse_serialize_parse(self, text):
        """parse(serialize(parse(t))) == parse(t)."""
        records = prf.parse(text)

        assert prf.parse(prf.serialize(records)) == records

    def test_serialize_parse_serialize(self):
        """Re-serializing parsed output reproduces the same bytes."""
        records = [
            Record("A_GH_PROJECT", "owner/repo"),
            Record("A_GH_TAG_PREFIX", "release-"),
            Record("A_GH_VERSION", "1.2.3-rc.1+build.5"),
            Record("QUOTED", 'he said "hi" \\o/'),
        ]
        text = prf.serialize(records)

        assert prf.serialize(prf.parse(text)) == text


class TestReadRecords:
    """Tests for prf.read_records() and prf.read_text()."""

    def test_reads_file_with_path_as_source(self, write_file):
        """Errors name the file they came from."""
        path = write_file("deps.toml", 'OK="1"\nBAD="$x"\n')

        with pytest.raises(FormatError) as exc_info:
            prf.read_records(path)

        assert exc_info.value.source == str(path)
        assert exc_info.value.line == 2

    def test_rejects_invalid_utf8(self, tmp_path):
        """A file that is not UTF-8 is a format error."""
        path = tmp_path / "bad.toml"
        path.write_bytes(b'KEY="\xff"\n')

        with pytest.raises(FormatError, match="UTF-8"):
            prf.read_records(path)

    def test_missing_file(self, tmp_path):
        """A missing file raises FileReadError."""
        with pytest.raises(FileReadError):
            prf.read_records(tmp_path / "missing.toml")
