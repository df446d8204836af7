"""
Tests for the physical key scheme and filename sanitization.
"""
import pytest

from storage.exceptions import InvalidFilenameError
from storage.keys import (
    SEPARATOR,
    build_key,
    is_valid_file_id,
    lookup_prefix,
    new_file_id,
    parse_key,
    sanitize_filename,
)


class TestKeys:
    def test_build_and_parse(self):
        file_id = new_file_id()
        key = build_key(file_id, "hello.txt")

        assert key == f"{file_id}__hello.txt"
        assert parse_key(key) == (file_id, "hello.txt")

    def test_parse_splits_at_first_separator(self):
        assert parse_key("abc__my__file.txt") == ("abc", "my__file.txt")

    def test_parse_without_separator(self):
        assert parse_key("stray.bin") == ("stray.bin", "stray.bin")
        assert parse_key("__leading.bin") == ("__leading.bin", "__leading.bin")

    def test_lookup_prefix(self):
        assert lookup_prefix("abc") == "abc" + SEPARATOR

    def test_ids_are_unique(self):
        ids = {new_file_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_valid_file_id(self):
        assert is_valid_file_id(new_file_id())
        assert not is_valid_file_id("not-a-uuid")
        assert not is_valid_file_id("")
        assert not is_valid_file_id("../../etc")


class TestSanitizeFilename:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("hello.txt", "hello.txt"),
            ("dir/sub/photo.jpg", "photo.jpg"),
            ("C:\\Users\\me\\clip.mp4", "clip.mp4"),
            ("./notes.md", "notes.md"),
            ("  padded.txt  ", "padded.txt"),
            ("résumé.pdf", "résumé.pdf"),
        ],
    )
    def test_accepts(self, raw, expected):
        assert sanitize_filename(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            None,
            "../secret",
            "a/../../b.txt",
            "..\\..\\windows\\system.ini",
            "..",
            "/",
            "bad\x00name",
            "line\nbreak.txt",
            "x" * 201,
        ],
    )
    def test_rejects(self, raw):
        with pytest.raises(InvalidFilenameError):
            sanitize_filename(raw)
