"""Unit tests for noteo.parser."""

import pytest

from noteo.parser import front_matter_yaml, read_note, split_front_matter


class TestSplitFrontMatter:
    def test_no_front_matter(self):
        assert split_front_matter("Just some text.\n") == ("", "Just some text.\n")

    def test_empty_content(self):
        assert split_front_matter("") == ("", "")

    def test_front_matter_and_body(self):
        content = "---\nTags: a b\n---\n\nBody here.\n"
        assert split_front_matter(content) == ("---\nTags: a b\n---\n", "\nBody here.\n")

    def test_front_matter_without_trailing_newline(self):
        content = "---\ntags: abc\n---"
        assert split_front_matter(content) == (content, "")

    def test_unclosed_block_is_all_body(self):
        content = "---\nTags: a\nbody\n"
        assert split_front_matter(content) == ("", content)

    def test_fence_must_be_first_line(self):
        content = "Intro\n---\nTags: a\n---\n"
        assert split_front_matter(content) == ("", content)

    def test_fence_lines_only_need_the_prefix(self):
        content = "----\nTags: a\n--- end\nbody"
        assert split_front_matter(content) == ("----\nTags: a\n--- end\n", "body")

    def test_empty_block(self):
        assert split_front_matter("---\n---\nBody.") == ("---\n---\n", "Body.")

    def test_crlf_is_kept_verbatim(self):
        content = "---\r\nTags: a\r\n---\r\nbody\r\n"
        front_matter, body = split_front_matter(content)
        assert front_matter == "---\r\nTags: a\r\n---\r\n"
        assert body == "body\r\n"

    @pytest.mark.parametrize(
        "content",
        ["", "text", "---\nA: 1\n---\nB", "---\nA: 1\n", "---\r\n---\r\n\r\n", "\n---\n---\n"],
    )
    def test_concatenation_is_identity(self, content):
        front_matter, body = split_front_matter(content)
        assert front_matter + body == content


class TestFrontMatterYaml:
    def test_strips_fences(self):
        assert front_matter_yaml("---\nTags: a\nCreated: 2020-01-01\n---\n") == "Tags: a\nCreated: 2020-01-01\n"

    def test_empty_block(self):
        assert front_matter_yaml("---\n---\n") == ""


class TestReadNote:
    def test_reads_utf8_without_newline_translation(self, tmp_path):
        path = tmp_path / "note.md"
        path.write_bytes("---\r\nTags: żółw\r\n---\r\nbody\r\n".encode("utf-8"))
        assert read_note(path) == ("---\r\nTags: żółw\r\n---\r\n", "body\r\n")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_note(tmp_path / "missing.md")
