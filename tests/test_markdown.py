"""Tests for post content interpretation."""

from forum.services.markdown import CODE, PARAGRAPH, ContentBlock, render_content, snippet


class TestRenderContent:

    def test_paragraphs_and_code(self):
        blocks = render_content("Intro line\n\n`useEffect` is a bit confusing!\n`const x = 1`")

        assert blocks == [
            ContentBlock(PARAGRAPH, "Intro line"),
            ContentBlock(PARAGRAPH, "`useEffect` is a bit confusing!"),
            ContentBlock(CODE, "const x = 1"),
        ]

    def test_blank_lines_dropped(self):
        assert render_content("\n   \n\t\n") == []

    def test_lone_backtick_is_a_paragraph(self):
        assert render_content("`") == [ContentBlock(PARAGRAPH, "`")]

    def test_empty_code_line(self):
        assert render_content("``") == [ContentBlock(CODE, "")]

    def test_leading_whitespace_is_kept(self):
        assert render_content("  indented") == [ContentBlock(PARAGRAPH, "  indented")]


def test_snippet():
    assert snippet("x" * 80) == "x" * 50 + "..."
    assert snippet("short") == "short..."
