"""
Unit tests for the Markdown -> block model parser.
"""

import unittest

from tasknotes.conversion import (
    decode_html_entities,
    merge_adjacent_segments,
    parse_inline_tokens,
    parse_markdown_to_blocks,
    parse_markdown_to_segments,
)
from tasknotes.models import (
    BlockquoteBlock,
    BulletListBlock,
    CodeBlock,
    FormattedSegment,
    HorizontalRuleBlock,
    OrderedListBlock,
    ParagraphBlock,
    TextAttributes,
)


BOLD = TextAttributes(bold=True)
ITALIC = TextAttributes(italic=True)
CODE = TextAttributes(code=True)


def texts(segments):
    return [segment.text for segment in segments]


class TestParseBlocks(unittest.TestCase):
    """Test block-level parsing."""

    def test_paragraph_with_formatting(self):
        blocks = parse_markdown_to_blocks("This is **bold** and *italic* text")

        self.assertEqual(len(blocks), 1)
        self.assertIsInstance(blocks[0], ParagraphBlock)
        self.assertEqual(blocks[0].segments, [
            FormattedSegment(text="This is "),
            FormattedSegment(text="bold", attributes=BOLD),
            FormattedSegment(text=" and "),
            FormattedSegment(text="italic", attributes=ITALIC),
            FormattedSegment(text=" text"),
        ])

    def test_heading_becomes_bold_paragraph(self):
        blocks = parse_markdown_to_blocks("# Title")
        self.assertEqual(blocks, [ParagraphBlock(segments=[FormattedSegment(text="Title", attributes=BOLD)])])

    def test_heading_marks_compose(self):
        blocks = parse_markdown_to_blocks("## Heading with *emphasis*")
        self.assertEqual(blocks[0].segments, [
            FormattedSegment(text="Heading with ", attributes=BOLD),
            FormattedSegment(text="emphasis", attributes=TextAttributes(bold=True, italic=True)),
        ])

    def test_code_block(self):
        blocks = parse_markdown_to_blocks("```python\nprint('hi')\n```")

        self.assertEqual(len(blocks), 1)
        self.assertIsInstance(blocks[0], CodeBlock)
        self.assertEqual(blocks[0].language, "python")
        self.assertEqual(blocks[0].segments, [FormattedSegment(text="print('hi')", attributes=CODE)])

    def test_code_block_without_language(self):
        blocks = parse_markdown_to_blocks("```\nx = 1\ny = 2\n```")
        self.assertIsNone(blocks[0].language)
        self.assertEqual(texts(blocks[0].segments), ["x = 1\ny = 2"])

    def test_bullet_list(self):
        blocks = parse_markdown_to_blocks("- one\n- two")

        self.assertIsInstance(blocks[0], BulletListBlock)
        self.assertEqual([texts(item.segments) for item in blocks[0].items], [["one"], ["two"]])

    def test_ordered_list_start(self):
        blocks = parse_markdown_to_blocks("3. three\n4. four")
        self.assertIsInstance(blocks[0], OrderedListBlock)
        self.assertEqual(blocks[0].start, 3)
        self.assertEqual(len(blocks[0].items), 2)

    def test_ordered_list_default_start(self):
        blocks = parse_markdown_to_blocks("1. a\n2. b")
        self.assertIsNone(blocks[0].start)

    def test_nested_list_flattened(self):
        blocks = parse_markdown_to_blocks("- parent\n  - child")

        self.assertEqual(len(blocks[0].items), 1)
        self.assertEqual(texts(blocks[0].items[0].segments), ["parent\nchild"])

    def test_task_list_checkbox_dropped(self):
        blocks = parse_markdown_to_blocks("- [x] done\n- [ ] todo")
        self.assertEqual([texts(item.segments) for item in blocks[0].items], [["done"], ["todo"]])

    def test_blockquote_keeps_paragraphs_only(self):
        blocks = parse_markdown_to_blocks("> Quote text\n>\n> - nested item")

        self.assertEqual(len(blocks), 1)
        self.assertIsInstance(blocks[0], BlockquoteBlock)
        self.assertEqual(len(blocks[0].children), 1)
        self.assertEqual(texts(blocks[0].children[0].segments), ["Quote text"])

    def test_blockquote_without_paragraphs_dropped(self):
        self.assertEqual(parse_markdown_to_blocks("> - only a list"), [])

    def test_horizontal_rule(self):
        blocks = parse_markdown_to_blocks("Above\n\n---\n\nBelow")

        self.assertEqual([type(block) for block in blocks], [ParagraphBlock, HorizontalRuleBlock, ParagraphBlock])
        self.assertEqual(texts(blocks[0].segments), ["Above"])
        self.assertEqual(texts(blocks[2].segments), ["Below"])

    def test_strikethrough_kept_as_delimiters(self):
        blocks = parse_markdown_to_blocks("~~gone~~")
        self.assertEqual(blocks[0].segments, [FormattedSegment(text="~~gone~~")])

    def test_link(self):
        blocks = parse_markdown_to_blocks("[Google](https://google.com)")
        self.assertEqual(blocks[0].segments, [
            FormattedSegment(text="Google", attributes=TextAttributes().with_link("https://google.com")),
        ])

    def test_inline_code(self):
        blocks = parse_markdown_to_blocks("use `x`")
        self.assertEqual(blocks[0].segments, [
            FormattedSegment(text="use "),
            FormattedSegment(text="x", attributes=CODE),
        ])

    def test_entities_decoded(self):
        blocks = parse_markdown_to_blocks("Fish &amp; chips")
        self.assertEqual(texts(blocks[0].segments), ["Fish & chips"])

    def test_line_break_in_paragraph(self):
        blocks = parse_markdown_to_blocks("line one\nline two")
        self.assertEqual(texts(blocks[0].segments), ["line one\nline two"])

    def test_html_block_degrades_to_text(self):
        blocks = parse_markdown_to_blocks("<div>raw</div>")
        self.assertEqual(blocks, [ParagraphBlock(segments=[FormattedSegment(text="<div>raw</div>")])])

    def test_empty_input(self):
        self.assertEqual(parse_markdown_to_blocks(""), [])
        self.assertEqual(parse_markdown_to_blocks("   \n  "), [])

    def test_adjacent_runs_are_merged(self):
        for block in parse_markdown_to_blocks("a **b** **c** d\n\n*x* *y*"):
            for left, right in zip(block.segments, block.segments[1:]):
                self.assertNotEqual(left.attributes, right.attributes)


class TestInlineTokens(unittest.TestCase):
    """Test inline token conversion."""

    def test_attributes_are_inherited(self):
        tokens = [{"type": "strong", "children": [{"type": "text", "raw": "x"}]}]
        segments = parse_inline_tokens(tokens, ITALIC)
        self.assertEqual(segments, [FormattedSegment(text="x", attributes=TextAttributes(bold=True, italic=True))])

    def test_inherited_set_not_mutated(self):
        inherited = TextAttributes(bold=True)
        parse_inline_tokens([{"type": "emphasis", "children": [{"type": "text", "raw": "x"}]}], inherited)
        self.assertEqual(inherited, TextAttributes(bold=True))

    def test_unknown_token_uses_raw_text(self):
        segments = parse_inline_tokens([{"type": "inline_html", "raw": "<span>"}])
        self.assertEqual(segments, [FormattedSegment(text="<span>")])


class TestMergeSegments(unittest.TestCase):
    """Test adjacent segment merging."""

    def test_merges_equal_neighbours(self):
        segments = [
            FormattedSegment(text="a"),
            FormattedSegment(text="b"),
            FormattedSegment(text="c", attributes=BOLD),
            FormattedSegment(text="d", attributes=TextAttributes(bold=True)),
            FormattedSegment(text="e"),
        ]
        self.assertEqual(merge_adjacent_segments(segments), [
            FormattedSegment(text="ab"),
            FormattedSegment(text="cd", attributes=BOLD),
            FormattedSegment(text="e"),
        ])

    def test_idempotent(self):
        segments = merge_adjacent_segments(parse_inline_tokens([
            {"type": "text", "raw": "a"},
            {"type": "text", "raw": "b"},
            {"type": "strong", "children": [{"type": "text", "raw": "c"}]},
        ]))
        self.assertEqual(merge_adjacent_segments(segments), segments)

    def test_empty(self):
        self.assertEqual(merge_adjacent_segments([]), [])


class TestFlatSegments(unittest.TestCase):
    """Test the flat segments mode."""

    def test_plain_text(self):
        self.assertEqual(parse_markdown_to_segments("Hello world"), [FormattedSegment(text="Hello world")])

    def test_blocks_separated_by_newlines(self):
        self.assertEqual(parse_markdown_to_segments("# Title\n\nBody"), [
            FormattedSegment(text="Title", attributes=BOLD),
            FormattedSegment(text="\nBody"),
        ])

    def test_list_prefixes(self):
        self.assertEqual(texts(parse_markdown_to_segments("- a\n- b")), ["• a\n• b"])
        self.assertEqual(texts(parse_markdown_to_segments("2. a\n3. b")), ["2. a\n3. b"])

    def test_quote_and_rule(self):
        self.assertEqual(texts(parse_markdown_to_segments("> quoted")), ["> quoted"])
        self.assertEqual(texts(parse_markdown_to_segments("a\n\n---\n\nb")), ["a\n---\nb"])

    def test_empty(self):
        self.assertEqual(parse_markdown_to_segments(" "), [])


class TestDecodeEntities(unittest.TestCase):

    def test_named_and_numeric(self):
        self.assertEqual(decode_html_entities("&lt;b&gt; &amp; &quot;x&quot; &#39;y&apos;"), "<b> & \"x\" 'y'")
        self.assertEqual(decode_html_entities("&#65;&#x42;"), "AB")

    def test_invalid_code_points_replaced(self):
        for reference in ("&#xD800;", "&#55296;", "&#xDFFF;", "&#0;", "&#x110000;", "&#99999999999;"):
            with self.subTest(reference=reference):
                self.assertEqual(decode_html_entities(reference), "\ufffd")

    def test_surrogate_reference_in_markdown(self):
        blocks = parse_markdown_to_blocks("see &#xD800; here")
        self.assertEqual(texts(blocks[0].segments), ["see \ufffd here"])

    def test_unknown_entities_untouched(self):
        self.assertEqual(decode_html_entities("&copy; plain"), "&copy; plain")


if __name__ == '__main__':
    unittest.main(verbosity=2)
