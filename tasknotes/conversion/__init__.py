"""
Text conversion for task notes: HTML <-> Markdown and Markdown -> block model.
"""

from .markup import (
    ConversionOptions,
    HtmlToMarkdownOptions,
    MarkdownToHtmlOptions,
    convert_content,
    html_to_markdown,
    markdown_to_html,
    sanitize_html,
)
from .blocks import (
    decode_html_entities,
    merge_adjacent_segments,
    parse_inline_tokens,
    parse_markdown_to_blocks,
    parse_markdown_to_segments,
)

__all__ = [
    "ConversionOptions",
    "HtmlToMarkdownOptions",
    "MarkdownToHtmlOptions",
    "convert_content",
    "html_to_markdown",
    "markdown_to_html",
    "sanitize_html",
    "decode_html_entities",
    "merge_adjacent_segments",
    "parse_inline_tokens",
    "parse_markdown_to_blocks",
    "parse_markdown_to_segments",
]
