"""
Markdown -> block model.

Walks the mistune AST and produces either a list of DocumentBlock values for the
collaborative tree builder or one flat list of FormattedSegment runs. Inline
formatting is threaded downward as an immutable TextAttributes set, so nested
marks compose by union.
"""

import re
from typing import Any, Dict, List, Optional

import mistune

from ..models import (
    BlockquoteBlock,
    BulletListBlock,
    CodeBlock,
    DocumentBlock,
    FormattedSegment,
    HorizontalRuleBlock,
    ListItem,
    OrderedListBlock,
    ParagraphBlock,
    TextAttributes,
)
from .markup import GFM_PLUGINS


Token = Dict[str, Any]

BULLET_PREFIX = "• "
QUOTE_PREFIX = "> "
RULE_TEXT = "---"
STRIKE_DELIMITER = "~~"

REPLACEMENT_CHARACTER = "\ufffd"
MAX_CODE_POINT = 0x10FFFF
SURROGATES = (0xD800, 0xDFFF)

_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
}
_ENTITY_PATTERN = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[a-zA-Z]+);")

# Separators used when a token without its own raw text is flattened
_CHILD_SEPARATORS = {
    "table": "\n",
    "table_head": " | ",
    "table_body": "\n",
    "table_row": " | ",
}

_lexer = mistune.create_markdown(renderer="ast", hard_wrap=True, plugins=list(GFM_PLUGINS))


def decode_html_entities(text: str) -> str:
    """
    Decode the basic named entities and numeric character references.

    Other named entities are left untouched. References to NUL, surrogates or
    code points past U+10FFFF decode to U+FFFD.
    """
    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name.startswith("#"):
            try:
                code_point = int(name[2:], 16) if name[1] in "xX" else int(name[1:])
            except ValueError:
                return match.group(0)
            if code_point == 0 or code_point > MAX_CODE_POINT or SURROGATES[0] <= code_point <= SURROGATES[1]:
                return REPLACEMENT_CHARACTER
            return chr(code_point)
        return _NAMED_ENTITIES.get(name, match.group(0))

    if "&" not in text:
        return text
    return _ENTITY_PATTERN.sub(replace, text)


def _tokenize(markdown: str) -> List[Token]:
    return _lexer(markdown)


def _segment(text: str, attributes: Optional[TextAttributes] = None) -> FormattedSegment:
    return FormattedSegment(text=text, attributes=attributes)


def _collect_text(token: Token) -> str:
    if "raw" in token:
        return token["raw"]
    separator = _CHILD_SEPARATORS.get(token.get("type", ""), "")
    return separator.join(_collect_text(child) for child in token.get("children", []))


def parse_inline_tokens(tokens: List[Token], inherited: Optional[TextAttributes] = None) -> List[FormattedSegment]:
    """
    Convert inline tokens into formatted segments.

    Args:
        tokens: Inline tokens from the mistune AST
        inherited: Marks active on the enclosing tokens

    Returns:
        One segment per text leaf, not yet merged
    """
    attributes = inherited or TextAttributes()
    segments: List[FormattedSegment] = []

    for token in tokens:
        kind = token.get("type")
        children = token.get("children", [])

        if kind == "text":
            segments.append(_segment(decode_html_entities(token.get("raw", "")), attributes))
        elif kind == "strong":
            segments.extend(parse_inline_tokens(children, attributes.with_mark(bold=True)))
        elif kind == "emphasis":
            segments.extend(parse_inline_tokens(children, attributes.with_mark(italic=True)))
        elif kind == "link":
            linked = attributes.with_link(token.get("attrs", {}).get("url", ""))
            if children:
                segments.extend(parse_inline_tokens(children, linked))
            else:
                segments.append(_segment(decode_html_entities(token.get("raw", "")), linked))
        elif kind == "codespan":
            segments.append(_segment(decode_html_entities(token.get("raw", "")), attributes.with_mark(code=True)))
        elif kind in ("softbreak", "linebreak"):
            segments.append(_segment("\n"))
        elif kind == "strikethrough":
            # No strike mark in the editor; keep the Markdown delimiters as text
            segments.append(_segment(STRIKE_DELIMITER))
            segments.extend(parse_inline_tokens(children, attributes))
            segments.append(_segment(STRIKE_DELIMITER))
        elif "raw" in token:
            segments.append(_segment(decode_html_entities(token["raw"]), attributes))
        elif children:
            segments.extend(parse_inline_tokens(children, attributes))

    return segments


def merge_adjacent_segments(segments: List[FormattedSegment]) -> List[FormattedSegment]:
    """
    Merge consecutive segments whose attribute sets are equal.

    The result never has two neighbours with equal attributes, and merging
    an already merged list returns it unchanged.
    """
    merged: List[FormattedSegment] = []
    for segment in segments:
        if merged and merged[-1].attributes == segment.attributes:
            previous = merged[-1]
            merged[-1] = FormattedSegment(text=previous.text + segment.text, attributes=previous.attributes)
        else:
            merged.append(segment)
    return merged


def _inline(token: Token, inherited: Optional[TextAttributes] = None) -> List[FormattedSegment]:
    return merge_adjacent_segments(parse_inline_tokens(token.get("children", []), inherited))


def _code_text(token: Token) -> str:
    raw = token.get("raw", "")
    return raw[:-1] if raw.endswith("\n") else raw


def _list_item_segments(item: Token) -> List[FormattedSegment]:
    """Flatten a list item's content into one run list. Nested lists add lines."""
    segments: List[FormattedSegment] = []

    for child in item.get("children", []):
        kind = child.get("type")
        if kind == "list":
            for nested in child.get("children", []):
                nested_segments = _list_item_segments(nested)
                if nested_segments:
                    segments.append(_segment("\n"))
                    segments.extend(nested_segments)
        elif kind == "blank_line":
            continue
        elif kind == "block_code":
            segments.append(_segment(_code_text(child), TextAttributes(code=True)))
        elif "children" in child:
            segments.extend(parse_inline_tokens(child["children"]))
        elif "raw" in child:
            segments.append(_segment(decode_html_entities(child["raw"])))

    return merge_adjacent_segments(segments)


def _list_block(token: Token) -> Optional[DocumentBlock]:
    attrs = token.get("attrs", {})
    items = []
    for item in token.get("children", []):
        segments = _list_item_segments(item)
        if segments:
            items.append(ListItem(segments=segments))

    if not items:
        return None

    if attrs.get("ordered"):
        start = attrs.get("start", 1)
        return OrderedListBlock(items=items, start=start if start != 1 else None)
    return BulletListBlock(items=items)


def _block_from_token(token: Token) -> Optional[DocumentBlock]:
    kind = token.get("type")

    if kind == "blank_line":
        return None

    if kind == "paragraph":
        segments = _inline(token)
        return ParagraphBlock(segments=segments) if segments else None

    if kind == "heading":
        # The editor has no heading element
        segments = _inline(token, TextAttributes(bold=True))
        return ParagraphBlock(segments=segments) if segments else None

    if kind == "block_quote":
        children = []
        for child in token.get("children", []):
            if child.get("type") != "paragraph":
                continue
            segments = _inline(child)
            if segments:
                children.append(ParagraphBlock(segments=segments))
        return BlockquoteBlock(children=children) if children else None

    if kind == "block_code":
        info = token.get("attrs", {}).get("info")
        return CodeBlock(
            segments=[_segment(_code_text(token), TextAttributes(code=True))],
            language=info or None,
        )

    if kind == "list":
        return _list_block(token)

    if kind == "thematic_break":
        return HorizontalRuleBlock()

    if kind == "text":
        segments = merge_adjacent_segments(parse_inline_tokens([token]))
        return ParagraphBlock(segments=segments) if segments else None

    # Anything else degrades to plain text
    text = _collect_text(token).strip()
    return ParagraphBlock(segments=[_segment(text)]) if text else None


def parse_markdown_to_blocks(markdown: str) -> List[DocumentBlock]:
    """
    Parse Markdown into the block model used for the collaborative document.

    Args:
        markdown: Markdown text; empty or whitespace-only input yields no blocks

    Returns:
        Blocks in document order

    Examples:
        parse_markdown_to_blocks("# Title")
        # [ParagraphBlock(segments=[FormattedSegment(text="Title", attributes=TextAttributes(bold=True))])]
    """
    if not markdown or not markdown.strip():
        return []

    blocks: List[DocumentBlock] = []
    for token in _tokenize(markdown):
        block = _block_from_token(token)
        if block is not None:
            blocks.append(block)
    return blocks


def _flat_segments(token: Token) -> List[FormattedSegment]:
    kind = token.get("type")

    if kind == "paragraph":
        return parse_inline_tokens(token.get("children", []))

    if kind == "heading":
        return parse_inline_tokens(token.get("children", []), TextAttributes(bold=True))

    if kind == "list":
        attrs = token.get("attrs", {})
        start = attrs.get("start", 1)
        segments: List[FormattedSegment] = []
        for index, item in enumerate(token.get("children", [])):
            if index:
                segments.append(_segment("\n"))
            marker = f"{start + index}. " if attrs.get("ordered") else BULLET_PREFIX
            segments.append(_segment(marker))
            segments.extend(_list_item_segments(item))
        return segments

    if kind == "block_code":
        return [_segment(_code_text(token), TextAttributes(code=True))]

    if kind == "block_quote":
        segments = []
        for child in token.get("children", []):
            if child.get("type") == "blank_line":
                continue
            if segments:
                segments.append(_segment("\n"))
            segments.append(_segment(QUOTE_PREFIX))
            segments.extend(_flat_segments(child))
        return segments

    if kind == "thematic_break":
        return [_segment(RULE_TEXT)]

    if kind == "text":
        return parse_inline_tokens([token])

    return [_segment(_collect_text(token).strip())]


def parse_markdown_to_segments(markdown: str) -> List[FormattedSegment]:
    """
    Parse Markdown into a single flat list of merged runs.

    Blocks are separated by newlines, list items get bullet or number
    prefixes and quoted lines a '> ' prefix.
    """
    if not markdown or not markdown.strip():
        return []

    segments: List[FormattedSegment] = []
    tokens = [token for token in _tokenize(markdown) if token.get("type") != "blank_line"]
    for index, token in enumerate(tokens):
        if index:
            segments.append(_segment("\n"))
        segments.extend(_flat_segments(token))

    return merge_adjacent_segments(segments)
