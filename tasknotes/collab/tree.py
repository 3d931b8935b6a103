"""
Block model -> collaborative XML tree.

Element names follow the web editor's schema: paragraph, blockquote,
bulletList, orderedList, listItem and horizontalRule. Text lives in one text
node per paragraph, with each formatted run inserted at the running offset.
"""

from typing import Any, Dict, List, Optional

from ..models import DocumentBlock, FormattedSegment
from .engine import CrdtEngine


CODE_MARKS = {"code": True}


def _run_attributes(segment: FormattedSegment, previous: Dict[str, Any], code: bool) -> Dict[str, Any]:
    """
    Attributes for one run, closing every mark of the previous run that this
    run does not carry. Text inserted without attributes would otherwise pick
    up the marks at the insertion point.
    """
    if code:
        marks = dict(CODE_MARKS)
    else:
        marks = segment.attributes.to_crdt() if segment.attributes else {}

    for name in previous:
        if name not in marks:
            marks[name] = None
    return marks


def _fill_text(engine: CrdtEngine, text_node: Any, segments: List[FormattedSegment], code: bool = False) -> None:
    offset = 0
    previous: Dict[str, Any] = {}
    for segment in segments:
        if not segment.text:
            continue
        attributes = _run_attributes(segment, previous, code)
        offset = engine.insert_text(text_node, offset, segment.text, attributes or None)
        previous = {name: value for name, value in attributes.items() if value is not None}


def _append_paragraph(engine: CrdtEngine, parent: Any, segments: List[FormattedSegment], code: bool = False) -> Any:
    paragraph = engine.append_element(parent, "paragraph")
    text_node = engine.append_text(paragraph)
    _fill_text(engine, text_node, segments, code)
    return paragraph


def _append_list(engine: CrdtEngine, parent: Any, tag: str, block: DocumentBlock, start: Optional[int]) -> None:
    list_element = engine.append_element(parent, tag)
    if start is not None and start != 1:
        engine.set_attribute(list_element, "start", str(start))
    for item in block.items:
        list_item = engine.append_element(list_element, "listItem")
        _append_paragraph(engine, list_item, item.segments)


def build_tree(engine: CrdtEngine, fragment: Any, blocks: List[DocumentBlock]) -> None:
    """
    Populate a fragment with editor elements for the given blocks.

    Every element is attached to its parent before its own children are
    added. Must be called inside an engine transaction. An empty block list
    produces a single empty paragraph.

    Args:
        engine: The CRDT engine owning fragment
        fragment: The document's root fragment
        blocks: Blocks from parse_markdown_to_blocks
    """
    for block in blocks:
        if block.type == "paragraph":
            _append_paragraph(engine, fragment, block.segments)
        elif block.type == "codeBlock":
            # The editor renders code blocks as paragraphs of code runs
            _append_paragraph(engine, fragment, block.segments, code=True)
        elif block.type == "blockquote":
            quote = engine.append_element(fragment, "blockquote")
            for child in block.children:
                _append_paragraph(engine, quote, child.segments)
        elif block.type == "bulletList":
            _append_list(engine, fragment, "bulletList", block, None)
        elif block.type == "orderedList":
            _append_list(engine, fragment, "orderedList", block, block.start)
        elif block.type == "horizontalRule":
            engine.append_element(fragment, "horizontalRule")

    if engine.child_count(fragment) == 0:
        _append_paragraph(engine, fragment, [])

    assert engine.child_count(fragment) > 0, "collaborative document has no content"
