"""
HTML <-> Markdown conversion for task notes.

The remote task record stores notes twice, as HTML for display and as Markdown,
so whichever format a caller provides the other one has to be derived:

- markdownify (on top of BeautifulSoup) for HTML -> Markdown
- mistune for Markdown -> HTML

Empty input is rejected rather than converted to an empty string because the
remote API refuses empty note bodies.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Annotated, Any, Dict, Literal, Optional

import mistune
from bs4 import BeautifulSoup
from markdownify import MarkdownConverter
from pydantic import StringConstraints, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..config import config
from ..exceptions import ConversionError, EmptyContentError, ValidationError


ContentFormat = Literal["html", "markdown"]

GFM_PLUGINS = ("strikethrough", "table", "task_lists", "url")

_non_empty_text = TypeAdapter(Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)])

_EXCESS_NEWLINES = re.compile(r"\n{3,}")

_UNSAFE_TAGS = ["script", "iframe", "object", "embed"]
_URL_ATTRIBUTES = {"href", "src", "action", "formaction", "xlink:href"}
_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")
_URL_IGNORED_CHARS = re.compile(r"[\x00-\x20]+")
_TAG_OPENER = re.compile(r"<(?=[A-Za-z/!?])")


@dataclass
class HtmlToMarkdownOptions:
    """Options for HTML -> Markdown conversion."""

    gfm: bool = True
    br: str = "\n"
    heading_style: str = "atx"
    bullet: str = "-"

    @classmethod
    def from_config(cls, **overrides: Any) -> "HtmlToMarkdownOptions":
        """Defaults from the conversion.html_to_markdown config section."""
        return replace(cls(**_known_fields(cls, config.html_to_markdown_options)), **overrides)


@dataclass
class MarkdownToHtmlOptions:
    """Options for Markdown -> HTML conversion."""

    gfm: bool = True
    breaks: bool = True
    sanitize: bool = True

    @classmethod
    def from_config(cls, **overrides: Any) -> "MarkdownToHtmlOptions":
        """Defaults from the conversion.markdown_to_html config section."""
        return replace(cls(**_known_fields(cls, config.markdown_to_html_options)), **overrides)


@dataclass
class ConversionOptions:
    """Combined options for convert_content."""

    html_to_markdown: HtmlToMarkdownOptions = field(default_factory=HtmlToMarkdownOptions.from_config)
    markdown_to_html: MarkdownToHtmlOptions = field(default_factory=MarkdownToHtmlOptions.from_config)


def _known_fields(cls: type, values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if key in cls.__dataclass_fields__}


class NotesMarkdownConverter(MarkdownConverter):
    """
    markdownify converter with the GitHub-flavoured rules task notes need:
    reversible ~~strikethrough~~ and checkbox list items.
    """

    def __init__(self, gfm: bool = True, br: str = "\n", **options: Any):
        super().__init__(**options)
        self.gfm = gfm
        self.br = br

    def convert_del(self, el, text, parent_tags):
        if not self.gfm or not text.strip():
            return text
        return f"~~{text}~~"

    convert_s = convert_del
    convert_strike = convert_del

    def convert_li(self, el, text, parent_tags):
        checkbox = self._own_checkbox(el) if self.gfm else None
        if checkbox is None:
            return super().convert_li(el, text, parent_tags)
        marker = "- [x] " if checkbox.has_attr("checked") else "- [ ] "
        return f"{marker}{text.strip()}\n"

    def convert_br(self, el, text, parent_tags):
        if "_inline" in parent_tags:
            return " "
        return self.br

    def escape(self, text, parent_tags):
        # Text that looks like a tag would be parsed as HTML on the way back
        return _TAG_OPENER.sub(r"\\<", super().escape(text, parent_tags))

    @staticmethod
    def _own_checkbox(el):
        """The checkbox of this list item, ignoring those of nested items."""
        for checkbox in el.find_all("input", attrs={"type": "checkbox"}):
            if checkbox.find_parent("li") is el:
                return checkbox
        return None


def _require_content(value: Any, label: str, failure: str) -> str:
    """Validate that value is a string that is non-empty after trimming."""
    try:
        return _non_empty_text.validate_python(value)
    except PydanticValidationError as e:
        error_type = e.errors()[0]["type"]
        if error_type == "string_too_short":
            raise EmptyContentError(f"{failure}: {label} content cannot be empty", field=label.lower()) from e
        raise ValidationError(f"{failure}: {label} content must be a string", field=label.lower()) from e


def html_to_markdown(html: str, options: Optional[HtmlToMarkdownOptions] = None) -> str:
    """
    Convert HTML content to Markdown.

    Args:
        html: The HTML content to convert
        options: Conversion options (defaults from configuration)

    Returns:
        The Markdown content, trimmed, with runs of blank lines collapsed to one

    Raises:
        EmptyContentError: If html is empty after trimming
        ConversionError: If the converter fails

    Examples:
        html_to_markdown("<h1>Hello World</h1><p>This is <strong>bold</strong> text.</p>")
        # "# Hello World\\n\\nThis is **bold** text."
    """
    failure = "HTML to Markdown conversion failed"
    _require_content(html, "HTML", failure)
    opts = options or HtmlToMarkdownOptions.from_config()

    converter = NotesMarkdownConverter(
        gfm=opts.gfm,
        br=opts.br,
        heading_style=opts.heading_style,
        bullets=opts.bullet,
        strong_em_symbol="*",
        code_language="",
        autolinks=False,
        escape_misc=False,
    )

    try:
        markdown = converter.convert(html)
    except Exception as e:
        raise ConversionError(f"{failure}: {e}") from e

    return _EXCESS_NEWLINES.sub("\n\n", markdown.strip())


@lru_cache(maxsize=None)
def _markdown_renderer(gfm: bool, breaks: bool) -> mistune.Markdown:
    return mistune.create_markdown(
        escape=False,
        hard_wrap=breaks,
        plugins=list(GFM_PLUGINS) if gfm else [],
    )


def markdown_to_html(markdown: str, options: Optional[MarkdownToHtmlOptions] = None) -> str:
    """
    Convert Markdown content to HTML.

    Args:
        markdown: The Markdown content to convert
        options: Conversion options (defaults from configuration). The sanitize
            flag is applied by convert_content, not here.

    Returns:
        The rendered HTML

    Raises:
        EmptyContentError: If markdown is empty after trimming
        ConversionError: If the renderer fails
    """
    failure = "Markdown to HTML conversion failed"
    _require_content(markdown, "Markdown", failure)
    opts = options or MarkdownToHtmlOptions.from_config()

    try:
        html = _markdown_renderer(opts.gfm, opts.breaks)(markdown)
    except Exception as e:
        raise ConversionError(f"{failure}: {e}") from e

    return html if isinstance(html, str) else str(html)


def _is_unsafe_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return _URL_IGNORED_CHARS.sub("", value).lower().startswith(_UNSAFE_SCHEMES)


def sanitize_html(html: Optional[str]) -> str:
    """
    Remove script-capable content from HTML.

    Drops script/iframe/object/embed elements, on* event handler attributes
    and javascript:, vbscript: and data: URLs.

    Args:
        html: The HTML content to sanitize

    Returns:
        Sanitized HTML, or "" for empty input
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(_UNSAFE_TAGS):
        element.decompose()

    for element in soup.find_all(True):
        for name in list(element.attrs):
            lowered = name.lower()
            if lowered.startswith("on"):
                del element[name]
            elif lowered in _URL_ATTRIBUTES and _is_unsafe_url(element[name]):
                del element[name]

    return str(soup)


def convert_content(
    content: str,
    from_format: ContentFormat,
    to_format: ContentFormat,
    options: Optional[ConversionOptions] = None,
) -> str:
    """
    Convert content between HTML and Markdown.

    Markdown -> HTML output is sanitized unless the markdown_to_html options
    disable it.

    Args:
        content: The content to convert
        from_format: Source format ('html' or 'markdown')
        to_format: Target format ('html' or 'markdown')
        options: Conversion options for either direction

    Returns:
        The converted content, or content unchanged when the formats match

    Raises:
        ValidationError: If either format is unknown
    """
    for value in (from_format, to_format):
        if value not in ("html", "markdown"):
            raise ValidationError(f"Invalid conversion format: {from_format} to {to_format}", field="format")

    if from_format == to_format:
        return content

    opts = options or ConversionOptions()

    if from_format == "html":
        return html_to_markdown(content, opts.html_to_markdown)

    html = markdown_to_html(content, opts.markdown_to_html)
    if opts.markdown_to_html.sanitize:
        return sanitize_html(html)
    logging.debug("Returning unsanitized HTML from Markdown conversion")
    return html
