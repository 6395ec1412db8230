"""
Conversion of pad HTML as rendered by Etherpad to Markdown.
"""
from __future__ import annotations

import re
from typing import Callable

from markdownify import MarkdownConverter, chomp

__all__ = [
    "Converter",
    "PadMarkdownConverter",
    "to_markdown",
]

type Converter = Callable[[str], str]
"""
Function converting pad HTML to note markup.
"""

_DOCTYPE = re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE)


class PadMarkdownConverter(MarkdownConverter):
    """
    Markdown converter with the inline conventions used in notes:

    - `<s>`: `~~text~~`
    - `<u>`: `==text==`
    """

    def convert_s(self, el, text, *args, **kwargs):
        return _wrap_inline(text, "~~")

    def convert_u(self, el, text, *args, **kwargs):
        return _wrap_inline(text, "==")


def to_markdown(html: str) -> str:
    """
    Convert pad HTML to Markdown.
    """
    html = _DOCTYPE.sub("", html)
    markdown = PadMarkdownConverter(
        heading_style="ATX",
        bullets="-",
    ).convert(html)
    return markdown.lstrip("\n").rstrip()


def _wrap_inline(text: str, markup: str) -> str:
    """
    Wrap text in markup, keeping surrounding whitespace outside of it.
    """
    prefix, suffix, text = chomp(text)
    if not text:
        return ""
    return f"{prefix}{markup}{text}{markup}{suffix}"
