"""Markdown rendering for guidance content.

Headings drop one level because the page title is the only ``<h1>``.
Absolute http(s) links open in a new tab and say so in their text.
"""

from __future__ import annotations

from typing import Any
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markupsafe import Markup, escape

NEW_TAB_SUFFIX = " (opens in new tab)"
HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")


class HeadingLevelProcessor(Treeprocessor):
    def run(self, root: Element) -> None:
        for element in root.iter():
            if element.tag in HEADINGS:
                element.tag = f"h{min(int(element.tag[1]) + 1, 6)}"


class ExternalLinkProcessor(Treeprocessor):
    def run(self, root: Element) -> None:
        for link in root.iter("a"):
            if not link.get("href", "").startswith(("http://", "https://")):
                continue
            link.set("target", "_blank")
            link.set("rel", "noreferrer noopener")
            if len(link):
                last = link[-1]
                last.tail = (last.tail or "") + NEW_TAB_SUFFIX
            else:
                link.text = (link.text or "") + NEW_TAB_SUFFIX


class GuidanceExtension(Extension):
    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # Below the inline processor (20) so link text is final
        md.treeprocessors.register(HeadingLevelProcessor(md), "heading_level", 6)
        md.treeprocessors.register(ExternalLinkProcessor(md), "external_links", 5)


def render_markdown(text: Any) -> str:
    if not text:
        return ""
    renderer = markdown.Markdown(extensions=[GuidanceExtension(), "nl2br", "sane_lists"])
    return renderer.convert(str(text))


def markdown_filter(text: Any) -> Markup:
    """Jinja filter: render untrusted text, escaping any HTML first."""
    if text is None:
        return Markup("")
    return Markup(render_markdown(escape(text)))


__all__ = ["NEW_TAB_SUFFIX", "markdown_filter", "render_markdown"]
