"""Functional tests for markdown guidance content."""

from __future__ import annotations

from forms_engine.logic.components import create_component
from forms_engine.logic.markdown_render import render_markdown
from forms_engine.logic.templates import environment
from forms_engine.models.definition import ComponentDef


def test_links_and_headings_render_as_html() -> None:
    html = render_markdown("# Title\n\nRead [the guide](/guide) first")
    assert "<h2>Title</h2>" in html
    assert '<a href="/guide">the guide</a>' in html
    assert "target" not in html


def test_heading_levels_stop_at_six() -> None:
    assert render_markdown("###### Deep") == "<h6>Deep</h6>"


def test_external_links_open_in_a_new_tab() -> None:
    html = render_markdown("See [GOV.UK](https://www.gov.uk)")
    assert 'target="_blank"' in html
    assert 'rel="noreferrer noopener"' in html
    assert "GOV.UK (opens in new tab)</a>" in html


def test_line_breaks_are_kept() -> None:
    assert "<br />" in render_markdown("line one\nline two")


def test_markdown_component_view_model_holds_html() -> None:
    component = create_component(
        ComponentDef(type="Markdown", name="intro", content="## Before you start\n\nHave your *pet passport* ready.")
    )
    content = component.get_view_model({})["content"]
    assert "<h3>Before you start</h3>" in content
    assert "<em>pet passport</em>" in content


def test_markdown_filter_escapes_html_and_is_not_escaped_twice() -> None:
    rendered = environment.from_string("{{ text | markdown }}").render(text="<b>hi</b> *there*")
    assert "<b>" not in rendered
    assert "&lt;b&gt;hi&lt;/b&gt;" in rendered
    assert "<em>there</em>" in rendered
    assert rendered.startswith("<p>")
