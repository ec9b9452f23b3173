from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from promptsite.core.highlighting import highlight
from promptsite.core.render import render_code_view, render_preview, write_document


def test_code_view_embeds_markup_unescaped() -> None:
    markup = highlight("<b>x</b>", "html")
    document = render_code_view("<weird>.html", "html", markup)
    assert markup in document
    assert "<title>&lt;weird&gt;.html</title>" in document
    assert ".token-keyword { color:" in document
    assert 'class="language-html"' in document


def test_preview_passes_generated_html_through() -> None:
    assert render_preview("<h1>Site</h1>") == "<h1>Site</h1>"


def test_preview_placeholder_when_nothing_generated() -> None:
    assert "Waiting for code generation" in render_preview("")
    assert "Generating your project" in render_preview("<h1>Old</h1>", loading=True)


def test_large_documents_are_written_to_disk(tmp_path: Path) -> None:
    image = "data:image/png;base64," + "A" * (3 * 1024 * 1024)
    page = render_preview(f'<img src="{image}">')
    path = write_document(tmp_path, "preview.html", page)
    assert path == tmp_path / "preview.html"
    assert path.read_text(encoding="utf-8") == page

    write_document(tmp_path, "preview.html", "<p>next</p>")
    assert path.read_text(encoding="utf-8") == "<p>next</p>"
