"""HTML documents shown in the code view and the preview pane."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Dict

from jinja2 import DictLoader, Environment, select_autoescape

from .highlighting import TOKEN_KINDS

TOKEN_COLORS: Dict[str, str] = {
    "string": "#ce9178",
    "comment": "#6a9955",
    "tag": "#569cd6",
    "attr": "#9cdcfe",
    "property": "#9cdcfe",
    "keyword": "#c586c0",
    "number": "#b5cea8",
    "function": "#dcdcaa",
}

CODE_VIEW_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ filename }}</title>
<style>
  body { margin: 0; background: #1e1e1e; color: #d4d4d4; }
  pre { margin: 0; padding: 1rem 1.25rem; font: 13px/1.5 Consolas, "Cascadia Code", Menlo, monospace; white-space: pre; }
{% for kind, color in colors %}  .token-{{ kind }} { color: {{ color }};{% if kind == "comment" %} font-style: italic;{% endif %} }
{% endfor %}</style>
</head>
<body><pre><code class="language-{{ language }}">{{ code|safe }}</code></pre></body>
</html>
"""

WAITING_TEMPLATE = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body style="margin:0;height:100vh;display:flex;align-items:center;justify-content:center;
             background:#0f172a;color:#94a3b8;font-family:system-ui,sans-serif;">
<p>{{ message }}</p>
</body>
</html>
"""


@lru_cache(maxsize=1)
def _env() -> Environment:
    return Environment(
        loader=DictLoader({
            "code_view.html": CODE_VIEW_TEMPLATE,
            "waiting.html": WAITING_TEMPLATE,
        }),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_code_view(filename: str, language: str, markup: str) -> str:
    """Wrap highlighter output (already escaped) in a standalone document."""
    tpl = _env().get_template("code_view.html")
    colors = [(kind, TOKEN_COLORS[kind]) for kind in TOKEN_KINDS]
    return tpl.render(filename=filename, language=language, code=markup, colors=colors)


def render_preview(index_html: str, loading: bool = False) -> str:
    if index_html and not loading:
        return index_html
    message = "Generating your project…" if loading else "Waiting for code generation..."
    return _env().get_template("waiting.html").render(title="Preview", message=message)


def write_document(directory: str | Path, name: str, html: str) -> Path:
    """Write ``html`` to ``directory/name`` so a web view can load it by URL.

    Inline HTML given to a web view is capped at 2 MB; files are not.
    """
    path = Path(directory) / name
    path.write_text(html, encoding="utf-8")
    return path
