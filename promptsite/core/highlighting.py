"""Cosmetic syntax highlighting for the read-only code view.

``highlight`` turns source text into HTML where every recognized token is
wrapped in ``<span class="token-KIND">``. It is a layered regex pipeline,
not a lexer: each pass hides what it classified behind a placeholder so that
later passes cannot re-enter it, and a final pass swaps the placeholders for
their styled markup.
"""

from __future__ import annotations

import html
import itertools
import re
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

TOKEN_KINDS: Tuple[str, ...] = (
    "string",
    "comment",
    "tag",
    "attr",
    "property",
    "keyword",
    "number",
    "function",
)

KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "javascript": (
        "const", "let", "var", "function", "return", "if", "else", "for", "while",
        "import", "from", "export", "default", "class", "extends", "new", "this",
        "async", "await", "try", "catch", "case", "switch",
    ),
    "typescript": (
        "const", "let", "var", "function", "return", "if", "else", "for", "while",
        "import", "from", "export", "default", "class", "extends", "new", "this",
        "async", "await", "try", "catch", "interface", "type", "implements",
        "public", "private", "protected", "readonly", "declare", "module", "namespace",
    ),
    "java": (
        "public", "private", "protected", "class", "interface", "extends",
        "implements", "void", "int", "boolean", "String", "return", "if", "else",
        "for", "while", "new", "this", "static", "final", "package", "import",
        "try", "catch", "throw", "throws",
    ),
    "python": (
        "def", "class", "return", "if", "else", "elif", "for", "while", "import",
        "from", "try", "except", "print", "None", "True", "False", "pass", "break",
        "continue", "with", "as", "global", "lambda",
    ),
    "json": ("true", "false", "null"),
}

# Unrecognized languages still get JavaScript keywords.
DEFAULT_KEYWORD_LANGUAGE = "javascript"

_STRING_RE = re.compile(r"([\"'])(?:\\.|[^\\\n])*?\1")

_HTML_COMMENT_RE = re.compile(r"&lt;!--[\s\S]*?--&gt;")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_HASH_COMMENT_RE = re.compile(r"#.*$", re.MULTILINE)

_HTML_TAG_RE = re.compile(r"(&lt;/?)([a-zA-Z0-9-]+)(.*?)(/?&gt;)")
_HTML_ATTR_RE = re.compile(r"(\s)([a-zA-Z0-9-]+)=")
_CSS_PROPERTY_RE = re.compile(r"([a-zA-Z-]+):")

_NUMBER_RE = re.compile(r"\b\d+\b", re.ASCII)
# Not after "&", so entities such as "&gt;(" stay intact.
_FUNCTION_RE = re.compile(r"(?<!&)\b([a-zA-Z0-9_]+)\(", re.ASCII)

_KEYWORD_RES: Dict[str, re.Pattern[str]] = {
    language: re.compile(r"\b(" + "|".join(words) + r")\b", re.ASCII)
    for language, words in KEYWORDS.items()
}

# Private use code points: never produced by escaping and vanishingly rare in
# generated source. One that is absent from the text is picked per call.
_MARKER_CANDIDATES = (range(0xE000, 0xF900), range(0xF0000, 0xFFFFE), range(0x100000, 0x10FFFE))


def escape_html(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` (ampersands first)."""
    return html.escape(text, quote=False)


def keywords_for(language: str) -> Tuple[str, ...]:
    return KEYWORDS.get(language, KEYWORDS[DEFAULT_KEYWORD_LANGUAGE])


def wrap_token(kind: str, text: str) -> str:
    return f'<span class="token-{kind}">{text}</span>'


def _pick_marker(text: str) -> Optional[str]:
    for code in itertools.chain.from_iterable(_MARKER_CANDIDATES):
        marker = chr(code)
        if marker not in text:
            return marker
    return None


class _Placeholders:
    """Opaque stand-ins for spans that have already been classified."""

    def __init__(self, marker: str) -> None:
        self._marker = marker
        self._pattern = re.compile(re.escape(marker) + r"(\d+)" + re.escape(marker))
        self._raw: List[str] = []
        self._styled: List[str] = []

    def add(self, text: str, kind: str) -> str:
        # Anything swallowed by a wider span loses its own styling.
        raw = self.plain(text)
        self._raw.append(raw)
        self._styled.append(wrap_token(kind, raw))
        return f"{self._marker}{len(self._raw) - 1}{self._marker}"

    def extract(self, pattern: re.Pattern[str], text: str, kind: str) -> str:
        return pattern.sub(lambda match: self.add(match.group(0), kind), text)

    def plain(self, text: str) -> str:
        return self._pattern.sub(lambda match: self._raw[int(match.group(1))], text)

    def restore(self, text: str) -> str:
        return self._pattern.sub(lambda match: self._styled[int(match.group(1))], text)

    def map_visible(self, text: str, transform: Callable[[str], str]) -> str:
        """Apply ``transform`` to the stretches of text between placeholders."""
        pieces: List[str] = []
        position = 0
        for match in self._pattern.finditer(text):
            pieces.append(transform(text[position:match.start()]))
            pieces.append(match.group(0))
            position = match.end()
        pieces.append(transform(text[position:]))
        return "".join(pieces)


def highlight(source: str, language: str) -> str:
    """Return ``source`` as escaped HTML with ``token-*`` spans.

    Never raises: malformed input only yields coarser styling.
    """
    text = escape_html(source or "")
    marker = _pick_marker(text)
    if marker is None:
        return text
    placeholders = _Placeholders(marker)

    text = placeholders.extract(_STRING_RE, text, "string")

    if language == "html":
        text = placeholders.extract(_HTML_COMMENT_RE, text, "comment")
        text = _style_html_tags(text, placeholders)
    elif language == "css":
        text = placeholders.extract(_BLOCK_COMMENT_RE, text, "comment")
        text = _CSS_PROPERTY_RE.sub(
            lambda match: placeholders.add(match.group(1), "property") + ":", text
        )
    else:
        text = placeholders.extract(_BLOCK_COMMENT_RE, text, "comment")
        text = placeholders.extract(_LINE_COMMENT_RE, text, "comment")
        if language == "python":
            text = placeholders.extract(_HASH_COMMENT_RE, text, "comment")
        text = _style_code(text, language, placeholders)

    return placeholders.restore(text)


def _style_html_tags(text: str, placeholders: _Placeholders) -> str:
    def style_tag(match: re.Match[str]) -> str:
        opener, name, attributes, closer = match.groups()
        attributes = _HTML_ATTR_RE.sub(
            lambda attr: attr.group(1) + placeholders.add(attr.group(2), "attr") + "=",
            attributes,
        )
        return f"{opener}{placeholders.add(name, 'tag')}{attributes}{closer}"

    return _HTML_TAG_RE.sub(style_tag, text)


def _style_code(text: str, language: str, placeholders: _Placeholders) -> str:
    keyword_re = _KEYWORD_RES.get(language, _KEYWORD_RES[DEFAULT_KEYWORD_LANGUAGE])
    # Keywords, then numbers, then call sites: a keyword followed by "(" is
    # already hidden when the function pass runs.
    passes = (
        (keyword_re, "keyword"),
        (_NUMBER_RE, "number"),
    )
    for pattern, kind in passes:
        text = placeholders.map_visible(
            text,
            lambda chunk, pattern=pattern, kind=kind: placeholders.extract(pattern, chunk, kind),
        )
    return placeholders.map_visible(
        text,
        lambda chunk: _FUNCTION_RE.sub(
            lambda match: placeholders.add(match.group(1), "function") + "(", chunk
        ),
    )


@lru_cache(maxsize=128)
def cached_highlight(source: str, language: str) -> str:
    """``highlight`` memoized on content and language.

    Saving or restoring a file changes its content, which is a new key, so
    stale markup is never served.
    """
    return highlight(source, language)
