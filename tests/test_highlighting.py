from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from promptsite.core.highlighting import (
    KEYWORDS,
    cached_highlight,
    escape_html,
    highlight,
    keywords_for,
)


def _balanced(markup: str) -> bool:
    return markup.count("<span") == markup.count("</span>")


def test_html_scenario() -> None:
    source = "<div>Hi & bye</div>"
    assert "&lt;div&gt;" in escape_html(source)
    markup = highlight(source, "html")
    assert markup == (
        '&lt;<span class="token-tag">div</span>&gt;Hi &amp; bye'
        '&lt;/<span class="token-tag">div</span>&gt;'
    )
    assert "token-keyword" not in markup
    assert "token-number" not in markup


def test_html_attributes_and_strings() -> None:
    markup = highlight('<a href="about.html" class="btn">Go</a>', "html")
    assert '<span class="token-attr">href</span>=<span class="token-string">"about.html"</span>' in markup
    assert '<span class="token-attr">class</span>=<span class="token-string">"btn"</span>' in markup
    assert markup.count('<span class="token-tag">a</span>') == 2


def test_html_skips_code_passes() -> None:
    markup = highlight("<p>return 42 if(x)</p>", "html")
    assert "token-keyword" not in markup
    assert "token-number" not in markup
    assert "token-function" not in markup


def test_html_comment_shields_tags() -> None:
    markup = highlight("<!-- <b>old</b> -->", "html")
    assert markup == '<span class="token-comment">&lt;!-- &lt;b&gt;old&lt;/b&gt; --&gt;</span>'


def test_escaping_is_applied_once() -> None:
    assert highlight("a & b", "other") == "a &amp; b"
    assert "&amp;amp;" not in highlight("x && y < z", "javascript")
    assert highlight("&amp;", "other") == "&amp;amp;"
    assert escape_html("<&>") == "&lt;&amp;&gt;"


@pytest.mark.parametrize(
    "source",
    [
        "",
        '"',
        "'unterminated",
        "/* never closed",
        "<!-- never closed",
        "___PH_0___",
        "\ue0000\ue000 + 1",
        "\x00\x01\x02",
        'say("a\\"b") // "nested" \'quotes\'',
        "def f():\n    return '#' # trailing\n",
    ],
)
@pytest.mark.parametrize("language", ["html", "css", "javascript", "python", "json", "mystery"])
def test_never_emits_unbalanced_markup(source: str, language: str) -> None:
    markup = highlight(source, language)
    assert _balanced(markup)


def test_internal_marker_text_survives() -> None:
    assert highlight("___PH_0___", "javascript") == "___PH_0___"
    markup = highlight("\ue0000\ue000 + 1", "javascript")
    assert markup.count("\ue000") == 2
    assert '<span class="token-number">1</span>' in markup


def test_empty_source() -> None:
    assert highlight("", "python") == ""


def test_unterminated_string_degrades_gracefully() -> None:
    assert highlight('"', "javascript") == '"'
    assert highlight("/* abc", "css") == "/* abc"


def test_strings_hide_keywords_and_comment_markers() -> None:
    markup = highlight('const url = "http://example.com"; // note', "javascript")
    assert '<span class="token-keyword">const</span>' in markup
    assert '<span class="token-string">"http://example.com"</span>' in markup
    assert '<span class="token-comment">// note</span>' in markup


def test_python_keywords_inside_strings_stay_strings() -> None:
    markup = highlight('print("return if")', "python")
    assert markup == (
        '<span class="token-keyword">print</span>(<span class="token-string">"return if"</span>)'
    )


def test_escaped_quote_does_not_end_string() -> None:
    markup = highlight(r'x = "a\"b" + 1', "javascript")
    assert r'<span class="token-string">"a\"b"</span>' in markup
    assert '<span class="token-number">1</span>' in markup


def test_comment_swallows_inner_string_styling() -> None:
    markup = highlight('// say "hi"', "javascript")
    assert markup == '<span class="token-comment">// say "hi"</span>'


def test_python_hash_comments() -> None:
    source = 'def greet(name):\n    # say hi\n    return "hi " + name  # done\n'
    markup = highlight(source, "python")
    assert '<span class="token-keyword">def</span> <span class="token-function">greet</span>(name):' in markup
    assert '<span class="token-comment"># say hi</span>' in markup
    assert '<span class="token-comment"># done</span>' in markup
    assert '<span class="token-keyword">return</span> <span class="token-string">"hi "</span>' in markup


def test_hash_is_not_a_comment_outside_python() -> None:
    markup = highlight("let a = b # c", "javascript")
    assert "token-comment" not in markup


def test_block_comments_hide_keywords() -> None:
    markup = highlight("/* return 1 */\nreturn 2;", "java")
    assert markup == (
        '<span class="token-comment">/* return 1 */</span>\n'
        '<span class="token-keyword">return</span> <span class="token-number">2</span>;'
    )


def test_keywords_match_whole_tokens_only() -> None:
    markup = highlight("const constant = 10;", "javascript")
    assert markup == (
        '<span class="token-keyword">const</span> constant = <span class="token-number">10</span>;'
    )


def test_keyword_wins_over_function_call() -> None:
    markup = highlight("if(x) { return foo(1); }", "javascript")
    assert '<span class="token-keyword">if</span>(x)' in markup
    assert '<span class="token-function">if</span>' not in markup
    assert '<span class="token-function">foo</span>(<span class="token-number">1</span>)' in markup


def test_numbers_inside_identifiers_are_not_styled() -> None:
    markup = highlight("value2 = x1 + 3", "python")
    assert markup.count("token-number") == 1


def test_entities_are_not_mistaken_for_calls() -> None:
    markup = highlight("a = b>(c)", "javascript")
    assert "&gt;(c)" in markup
    assert "token-function" not in markup


def test_css_properties_and_comments() -> None:
    markup = highlight("/* color: red */\nbody { color: red; }", "css")
    assert markup == (
        '<span class="token-comment">/* color: red */</span>\n'
        'body { <span class="token-property">color</span>: red; }'
    )


def test_css_skips_keyword_pass() -> None:
    markup = highlight("a { content: 'return'; z-index: 10; }", "css")
    assert "token-keyword" not in markup
    assert "token-number" not in markup
    assert '<span class="token-property">z-index</span>' in markup


def test_json_keywords_and_numbers() -> None:
    markup = highlight('{"debug": true, "port": 8080}', "json")
    assert '<span class="token-string">"debug"</span>' in markup
    assert '<span class="token-keyword">true</span>' in markup
    assert '<span class="token-number">8080</span>' in markup


def test_unknown_language_falls_back_to_javascript_keywords() -> None:
    assert keywords_for("rust") == KEYWORDS["javascript"]
    markup = highlight("let x = await load();", "rust")
    assert '<span class="token-keyword">let</span>' in markup
    assert '<span class="token-keyword">await</span>' in markup
    assert '<span class="token-function">load</span>()' in markup


def test_typescript_has_its_own_keywords() -> None:
    markup = highlight("interface Props { readonly id: number }", "typescript")
    assert '<span class="token-keyword">interface</span>' in markup
    assert '<span class="token-keyword">readonly</span>' in markup
    assert "token-keyword\">interface" not in highlight("interface X", "javascript")


def test_cached_highlight_keys_on_content_and_language() -> None:
    first = cached_highlight("return 1", "python")
    assert cached_highlight("return 1", "python") is first
    assert cached_highlight("return 2", "python") != first
    assert cached_highlight("return 1", "css") == "return 1"
