"""Approximate lexical scans for CSS, JavaScript and plain text.

These are regex counts, not parses.  Nested at-rules, comments, strings and
template literals are not understood, so figures for CSS and JavaScript are
structural estimates only.
"""

import re

from app.models.analysis import CssAnalysis, JavaScriptAnalysis, TextAnalysis

# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------
_CSS_RULE_RE = re.compile(r"[^{}]+\{[^}]*\}")
_CSS_MEDIA_RE = re.compile(r"@media[^{]+\{[\s\S]+?\}\s*\}")
_CSS_VARIABLE_RE = re.compile(r"--[\w-]+:")
_CSS_SELECTOR_RE = re.compile(r"[^{]+(?=\s*\{)")

# ---------------------------------------------------------------------------
# JavaScript
# ---------------------------------------------------------------------------
_JS_FUNCTION_RE = re.compile(r"function\s+\w+")
_JS_ARROW_RE = re.compile(r"=>")
_JS_CLASS_RE = re.compile(r"class\s+\w+")
_JS_IMPORT_RE = re.compile(r"import\s+.+\s+from")
_JS_EXPORT_RE = re.compile(r"export\s+(?:default\s+)?")
_JS_ASYNC_RE = re.compile(r"async\s+")


def _count(pattern: re.Pattern, text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def analyze_css(content: str) -> CssAnalysis:
    return CssAnalysis(
        rules=_count(_CSS_RULE_RE, content),
        media_queries=_count(_CSS_MEDIA_RE, content),
        css_variables=len(set(_CSS_VARIABLE_RE.findall(content))),
        selectors=_count(_CSS_SELECTOR_RE, content),
        size=len(content),
    )


def analyze_javascript(content: str) -> JavaScriptAnalysis:
    return JavaScriptAnalysis(
        functions=_count(_JS_FUNCTION_RE, content),
        arrow_functions=_count(_JS_ARROW_RE, content),
        classes=_count(_JS_CLASS_RE, content),
        imports=_count(_JS_IMPORT_RE, content),
        exports=_count(_JS_EXPORT_RE, content),
        async_functions=_count(_JS_ASYNC_RE, content),
        size=len(content),
    )


def analyze_text(content: str) -> TextAnalysis:
    """Count lines (split on ``\\n``), whitespace-delimited words and characters."""
    return TextAnalysis(
        lines=len(content.split("\n")),
        words=len(content.split()),
        characters=len(content),
    )
