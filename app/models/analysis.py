"""Typed analysis records, one variant per content kind.

:data:`ContentAnalysis` is a discriminated union keyed on ``kind``; exactly
one variant is produced per fetched document.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ContentKind = Literal["html", "json", "css", "javascript", "text"]
Severity = Literal["warning", "accessibility", "info"]


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str


class ScriptInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: Optional[str] = None
    inline: Optional[str] = None
    type: str = "text/javascript"


class FormInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    required: bool


class FormInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    method: str
    inputs: List[FormInput]


class HtmlAssets(BaseModel):
    """Samples and inline bodies pulled out of an HTML document."""

    model_config = ConfigDict(frozen=True)

    scripts: List[ScriptInfo]  # first 10
    stylesheets: List[str]  # first 10
    forms: List[FormInfo]  # first 5
    inline_scripts: List[str]
    inline_styles: List[str]


class HtmlAnalysis(BaseModel):
    """Analysis of an HTML page.

    When parsing fails only ``kind`` and ``error`` are set; every other field
    stays ``None``.  Callers must read a populated ``error`` as "analysis
    unavailable", not as "no issues found".
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["html"] = "html"
    error: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    scripts: Optional[int] = None
    stylesheets: Optional[int] = None
    inline_styles: Optional[int] = None
    forms: Optional[int] = None
    links: Optional[int] = None
    images: Optional[int] = None
    word_count: Optional[int] = None
    frameworks: Optional[List[str]] = None
    issues: Optional[List[Issue]] = None
    assets: Optional[HtmlAssets] = None


class JsonAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["json"] = "json"
    valid: bool
    structure: Any = None
    size: Optional[int] = None
    error: Optional[str] = None
    text: Optional[str] = None  # raw body, kept only when parsing failed


class CssAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["css"] = "css"
    rules: int
    media_queries: int
    css_variables: int
    selectors: int
    size: int


class JavaScriptAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["javascript"] = "javascript"
    functions: int
    arrow_functions: int
    classes: int
    imports: int
    exports: int
    async_functions: int
    size: int


class TextAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    lines: int
    words: int
    characters: int


ContentAnalysis = Annotated[
    Union[HtmlAnalysis, JsonAnalysis, CssAnalysis, JavaScriptAnalysis, TextAnalysis],
    Field(discriminator="kind"),
]
