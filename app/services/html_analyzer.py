import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from app.models.analysis import FormInfo, FormInput, HtmlAnalysis, HtmlAssets, ScriptInfo
from app.services.detector import detect_frameworks
from app.services.issues import detect_issues

logger = logging.getLogger(__name__)

MAX_SCRIPT_SAMPLES = 10
MAX_STYLESHEET_SAMPLES = 10
MAX_FORM_SAMPLES = 5


def _normalize_url(base_url: str, href: str) -> str:
    """Return an absolute URL, resolving *href* against *base_url*."""
    return urljoin(base_url, href)


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return str(value).strip() if value is not None else ""


def _extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    if title_tag:
        title = title_tag.get_text(strip=True)
        if title:
            return title
    return "Untitled"


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    meta = soup.find("meta", attrs={"name": name})
    if meta and meta.get("content"):
        return str(meta["content"]).strip()
    return ""


def _extract_scripts(soup: BeautifulSoup, base_url: str) -> List[ScriptInfo]:
    scripts: List[ScriptInfo] = []
    for script in soup.find_all("script"):
        src = _attr(script, "src")
        body = script.string if script.string is not None else script.get_text()
        inline: Optional[str] = None if src else (body or None)
        if not src and not inline:
            continue
        scripts.append(
            ScriptInfo(
                src=_normalize_url(base_url, src) if src else None,
                inline=inline,
                type=_attr(script, "type") or "text/javascript",
            )
        )
    return scripts


def _extract_stylesheets(soup: BeautifulSoup, base_url: str) -> List[str]:
    stylesheets: List[str] = []
    for link in soup.select("link[rel~=stylesheet]"):
        href = _attr(link, "href")
        stylesheets.append(_normalize_url(base_url, href) if href else "")
    return stylesheets


def _extract_forms(soup: BeautifulSoup, base_url: str) -> List[FormInfo]:
    forms: List[FormInfo] = []
    for form in soup.find_all("form"):
        inputs = []
        for field in form.find_all(["input", "select", "textarea"]):
            if field.name == "input":
                field_type = _attr(field, "type").lower() or "text"
            else:
                field_type = field.name
            inputs.append(
                FormInput(
                    name=_attr(field, "name"),
                    type=field_type,
                    required=field.has_attr("required"),
                )
            )
        forms.append(
            FormInfo(
                # An empty action submits back to the page itself
                action=_normalize_url(base_url, _attr(form, "action")),
                method=_attr(form, "method").lower() or "get",
                inputs=inputs,
            )
        )
    return forms


def _count_links(soup: BeautifulSoup) -> int:
    count = 0
    for a in soup.find_all("a", href=True):
        href = _attr(a, "href")
        if href and not href.startswith("#"):
            count += 1
    return count


def _count_images(soup: BeautifulSoup) -> int:
    return sum(1 for img in soup.find_all("img") if _attr(img, "src"))


def _word_count(soup: BeautifulSoup) -> int:
    body = soup.find("body")
    if body is None:
        return 0
    return len(body.get_text().split())


def analyze_html(html: str, url: str) -> HtmlAnalysis:
    """Parse *html* and build an :class:`HtmlAnalysis`.

    *url* is only used to resolve relative ``src``/``href``/``action`` values;
    nothing is fetched.  Parse errors are not raised: they are returned as a
    degraded analysis carrying only ``error``.
    """
    try:
        soup = BeautifulSoup(html, "lxml")

        scripts = _extract_scripts(soup, url)
        stylesheets = _extract_stylesheets(soup, url)
        inline_styles = [style.get_text() for style in soup.find_all("style")]
        forms = _extract_forms(soup, url)

        frameworks = detect_frameworks(html, (s.src for s in scripts if s.src))
        issues = detect_issues(soup)

        return HtmlAnalysis(
            title=_extract_title(soup),
            description=_meta_content(soup, "description"),
            keywords=_meta_content(soup, "keywords"),
            scripts=len(scripts),
            stylesheets=len(stylesheets),
            inline_styles=len(inline_styles),
            forms=len(forms),
            links=_count_links(soup),
            images=_count_images(soup),
            word_count=_word_count(soup),
            frameworks=frameworks,
            issues=issues,
            assets=HtmlAssets(
                scripts=scripts[:MAX_SCRIPT_SAMPLES],
                stylesheets=stylesheets[:MAX_STYLESHEET_SAMPLES],
                forms=forms[:MAX_FORM_SAMPLES],
                inline_scripts=[s.inline for s in scripts if s.inline],
                inline_styles=[body for body in inline_styles if body],
            ),
        )
    except Exception as exc:
        logger.warning("HTML analysis failed for %s: %s", url, exc)
        return HtmlAnalysis(error=str(exc) or exc.__class__.__name__)
