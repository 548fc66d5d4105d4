"""Quality and accessibility checks over a parsed HTML document.

Each check is independent: all of them run on every document and any number
may report a finding.
"""

from typing import Callable, List, Optional, Tuple

from bs4 import BeautifulSoup

from app.models.analysis import Issue

# More inline-styled elements than this is reported as advisory info.
INLINE_STYLE_THRESHOLD = 10

Check = Callable[[BeautifulSoup], Optional[Issue]]


def _missing_charset(soup: BeautifulSoup) -> Optional[Issue]:
    if soup.select_one("meta[charset]") is None:
        return Issue(severity="warning", message="Missing charset meta tag")
    return None


def _missing_viewport(soup: BeautifulSoup) -> Optional[Issue]:
    if soup.select_one('meta[name="viewport"]') is None:
        return Issue(
            severity="warning",
            message="Missing viewport meta tag for mobile responsiveness",
        )
    return None


def _images_without_alt(soup: BeautifulSoup) -> Optional[Issue]:
    count = len(soup.select("img:not([alt])"))
    if count > 0:
        return Issue(severity="accessibility", message=f"{count} images missing alt attributes")
    return None


def _empty_links(soup: BeautifulSoup) -> Optional[Issue]:
    count = len(soup.select('a:not([href]), a[href=""], a[href="#"]'))
    if count > 0:
        return Issue(severity="warning", message=f"{count} links with empty or invalid href")
    return None


def _inline_styles(soup: BeautifulSoup) -> Optional[Issue]:
    count = len(soup.select("[style]"))
    if count > INLINE_STYLE_THRESHOLD:
        return Issue(
            severity="info",
            message=f"{count} elements with inline styles (consider using CSS classes)",
        )
    return None


CHECKS: Tuple[Check, ...] = (
    _missing_charset,
    _missing_viewport,
    _images_without_alt,
    _empty_links,
    _inline_styles,
)


def detect_issues(soup: BeautifulSoup) -> List[Issue]:
    """Run every check against *soup* and return the findings in check order."""
    issues: List[Issue] = []
    for check in CHECKS:
        issue = check(soup)
        if issue is not None:
            issues.append(issue)
    return issues
