"""Front-end framework detection from page markup and script sources.

Detection is a best-effort heuristic built from independent *signals*, each a
case-sensitive substring looked up in one of two corpora:

``markup``
    The raw HTML text.  Directive-style attributes such as ``ng-app`` or
    ``v-for`` appear here even before any JavaScript has run.

``scripts``
    The ``src`` attributes of every discovered ``<script>``, joined with
    spaces.  Bundles named after their library (``jquery.min.js``,
    ``react-dom.production.js``, …) are matched here.

Renamed or inlined bundles are missed, and coincidental substrings produce
false positives.  Neither is treated as a defect.
"""

from typing import Iterable, List, Literal, NamedTuple

Corpus = Literal["markup", "scripts"]


class Signal(NamedTuple):
    corpus: Corpus
    needle: str
    framework: str


# Order matters only for the order of the returned names.
SIGNALS = (
    Signal("markup", "ng-app", "AngularJS"),
    Signal("markup", "ng-controller", "AngularJS"),
    Signal("markup", "v-model", "Vue.js"),
    Signal("markup", "v-for", "Vue.js"),
    Signal("markup", "data-react", "React"),
    Signal("scripts", "react", "React"),
    Signal("scripts", "vue", "Vue.js"),
    Signal("scripts", "angular", "Angular"),
    Signal("scripts", "jquery", "jQuery"),
    Signal("scripts", "bootstrap", "Bootstrap"),
    Signal("scripts", "tailwind", "Tailwind CSS"),
)


def detect_frameworks(html: str, script_srcs: Iterable[str]) -> List[str]:
    """Return the de-duplicated names of frameworks signalled in a page.

    Args:
        html: Raw HTML string returned by the fetcher.
        script_srcs: ``src`` values of the page's ``<script>`` elements.

    Returns:
        Framework names in first-match order, each listed once.
    """
    corpora = {
        "markup": html,
        "scripts": " ".join(src for src in script_srcs if src),
    }

    found: List[str] = []
    for signal in SIGNALS:
        if signal.framework in found:
            continue
        if signal.needle in corpora[signal.corpus]:
            found.append(signal.framework)
    return found
