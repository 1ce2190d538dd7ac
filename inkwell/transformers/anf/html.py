"""
Allowlist HTML sanitizer for ANF `format: "html"` text.

ANF renders only a small set of inline and block tags; everything else is
rewritten to an allowed equivalent or unwrapped so its text survives.
"""
from __future__ import annotations

from bs4 import BeautifulSoup, CData, Comment, Declaration, Doctype, ProcessingInstruction

from inkwell.extractors.shared import HTML_FORMATTER

ALLOWED_TAGS = frozenset(
    {
        "a",
        "b",
        "strong",
        "em",
        "i",
        "code",
        "del",
        "s",
        "sub",
        "sup",
        "br",
        "ul",
        "ol",
        "li",
        "p",
        "pre",
        "blockquote",
    }
)

TAG_SUBSTITUTIONS = {
    "mark": "b",
    "cite": "em",
    "u": "em",
    "ins": "em",
}

ALLOWED_ATTRIBUTES = {"a": frozenset({"href"})}


def sanitize_html(html: str) -> str:
    """
    Return `html` restricted to ANF's allowlist.

    Elements are processed innermost-first: substituted tags are renamed with
    no attributes, allowed tags keep only `href` on links, and any other
    element is unwrapped (its children take its place). Comments, CDATA and
    declarations are removed. The output is a fixed point: sanitizing it
    again returns it unchanged.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for node in soup.find_all(string=lambda s: isinstance(s, (CData, Comment, Declaration, Doctype, ProcessingInstruction))):
        node.extract()

    for el in reversed(soup.find_all(True)):
        name = el.name.lower()
        substitute = TAG_SUBSTITUTIONS.get(name)
        if substitute:
            el.name = substitute
            el.attrs = {}
            continue
        if name in ALLOWED_TAGS:
            allowed = ALLOWED_ATTRIBUTES.get(name, frozenset())
            el.attrs = {key: value for key, value in el.attrs.items() if key in allowed}
            continue
        el.unwrap()

    return soup.decode(formatter=HTML_FORMATTER)
