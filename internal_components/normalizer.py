"""
Markup normalization

XML serialization self-closes every empty element (<p/>), which HTML5 parsers
read as an opening tag. The normalizer rewrites those to explicit open/close
pairs while keeping void elements (<br/>, <img/>) self-closed.
"""

import re
from typing import Any, Optional, Protocol


class MarkupNormalizer(Protocol):
    def process(self, markup: str, context: Optional[Any]) -> str:
        ...


class BodyTransformer(Protocol):
    def transform(self, markup: str, transaction_id: str, *context: Any) -> str:
        ...


# Elements that HTML5 defines as having no content
VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "command",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# <tag attr="..."/> with quoted attribute values that may contain '>'
SELF_CLOSING_TAG_PATTERN = re.compile(
    r"<([A-Za-z][\w:.-]*)((?:\s+[^\s=/>]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'))?)*)\s*/>"
)


class Html5SelfClosingTagProcessor:
    """Expands self-closed non-void elements into open/close pairs"""

    def process(self, markup: Optional[str], context: Optional[Any] = None) -> str:
        if not markup:
            return markup or ""

        def expand(match):
            tag, attributes = match.group(1), match.group(2)
            if tag.lower() in VOID_ELEMENTS:
                return f"<{tag}{attributes}/>"
            return f"<{tag}{attributes}></{tag}>"

        return SELF_CLOSING_TAG_PATTERN.sub(expand, markup)


class NormalizingBodyTransformer:
    """
    Minimal body transformer: normalizes the fragment and nothing else.

    Used when no dedicated body transformation service is configured, e.g. from
    the command line.
    """

    def __init__(self, normalizer: Optional[MarkupNormalizer] = None):
        self.normalizer = normalizer or Html5SelfClosingTagProcessor()

    def transform(self, markup: str, transaction_id: str, *context: Any) -> str:
        return self.normalizer.process(markup, None).strip()
