"""Find preloadable <img>, <link> and <script> references in HTML."""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import IO, Union

from .assets import Asset, RequestType, is_absolute_url
from .exceptions import ParseError

REL_STYLESHEET = "stylesheet"
REL_IMPORT = "import"

# Elements that never have content and are never closed explicitly.
VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements whose content a scripting-enabled HTML5 parser reads as text.
TEXT_ONLY_ELEMENTS = frozenset({"noscript", "textarea", "title"})


@dataclass
class HtmlNode:
    """A parsed HTML element. The document root has tag ``#document``."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list[HtmlNode] = field(default_factory=list)

    def get(self, name: str) -> str:
        return self.attrs.get(name, "")


Markup = Union[str, bytes, IO[str], IO[bytes], HtmlNode]


class TreeBuilder(HTMLParser):
    """HTML parser that builds a tree of :class:`HtmlNode`.

    Text, comments and declarations are dropped; only element structure
    and attributes are kept.
    """

    def __init__(self) -> None:
        super().__init__()
        self.root = HtmlNode("#document")
        self._stack: list[HtmlNode] = [self.root]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attr_dict: dict[str, str] = {}
        for name, value in attrs:
            # First occurrence wins, as in browsers.
            attr_dict.setdefault(name, value or "")
        node = HtmlNode(tag, attr_dict)
        self._stack[-1].children.append(node)
        if tag not in VOID_ELEMENTS:
            self._stack.append(node)

    def handle_startendtag(
        self, tag: str, attrs: list[tuple[str, str | None]]
    ) -> None:
        self.handle_starttag(tag, attrs)
        if tag not in VOID_ELEMENTS:
            self._stack.pop()

    def handle_endtag(self, tag: str) -> None:
        for i in range(len(self._stack) - 1, 0, -1):
            if self._stack[i].tag == tag:
                del self._stack[i:]
                return
        # Stray end tag: nothing open to close.


def _read_markup(markup: str | bytes | IO[str] | IO[bytes]) -> str:
    if hasattr(markup, "read"):
        markup = markup.read()  # type: ignore[union-attr]
    if isinstance(markup, bytes):
        # Invalid sequences become U+FFFD.
        return markup.decode("utf-8", errors="replace")
    if isinstance(markup, str):
        return markup
    raise ParseError(f"cannot parse {type(markup).__name__} as HTML")


def parse_html(markup: Markup) -> HtmlNode:
    """Parse HTML into a node tree.

    Args:
        markup: HTML as ``str``, UTF-8 ``bytes``, a readable file object,
            or an already-parsed :class:`HtmlNode` (returned as-is).

    Raises:
        ParseError: If the document cannot be decoded or parsed.
    """
    if isinstance(markup, HtmlNode):
        return markup
    text = _read_markup(markup)
    builder = TreeBuilder()
    try:
        builder.feed(text)
        builder.close()
    except (AssertionError, ValueError) as e:
        raise ParseError(str(e)) from e
    return builder.root


def _node_asset(node: HtmlNode) -> Asset | None:
    """Return the candidate asset for a node, or None if it is not one."""
    if node.tag == "link":
        rel = node.get("rel")
        if rel == REL_STYLESHEET:
            return Asset(node.get("href"), RequestType.STYLE)
        if rel == REL_IMPORT:
            return Asset(node.get("href"))
        return None
    if node.tag == "script":
        return Asset(node.get("src"), RequestType.SCRIPT)
    if node.tag == "img":
        return Asset(node.get("src"), RequestType.IMAGE)
    return None


def search_nodes(root: HtmlNode, exclude_absolute: bool = False) -> list[Asset]:
    """Collect assets below ``root`` in document order.

    Candidate elements are not descended into; every other element's
    children are searched. Markup inside ``<noscript>``, ``<title>`` and
    ``<textarea>`` is never a candidate.
    """
    assets: list[Asset] = []
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if node.tag in TEXT_ONLY_ELEMENTS:
            continue
        asset = _node_asset(node)
        if asset is None:
            stack.extend(reversed(node.children))
            continue
        if not asset.url:
            continue
        if exclude_absolute and is_absolute_url(asset.url):
            continue
        assets.append(asset)
    return assets


def unique_assets(assets: list[Asset]) -> list[Asset]:
    """Keep one asset per URL. The last one wins, at the first URL's position."""
    by_url: dict[str, Asset] = {}
    for asset in assets:
        by_url[asset.url] = asset
    return list(by_url.values())


def scan_html(
    markup: Markup,
    exclude_absolute: bool = False,
    unique: bool = False,
) -> list[Asset]:
    """Find assets referenced in an HTML document.

    Only ``<img src>``, ``<script src>`` and ``<link href>`` with
    ``rel="stylesheet"`` or ``rel="import"`` are considered.

    Args:
        markup: The document, see :func:`parse_html`.
        exclude_absolute: Discard ``http:``/``https:`` URLs.
        unique: Return a single asset per URL.

    Raises:
        ParseError: If the document cannot be parsed.
    """
    assets = search_nodes(parse_html(markup), exclude_absolute)
    if unique:
        return unique_assets(assets)
    return assets
