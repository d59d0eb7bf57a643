# ABOUTME: HTML sanitizer with per-element hooks and the grabber's filter chain.
# ABOUTME: Filters run on each element before the allow-list rules strip unsafe markup.

import re
from collections.abc import Callable, Iterable
from urllib.parse import urljoin, urlparse

import structlog
from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import NavigableString, PreformattedString
from bs4.formatter import HTMLFormatter

from html_grabber.models import BlockedHostPredicate, URLRewriter

log = structlog.get_logger()

Filter = Callable[[Tag, "Sanitizer"], None]

ALLOWED_TAGS = frozenset(
    {
        "a",
        "abbr",
        "address",
        "article",
        "aside",
        "audio",
        "b",
        "bdi",
        "bdo",
        "blockquote",
        "br",
        "caption",
        "cite",
        "code",
        "col",
        "colgroup",
        "dd",
        "del",
        "details",
        "dfn",
        "div",
        "dl",
        "dt",
        "em",
        "figcaption",
        "figure",
        "footer",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "i",
        "iframe",
        "img",
        "ins",
        "kbd",
        "li",
        "main",
        "mark",
        "nav",
        "ol",
        "p",
        "picture",
        "pre",
        "q",
        "rp",
        "rt",
        "ruby",
        "s",
        "samp",
        "section",
        "small",
        "source",
        "span",
        "strike",
        "strong",
        "sub",
        "summary",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "time",
        "tr",
        "track",
        "u",
        "ul",
        "var",
        "video",
        "wbr",
    }
)

# Removed together with their content.
FORBIDDEN_TAGS = frozenset(
    {
        "applet",
        "base",
        "button",
        "embed",
        "form",
        "frame",
        "frameset",
        "head",
        "input",
        "link",
        "math",
        "meta",
        "noframes",
        "noscript",
        "object",
        "option",
        "script",
        "select",
        "style",
        "svg",
        "template",
        "textarea",
        "title",
    }
)

ALLOWED_ATTRS = frozenset(
    {
        "align",
        "allowfullscreen",
        "alt",
        "cite",
        "class",
        "colspan",
        "controls",
        "datetime",
        "dir",
        "frameborder",
        "height",
        "href",
        "hreflang",
        "id",
        "lang",
        "loading",
        "poster",
        "rel",
        "rowspan",
        "scope",
        "span",
        "src",
        "srcset",
        "start",
        "summary",
        "title",
        "type",
        "width",
    }
)

URI_ATTRS = frozenset({"cite", "href", "poster", "src", "srcset"})
UNSAFE_URI_RE = re.compile(r"^(?:javascript|vbscript|data):", re.IGNORECASE)
IMAGE_DATA_URI_RE = re.compile(r"^data:image/", re.IGNORECASE)
URI_WHITESPACE_RE = re.compile(r"[\x00-\x20]+")
ABSOLUTE_URL_RE = re.compile(r"^https?://")

DEFAULT_DENIED_ATTRS = ("id", "class")

# Sorted attributes and HTML5 void elements keep the output stable when it
# is sanitized again.
HTML_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

# Elements that render as blocks, so whitespace between them is not content.
BLOCK_TAGS = frozenset(
    {
        "address",
        "article",
        "aside",
        "blockquote",
        "caption",
        "colgroup",
        "dd",
        "details",
        "div",
        "dl",
        "dt",
        "figcaption",
        "figure",
        "footer",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "li",
        "main",
        "nav",
        "ol",
        "p",
        "pre",
        "section",
        "summary",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "ul",
    }
)
PRETTY_INDENT = "  "


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse an HTML fragment, keeping every attribute value a plain string."""
    return BeautifulSoup(html, "html.parser", multi_valued_attributes=None)


class Sanitizer:
    """Allow-list HTML sanitizer with per-element hooks.

    The tree is walked in document order. For each element every hook runs
    first, in registration order; a hook that detaches the element ends its
    processing. Then forbidden elements are dropped with their content,
    attributes are filtered, children are walked, and elements outside the
    allowed tags are unwrapped.
    """

    def __init__(
        self,
        allowed_tags: Iterable[str] = ALLOWED_TAGS,
        allowed_attrs: Iterable[str] = ALLOWED_ATTRS,
        add_attrs: Iterable[str] = (),
    ) -> None:
        self.allowed_tags = frozenset(allowed_tags)
        self.allowed_attrs = frozenset(allowed_attrs) | frozenset(add_attrs)
        self.hooks: list[Filter] = []

    def add_hook(self, hook: Filter) -> None:
        self.hooks.append(hook)

    def sanitize(self, html: str) -> str:
        doc = parse_fragment(html)
        self._walk(doc)
        return doc.decode(formatter=HTML_FORMATTER)

    def _walk(self, root: Tag) -> None:
        # A (tag, True) entry marks the end of a tag's subtree, where
        # disallowed tags are unwrapped.
        stack = [(child, False) for child in reversed(list(root.children))]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                if node.name not in self.allowed_tags:
                    node.unwrap()
                continue
            if isinstance(node, PreformattedString):
                # comments, doctypes, CDATA and processing instructions
                node.extract()
            elif isinstance(node, Tag) and self._sanitize_element(node):
                stack.append((node, True))
                stack.extend((child, False) for child in reversed(list(node.children)))

    def _sanitize_element(self, tag: Tag) -> bool:
        """Run hooks and attribute rules on a tag; return False if it was removed."""
        for hook in self.hooks:
            hook(tag, self)
            if tag.parent is None:
                log.debug("element_removed", tag=tag.name)
                return False

        if tag.name in FORBIDDEN_TAGS:
            tag.decompose()
            return False

        self._sanitize_attributes(tag)
        return True

    def _sanitize_attributes(self, tag: Tag) -> None:
        for attr in list(tag.attrs):
            if attr not in self.allowed_attrs:
                del tag[attr]
                continue
            if attr in URI_ATTRS and not self._is_safe_uri(attr, tag[attr]):
                del tag[attr]

    @staticmethod
    def _is_safe_uri(attr: str, value: str) -> bool:
        value = URI_WHITESPACE_RE.sub("", value)
        if not UNSAFE_URI_RE.match(value):
            return True
        return attr == "src" and bool(IMAGE_DATA_URI_RE.match(value))


def _hostname(url: str) -> str:
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return hostname or "undefined"


def remove_attributes(deny_list: Iterable[str] = DEFAULT_DENIED_ATTRS) -> Filter:
    """Remove the denied attributes from every element."""
    deny_list = tuple(deny_list)

    def _filter(tag: Tag, _context: Sanitizer) -> None:
        for attr in deny_list:
            if tag.has_attr(attr):
                del tag[attr]

    return _filter


def remove_image_tracker() -> Filter:
    """Remove 1x1 images, usually tracking pixels."""

    def _filter(tag: Tag, _context: Sanitizer) -> None:
        if tag.name == "img" and tag.get("height") == "1" and tag.get("width") == "1":
            tag.extract()

    return _filter


def remove_blocked_host_links(is_blocked_host: BlockedHostPredicate) -> Filter:
    """Remove elements whose src or href points to a blocked host."""

    def _filter(tag: Tag, _context: Sanitizer) -> None:
        url = tag.get("src") or tag.get("href")
        if url and is_blocked_host(_hostname(url)):
            tag.extract()

    return _filter


def externalize_links() -> Filter:
    """Open links in a new window without leaking the opener or referrer."""

    def _filter(tag: Tag, _context: Sanitizer) -> None:
        if tag.name == "a" and tag.has_attr("href"):
            tag["target"] = "_blank"
            tag["rel"] = "noopener noreferrer"

    return _filter


def add_lazy_loading() -> Filter:
    def _filter(tag: Tag, _context: Sanitizer) -> None:
        if tag.name in ("img", "iframe"):
            tag["loading"] = "lazy"

    return _filter


def rewrite_src_attribute(rewrite_url: URLRewriter) -> Filter:
    def _filter(tag: Tag, _context: Sanitizer) -> None:
        src = tag.get("src")
        if src:
            tag["src"] = rewrite_url(src)

    return _filter


def rebase_src_attribute(base_url: str) -> Filter:
    """Make relative src (or href) values absolute against base_url."""

    def _filter(tag: Tag, _context: Sanitizer) -> None:
        attr = "src" if tag.has_attr("src") else "href" if tag.has_attr("href") else None
        if attr is None:
            return
        value = tag[attr]
        if not value or ABSOLUTE_URL_RE.match(value):
            return
        try:
            tag[attr] = urljoin(base_url, value)
        except ValueError:
            log.debug("rebase_failed", attr=attr, value=value)

    return _filter


def build_filter_chain(
    base_url: str | None = None,
    is_blocked_host: BlockedHostPredicate | None = None,
    rewrite_url: URLRewriter | None = None,
) -> list[Filter]:
    """Build the ordered filter chain for one sanitization run.

    Order: URL rewriter, host blocker, attribute stripper, tracker remover,
    link externalizer, lazy-load annotator, base URL rebaser.
    """
    filters = [
        remove_attributes(),
        remove_image_tracker(),
        externalize_links(),
        add_lazy_loading(),
    ]
    if base_url:
        filters.append(rebase_src_attribute(base_url))
    if is_blocked_host:
        filters.insert(0, remove_blocked_host_links(is_blocked_host))
    if rewrite_url:
        filters.insert(0, rewrite_src_attribute(rewrite_url))
    return filters


def sanitize(
    html: str,
    *,
    base_url: str | None = None,
    is_blocked_host: BlockedHostPredicate | None = None,
    rewrite_url: URLRewriter | None = None,
) -> str:
    """Sanitize an HTML fragment through the filter chain."""
    sanitizer = Sanitizer(add_attrs=["target"])
    for hook in build_filter_chain(base_url, is_blocked_host, rewrite_url):
        sanitizer.add_hook(hook)
    return sanitizer.sanitize(html)


def _holds_only_blocks(node: Tag) -> bool:
    if node.name == "pre":
        return False
    children = [
        child
        for child in node.children
        if not (isinstance(child, NavigableString) and not child.strip())
    ]
    return bool(children) and all(
        isinstance(child, Tag) and child.name in BLOCK_TAGS for child in children
    )


def _tag_edges(doc: BeautifulSoup, tag: Tag) -> tuple[str, str]:
    closing = f"</{tag.name}>"
    shell = doc.new_tag(tag.name, attrs=dict(tag.attrs))
    return shell.decode(formatter=HTML_FORMATTER)[: -len(closing)], closing


def prettify(html: str) -> str:
    """Reindent an HTML fragment.

    Only elements that hold nothing but block elements are broken over
    lines, one child per line, indented two spaces per level. Anything
    holding text or inline markup is written on one line exactly as it
    was, so the rendered text never changes.
    """
    doc = parse_fragment(html)
    if not _holds_only_blocks(doc):
        return doc.decode(formatter=HTML_FORMATTER).strip()

    lines: list[str] = []
    stack: list[tuple[Tag | str, int]] = [
        (child, 0) for child in reversed(doc.find_all(recursive=False))
    ]
    while stack:
        node, depth = stack.pop()
        indent = PRETTY_INDENT * depth
        if isinstance(node, str):
            # closing tag of a broken element
            lines.append(indent + node)
        elif _holds_only_blocks(node):
            opening, closing = _tag_edges(doc, node)
            lines.append(indent + opening)
            stack.append((closing, depth))
            stack.extend(
                (child, depth + 1) for child in reversed(node.find_all(recursive=False))
            )
        else:
            lines.append(indent + node.decode(formatter=HTML_FORMATTER))
    return "\n".join(lines)
