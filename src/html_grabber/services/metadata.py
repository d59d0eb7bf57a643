# ABOUTME: Metadata extraction from a parsed page: base URL, Open Graph, images.
# ABOUTME: Anomalies degrade to None or skipped entries, never to errors.

import mimetypes
import re

import structlog
from bs4 import BeautifulSoup
from pydantic import AnyUrl, TypeAdapter, ValidationError

from html_grabber.models import ImageMeta

log = structlog.get_logger()

_url_adapter = TypeAdapter(AnyUrl)

DATA_URI_RE = re.compile(r"^data:", re.IGNORECASE)
PROTOCOL_RELATIVE_RE = re.compile(r"^//")

DESCRIPTION_META = [
    ("property", "og:description"),
    ("name", "twitter:description"),
    ("property", "twitter:description"),
    ("name", "description"),
]


def is_valid_url(value) -> bool:
    """Return True if value parses as an absolute URL."""
    if not isinstance(value, str) or not value:
        return False
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def content_type_of(src: str) -> str:
    """Guess a MIME type from the URL extension, "" when unknown."""
    content_type, _ = mimetypes.guess_type(src)
    return content_type or ""


def extract_base_url(doc: BeautifulSoup) -> str | None:
    """Return the document <base href>, or None if absent or invalid."""
    if doc.head is None:
        return None
    base = doc.head.find("base", href=True)
    if base is None:
        return None
    base_url = base["href"]
    if PROTOCOL_RELATIVE_RE.match(base_url):
        base_url = "http:" + base_url
    if not is_valid_url(base_url):
        log.debug("base_url_invalid", href=base["href"])
        return None
    return base_url


def extract_open_graph_props(doc: BeautifulSoup) -> dict[str, str | None]:
    """Collect og:* meta properties from the document head.

    The "og:" prefix is stripped from the keys. An invalid ``url`` property
    is set to None.
    """
    props: dict[str, str | None] = {}
    if doc.head is None:
        return props
    for meta in doc.head.find_all("meta"):
        prop = meta.get("property")
        if prop and prop.startswith("og:"):
            props[prop[3:]] = meta.get("content")
    if "url" in props and not is_valid_url(props["url"]):
        log.debug("og_url_invalid", url=props["url"])
        props["url"] = None
    return props


def extract_description(doc: BeautifulSoup) -> str | None:
    """Return the page description from its head meta tags."""
    if doc.head is None:
        return None
    for attr, value in DESCRIPTION_META:
        meta = doc.head.find("meta", attrs={attr: value})
        if meta is None:
            continue
        content = (meta.get("content") or "").strip()
        if content:
            return content
    return None


def extract_images(doc: BeautifulSoup, illustration: str | None = None) -> list[ImageMeta]:
    """List the images of a document.

    The illustration, when given, always comes first, as is. Then every
    <img> with a non-data src follows in document order. No deduplication.
    """
    images: list[ImageMeta] = []
    if illustration:
        images.append(ImageMeta(src=illustration, content_type=content_type_of(illustration)))
    for img in doc.find_all("img"):
        src = img.get("src")
        if src and not DATA_URI_RE.match(src):
            images.append(ImageMeta(src=src, content_type=content_type_of(src)))
    return images
