# ABOUTME: Main-content extraction using readability-lxml.
# ABOUTME: Isolates the article of a page and derives its title, text and excerpt.

import structlog
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from html_grabber.errors import ExtractionError
from html_grabber.models import Article

log = structlog.get_logger()

NO_TITLE = "[no-title]"

# readability strips these from its output, the tracker filter needs them.
KEPT_DIMENSIONS = ("width", "height")
STASH_PREFIX = "data-html-grabber-"
DIMENSIONED_TAGS = ["img", "iframe", "video"]


def _stash_dimensions(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(DIMENSIONED_TAGS):
        for attr in KEPT_DIMENSIONS:
            if tag.has_attr(attr):
                tag[STASH_PREFIX + attr] = tag[attr]
    return str(soup)


def _restore_dimensions(soup: BeautifulSoup) -> None:
    for tag in soup.find_all(DIMENSIONED_TAGS):
        for attr in KEPT_DIMENSIONS:
            stashed = STASH_PREFIX + attr
            if tag.has_attr(stashed):
                tag[attr] = tag[stashed]
                del tag[stashed]


def _first_paragraph(soup: BeautifulSoup) -> str:
    for p in soup.find_all("p"):
        text = p.get_text().strip()
        if text:
            return text
    return ""


def extract_article(
    html: str,
    url: str | None = None,
    description: str | None = None,
    debug: bool = False,
) -> Article:
    """Extract the main article of a page.

    Relative links are made absolute when ``url`` is given. The excerpt is
    the page description when there is one, else the first paragraph.
    Raises ExtractionError if no content with text can be found.
    """
    try:
        doc = Document(_stash_dimensions(html), url=url)
        summary = doc.summary(html_partial=True)
        title = doc.title()
    except Unparseable as e:
        log.error("extraction_failed", url=url, error=str(e))
        raise ExtractionError(f"unable to extract content: {e}") from e

    soup = BeautifulSoup(summary, "html.parser")
    _restore_dimensions(soup)
    text = soup.get_text()
    if not text.strip():
        log.warning("extraction_empty", url=url)
        raise ExtractionError("unable to extract content: no text found")

    content = str(soup)
    if debug:
        log.debug("article_extracted", url=url, content=content)

    return Article(
        title="" if title == NO_TITLE else title,
        content=content,
        text=text,
        excerpt=description or _first_paragraph(soup),
        length=len(text),
    )
