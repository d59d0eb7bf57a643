# ABOUTME: Tests for main-content extraction with readability.
# ABOUTME: Verifies title, text, excerpt and failure handling.

import pytest

from html_grabber.errors import ExtractionError
from html_grabber.services.extractor import extract_article

SIMPLE_PAGE = """\
<html>
  <head><title>Test</title></head>
  <body>
    <p>Hello World!</p><p><img src="world.png" /></p>
    <img height="1" width="1" src="tracker.gif">
  </body>
</html>
"""


def test_extract_simple_page():
    """Title, text and first-paragraph excerpt are extracted."""
    article = extract_article(SIMPLE_PAGE)
    assert article.title == "Test"
    assert "Hello World!" in article.text
    assert article.excerpt == "Hello World!"
    assert article.length == len(article.text)
    assert "world.png" in article.content


def test_extract_keeps_image_dimensions():
    """Image dimensions survive extraction for the tracker filter."""
    article = extract_article(SIMPLE_PAGE)
    assert 'height="1"' in article.content
    assert 'width="1"' in article.content
    assert "data-html-grabber" not in article.content


def test_extract_uses_description_as_excerpt():
    """A page description takes precedence over the first paragraph."""
    article = extract_article(SIMPLE_PAGE, description="A greeting.")
    assert article.excerpt == "A greeting."


def test_extract_without_title():
    """Pages without a title get an empty one."""
    article = extract_article("<html><body><p>Only a paragraph here.</p></body></html>")
    assert article.title == ""


def test_extract_resolves_links(article_page):
    """Relative links are made absolute when the page URL is known."""
    article = extract_article(article_page, url="https://stories.example/harbour-days")
    assert "https://stories.example/img/quay.png" in article.content
    assert "fishing boats" in article.text


def test_extract_empty_document():
    """Empty documents fail with an extraction error."""
    with pytest.raises(ExtractionError):
        extract_article("")


def test_extract_no_text():
    """Documents without any text fail with an extraction error."""
    with pytest.raises(ExtractionError):
        extract_article("<html><body><div></div></body></html>")
