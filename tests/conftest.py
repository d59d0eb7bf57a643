# ABOUTME: Shared test fixtures for html-grabber.
# ABOUTME: Provides sample pages and a mock HTTP transport serving them.

from collections.abc import Callable

import httpx
import pytest

from html_grabber.services.grabber import HTMLGrabber

ARTICLE_PARAGRAPHS = """
<p>The harbour was quiet that morning, and the fishing boats rocked gently
against the old stone quay while the gulls circled overhead, waiting.</p>
<p>By noon the market had filled with traders, and the smell of salt and
smoke drifted through the narrow streets that climb toward the chapel.</p>
<p>Nobody in the village remembered a summer this warm, and the elders
said the sea itself seemed to be holding its breath, as if listening.</p>
"""

ARTICLE_PAGE = f"""\
<html>
  <head>
    <title>Harbour Days</title>
    <meta property="og:title" content="Harbour Days, a Summer Story">
    <meta property="og:url" content="https://stories.example/harbour-days">
    <meta property="og:image" content="https://stories.example/cover.jpg">
    <meta name="description" content="A summer in a fishing village.">
  </head>
  <body>
    <nav class="menu"><a href="/">Home</a> <a href="/about">About</a></nav>
    <article id="story" class="post">
      <h1>Harbour Days</h1>
      {ARTICLE_PARAGRAPHS}
      <p>Photos from the quay, taken at dawn before the boats went out to sea:
      <img src="/img/quay.png" alt="The quay">
      <img src="https://doubleclick.net/pixel.gif" alt="">
      <img height="1" width="1" src="https://stats.example/t.gif"></p>
    </article>
  </body>
</html>
"""

PageMap = dict[str, str]


def _make_transport(pages: PageMap, content_type: str = "text/html; charset=utf-8"):
    """Mock transport serving the given pages, 404 for anything else."""

    def handler(request: httpx.Request) -> httpx.Response:
        page = pages.get(str(request.url))
        if page is None:
            return httpx.Response(404)
        headers = {"content-type": content_type}
        if request.method == "HEAD":
            return httpx.Response(200, headers=headers)
        return httpx.Response(200, headers=headers, text=page)

    return httpx.MockTransport(handler)


@pytest.fixture
def article_page() -> str:
    """A full HTML page with an article, Open Graph metadata and trackers."""
    return ARTICLE_PAGE


@pytest.fixture
def grabber_factory() -> Callable[..., HTMLGrabber]:
    """Build a grabber whose HTTP calls are served from a page map."""

    def _factory(pages: PageMap | None = None, **overrides) -> HTMLGrabber:
        return HTMLGrabber(transport=_make_transport(pages or {}), **overrides)

    return _factory


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for mock transports serving a page map."""
    return _make_transport
