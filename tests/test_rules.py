# ABOUTME: Tests for the site rule engine.
# ABOUTME: Verifies hostname normalization, redirect rules and content replacement.

import pytest
from bs4 import BeautifulSoup

from html_grabber.errors import MalformedURLError
from html_grabber.models import Rule, RuleType
from html_grabber.services.rules import DEFAULT_RULES, apply_rule, normalize_hostname

REDDIT_POST = """\
<html><head><title>r/programming</title></head><body>
  <div data-test-id="post-content">
    <h3>Kong API Gateway</h3>
    <a class="styled-outbound-link" href="https://dest.example/kong">dest.example</a>
  </div>
</body></html>
"""

CONTENT_RULES = {"news.example": Rule(selector="#story", type=RuleType.CONTENT)}


def _doc(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def test_normalize_hostname():
    """A leading www. is removed, other prefixes are kept."""
    assert normalize_hostname("https://www.reddit.com/r/x") == "reddit.com"
    assert normalize_hostname("https://old.reddit.com/r/x") == "old.reddit.com"
    assert normalize_hostname("https://wwwx.example/") == "wwwx.example"
    assert normalize_hostname("relative/path") is None


def test_default_rules_are_read_only():
    """The compiled-in table cannot be modified."""
    assert DEFAULT_RULES["reddit.com"].type == RuleType.REDIRECT
    with pytest.raises(TypeError):
        DEFAULT_RULES["example.com"] = DEFAULT_RULES["reddit.com"]


def test_unknown_host_is_noop():
    """Hosts without a rule leave the document untouched."""
    doc = _doc(REDDIT_POST)
    outcome = apply_rule("example.com", doc)
    assert outcome.redirect_url is None
    assert outcome.document is doc


def test_redirect_rule():
    """A matching redirect rule yields the link target."""
    outcome = apply_rule("reddit.com", _doc(REDDIT_POST))
    assert outcome.redirect_url == "https://dest.example/kong"


def test_redirect_rule_resolves_relative_target():
    """Relative targets are resolved against the page URL."""
    html = REDDIT_POST.replace("https://dest.example/kong", "/r/programming/wiki")
    outcome = apply_rule("reddit.com", _doc(html), page_url="https://www.reddit.com/r/x/")
    assert outcome.redirect_url == "https://www.reddit.com/r/programming/wiki"


def test_redirect_rule_prefers_document_base():
    """A <base href> in the page wins over the page URL."""
    html = REDDIT_POST.replace("https://dest.example/kong", "wiki").replace(
        "<head>", '<head><base href="https://mirror.example/r/">'
    )
    outcome = apply_rule("reddit.com", _doc(html), page_url="https://www.reddit.com/r/x/")
    assert outcome.redirect_url == "https://mirror.example/r/wiki"


def test_redirect_rule_without_match():
    """No matching node means no redirect."""
    doc = _doc("<html><body><p>Self post</p></body></html>")
    outcome = apply_rule("reddit.com", doc)
    assert outcome.redirect_url is None
    assert outcome.document is doc


def test_redirect_rule_invalid_target():
    """An invalid redirect target is fatal."""
    html = REDDIT_POST.replace("https://dest.example/kong", "not a url")
    with pytest.raises(MalformedURLError, match="not a url"):
        apply_rule("reddit.com", _doc(html))


def test_content_rule_replaces_body():
    """The matched node becomes the only child of a new body."""
    doc = _doc(
        "<html><head><title>News</title></head><body>"
        "<nav>Menu</nav><div id='story'><p>The story</p></div><aside>Ads</aside>"
        "</body></html>"
    )
    outcome = apply_rule("news.example", doc, CONTENT_RULES)

    assert outcome.redirect_url is None
    new_doc = outcome.document
    assert new_doc is not doc
    assert new_doc.title.string == "News"
    children = [c for c in new_doc.body.children if c.name]
    assert len(children) == 1
    assert children[0]["id"] == "story"
    assert "Menu" not in new_doc.body.get_text()
    # the original page is left as it was
    assert "Menu" in doc.body.get_text()


def test_content_rule_without_match():
    """No matching node keeps the original document."""
    doc = _doc("<html><body><p>Nothing</p></body></html>")
    assert apply_rule("news.example", doc, CONTENT_RULES).document is doc
