# ABOUTME: Site rule engine: per-hostname redirect or content-replacement rules.
# ABOUTME: Runs on the parsed page before metadata and main-content extraction.

from dataclasses import dataclass
from types import MappingProxyType
from urllib.parse import urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from html_grabber.errors import MalformedURLError
from html_grabber.models import Rule, RuleType
from html_grabber.services.metadata import extract_base_url, is_valid_url

log = structlog.get_logger()

DEFAULT_RULES = MappingProxyType(
    {
        "reddit.com": Rule(
            selector="div[data-test-id=post-content] .styled-outbound-link",
            type=RuleType.REDIRECT,
        ),
    }
)


@dataclass(frozen=True)
class RuleOutcome:
    """Result of applying a site rule.

    Either ``redirect_url`` is set and the grab must restart there, or
    ``document`` holds the page to keep working on.
    """

    document: BeautifulSoup
    redirect_url: str | None = None


def normalize_hostname(url: str) -> str | None:
    """Return the hostname of a URL without its leading "www."."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname.removeprefix("www.")


def _replace_content(doc: BeautifulSoup, node) -> BeautifulSoup:
    """Build a new document whose body only holds the given node."""
    head = doc.head
    html = "<html>{}<body>{}</body></html>".format(str(head) if head else "", str(node))
    return BeautifulSoup(html, "html.parser")


def apply_rule(
    hostname: str,
    doc: BeautifulSoup,
    rules=DEFAULT_RULES,
    page_url: str | None = None,
) -> RuleOutcome:
    """Apply the rule registered for a hostname, if any.

    Redirect targets are resolved against the document's ``<base href>``,
    or ``page_url`` without one, then validated; an invalid target raises
    MalformedURLError.
    """
    rule = rules.get(hostname)
    if rule is None:
        return RuleOutcome(document=doc)

    node = doc.select_one(rule.selector)
    if node is None:
        log.debug("rule_not_matched", hostname=hostname, selector=rule.selector)
        return RuleOutcome(document=doc)

    if rule.type == RuleType.REDIRECT:
        target = node.get("src") or node.get("href")
        if not target:
            return RuleOutcome(document=doc)
        base_url = extract_base_url(doc) or page_url
        if base_url:
            try:
                target = urljoin(base_url, target)
            except ValueError as e:
                raise MalformedURLError(target) from e
        if not is_valid_url(target):
            log.error("rule_redirect_invalid", hostname=hostname, target=target)
            raise MalformedURLError(target)
        log.info("rule_redirect", hostname=hostname, target=target)
        return RuleOutcome(document=doc, redirect_url=target)

    log.info("rule_content_replaced", hostname=hostname, selector=rule.selector)
    return RuleOutcome(document=_replace_content(doc, node))
