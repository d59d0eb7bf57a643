# ABOUTME: Grab pipeline: fetch, parse, site rules, metadata, extraction, sanitization.
# ABOUTME: HTMLGrabber turns a URL or raw HTML into a cleaned GrabbedPage.

from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from html_grabber.config import Settings, get_settings
from html_grabber.errors import BadStatusError, TooManyRedirectsError, UnsupportedContentTypeError
from html_grabber.models import GrabbedPage, GrabberConfig
from html_grabber.services.blocked_hosts import is_blocked_host
from html_grabber.services.extractor import extract_article
from html_grabber.services.metadata import (
    extract_base_url,
    extract_description,
    extract_images,
    extract_open_graph_props,
)
from html_grabber.services.rules import DEFAULT_RULES, apply_rule, normalize_hostname
from html_grabber.services.sanitizer import prettify, sanitize

log = structlog.get_logger()


def default_config(settings: Settings | None = None, **overrides: Any) -> GrabberConfig:
    """Build a grabber config from settings defaults and caller overrides."""
    settings = settings or get_settings()
    values: dict[str, Any] = {
        "debug": settings.debug,
        "pretty": settings.pretty,
        "is_blocked_host": is_blocked_host,
        "rewrite_url": None,
        "rules": DEFAULT_RULES,
        "headers": {"User-Agent": settings.user_agent},
        "timeout": settings.timeout,
        "max_redirects": settings.max_redirects,
    }
    values.update(overrides)
    return GrabberConfig(**values)


class HTMLGrabber:
    """Grab the readable content of web pages.

    A grabber is configured once and holds no per-call state, so a single
    instance can serve concurrent grabs.
    """

    def __init__(
        self,
        config: GrabberConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **overrides: Any,
    ) -> None:
        if config is not None and overrides:
            config = GrabberConfig.model_validate({**dict(config), **overrides})
        self.config = config or default_config(**overrides)
        self._transport = transport

    async def grab_url(self, url: str) -> GrabbedPage:
        """Fetch a remote HTML page and grab its content."""
        return await self._grab_url(url, hops=0)

    async def grab(self, content: str, base_url: str | None = None) -> GrabbedPage:
        """Grab the content of an HTML document.

        ``base_url`` is the address the document was fetched from; it
        selects the site rule and resolves relative links.
        """
        return await self._grab(content, base_url, hops=0)

    async def _grab_url(self, url: str, hops: int) -> GrabbedPage:
        body = await self._fetch(url)
        return await self._grab(body, url, hops)

    async def _fetch(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.config.timeout,
            headers=self.config.headers,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.head(url)
            if not response.is_success:
                log.error("grab_bad_status", url=url, status=response.status_code)
                raise BadStatusError(response.status_code, response.reason_phrase)
            content_type = response.headers.get("content-type", "")
            if not content_type.startswith("text/html"):
                log.error("grab_unsupported_content_type", url=url, content_type=content_type)
                raise UnsupportedContentTypeError(content_type)

            response = await client.get(url)
            if not response.is_success:
                log.error("grab_bad_status", url=url, status=response.status_code)
                raise BadStatusError(response.status_code, response.reason_phrase)

        log.info("page_fetched", url=url, size=len(response.text))
        return response.text

    async def _grab(self, content: str, base_url: str | None, hops: int) -> GrabbedPage:
        config = self.config
        doc = BeautifulSoup(content, "lxml")

        if base_url:
            hostname = normalize_hostname(base_url)
            if hostname:
                outcome = apply_rule(hostname, doc, config.rules, page_url=base_url)
                if outcome.redirect_url:
                    if hops >= config.max_redirects:
                        log.error("grab_too_many_redirects", url=outcome.redirect_url, hops=hops)
                        raise TooManyRedirectsError(outcome.redirect_url, config.max_redirects)
                    return await self._grab_url(outcome.redirect_url, hops + 1)
                doc = outcome.document

        base_url = extract_base_url(doc) or base_url
        og_props = extract_open_graph_props(doc)
        images = extract_images(doc, og_props.get("image"))
        article = extract_article(
            str(doc),
            url=base_url,
            description=extract_description(doc),
            debug=config.debug,
        )

        html = sanitize(
            article.content,
            base_url=base_url,
            is_blocked_host=config.is_blocked_host,
            rewrite_url=config.rewrite_url,
        )
        if config.debug:
            log.debug("html_sanitized", html=html)

        if config.pretty:
            html = prettify(html)

        page = GrabbedPage(
            title=og_props.get("title") or article.title,
            url=og_props.get("url") or base_url,
            image=og_props.get("image"),
            html=html,
            text=article.text,
            excerpt=article.excerpt,
            length=article.length,
            images=images,
        )
        log.info("page_grabbed", url=page.url, title=page.title, length=page.length)
        return page
