# ABOUTME: Pydantic schemas for grabber configuration, site rules and grab results.
# ABOUTME: All models are frozen: built once, then only read.

from collections.abc import Callable, Mapping
from enum import StrEnum
from types import MappingProxyType
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

URLRewriter = Callable[[str], str]
BlockedHostPredicate = Callable[[str], bool]


class RuleType(StrEnum):
    REDIRECT = "redirect"
    CONTENT = "content"


class Rule(BaseModel):
    """Site-specific instruction applied before content extraction."""

    model_config = ConfigDict(frozen=True)

    selector: str
    type: RuleType


class ImageMeta(BaseModel):
    """An image referenced by a page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    src: str
    content_type: str = Field(default="", serialization_alias="contentType")


class Article(BaseModel):
    """Main content isolated from a page."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    text: str
    excerpt: str
    length: int


class GrabbedPage(BaseModel):
    """Result of a grab: cleaned HTML plus page metadata."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str | None
    image: str | None
    html: str
    text: str
    excerpt: str
    length: int
    images: list[ImageMeta] = Field(default_factory=list)


# Stored as read-only views once validated.
ReadOnlyRules = Annotated[Mapping[str, Rule], AfterValidator(MappingProxyType)]
ReadOnlyHeaders = Annotated[Mapping[str, str], AfterValidator(MappingProxyType)]


class GrabberConfig(BaseModel):
    """Immutable grabber configuration.

    Built once per grabber by merging caller overrides over the defaults
    from settings, see ``HTMLGrabber``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    debug: bool = False
    pretty: bool = False
    is_blocked_host: BlockedHostPredicate | None = None
    rewrite_url: URLRewriter | None = None
    rules: ReadOnlyRules = Field(default_factory=lambda: MappingProxyType({}))
    headers: ReadOnlyHeaders = Field(default_factory=lambda: MappingProxyType({}))
    timeout: float = 15.0
    max_redirects: int = Field(default=5, ge=0)
