# ABOUTME: Exceptions raised by the grab pipeline.
# ABOUTME: Each error names the stage that failed and carries its offending value.


class GrabError(Exception):
    """Base class for all grab failures."""


class BadStatusError(GrabError):
    """The remote server answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str) -> None:
        super().__init__(f"bad status response: {reason}")
        self.status_code = status_code
        self.reason = reason


class UnsupportedContentTypeError(GrabError):
    """The remote resource is not an HTML page."""

    def __init__(self, content_type: str) -> None:
        super().__init__(f"unsupported content type: {content_type}")
        self.content_type = content_type


class ExtractionError(GrabError):
    """No usable main content could be extracted."""


class MalformedURLError(GrabError):
    """A URL required by the pipeline is not a valid absolute URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"malformed URL: {url}")
        self.url = url


class TooManyRedirectsError(GrabError):
    """Site rules redirected more times than allowed."""

    def __init__(self, url: str, max_redirects: int) -> None:
        super().__init__(f"too many redirects ({max_redirects}) while grabbing {url}")
        self.url = url
        self.max_redirects = max_redirects
