# ABOUTME: Host policy: the hostnames whose resources are stripped from grabbed pages.
# ABOUTME: Exact, case-sensitive membership test against a compiled-in set.

BLOCKED_HOSTS = frozenset(
    {
        "doubleclick.net",
        "feeds.feedburner.com",
    }
)


def is_blocked_host(hostname: str) -> bool:
    """Return True if the hostname is blocked. No subdomain matching."""
    return hostname in BLOCKED_HOSTS
