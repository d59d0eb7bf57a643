# ABOUTME: Tests for the blocked host policy.
# ABOUTME: Verifies exact, case-sensitive hostname matching.

import pytest

from html_grabber.services.blocked_hosts import BLOCKED_HOSTS, is_blocked_host


@pytest.mark.parametrize("hostname", sorted(BLOCKED_HOSTS))
def test_blocked_hosts_are_blocked(hostname):
    """Every listed hostname is blocked."""
    assert is_blocked_host(hostname) is True


@pytest.mark.parametrize(
    "hostname",
    ["example.com", "ad.doubleclick.net", "doubleclick.net.example", "DoubleClick.net", ""],
)
def test_other_hosts_are_allowed(hostname):
    """Subdomains, suffixes and case variants do not match."""
    assert is_blocked_host(hostname) is False
