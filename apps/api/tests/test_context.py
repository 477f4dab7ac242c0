"""
Tests for client IP resolution behind proxies.
"""

from starlette.requests import Request

from gatekeeper.utils.context import parse_networks, resolve_client_ip


def make_request(peer: str, forwarded: str | None = None) -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": headers,
        "client": (peer, 50000),
    })


def test_forwarded_for_ignored_without_trusted_proxies():
    request = make_request("203.0.113.7", "198.51.100.1")

    assert resolve_client_ip(request) == "203.0.113.7"


def test_forwarded_for_ignored_from_untrusted_peer():
    proxies = parse_networks(["10.0.0.0/8"])
    request = make_request("203.0.113.7", "198.51.100.1")

    assert resolve_client_ip(request, proxies) == "203.0.113.7"


def test_forwarded_for_honoured_from_trusted_proxy():
    proxies = parse_networks(["10.0.0.0/8"])
    request = make_request("10.0.0.2", "198.51.100.1, 10.0.0.9")

    assert resolve_client_ip(request, proxies) == "198.51.100.1"


def test_client_supplied_hops_are_skipped():
    """Hops left of the last untrusted address are client-controlled."""
    proxies = parse_networks(["10.0.0.2"])
    request = make_request("10.0.0.2", "192.0.2.55, 198.51.100.1")

    assert resolve_client_ip(request, proxies) == "198.51.100.1"


def test_trusted_proxy_without_header_is_the_client():
    proxies = parse_networks(["10.0.0.2"])

    assert resolve_client_ip(make_request("10.0.0.2"), proxies) == "10.0.0.2"
