"""
Request Context Utilities.

Provides request IDs and request context for:
- Log correlation
- Audit entries (client IP, request ID)

Usage:
    # In middleware (automatic)
    app.add_middleware(RequestContextMiddleware)

    # Access anywhere in request lifecycle
    from gatekeeper.utils.context import get_request_id, get_request_context

    logger.info("Processing", request_id=get_request_id())
"""

from __future__ import annotations

import ipaddress
import logging
import sys
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from gatekeeper.utils.timezone import utc_now


# ============================================================
# CONTEXT VARIABLES
# ============================================================

# Request-scoped context using contextvars (async-safe)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_request_context: ContextVar[Optional["RequestContext"]] = ContextVar("request_context", default=None)


# ============================================================
# REQUEST CONTEXT
# ============================================================

@dataclass
class RequestContext:
    """
    Context for the current request.

    Contains request-scoped metadata used for logging and auditing.
    """
    request_id: str

    # Request info
    method: str = ""
    path: str = ""
    client_ip: str = ""

    # Auth info (populated by the auth dependency)
    user_id: Optional[str] = None

    # Timing
    started_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_id": self.user_id,
        }


# ============================================================
# CONTEXT ACCESSORS
# ============================================================

def get_request_id() -> Optional[str]:
    """Get the current request ID."""
    return _request_id.get()


def get_request_context() -> Optional[RequestContext]:
    """Get the full request context, or None outside of a request."""
    return _request_context.get()


def set_context_user(user_id: str) -> None:
    """
    Set user info in request context.

    Called by the auth dependency after the access token is decoded.
    """
    ctx = _request_context.get()
    if ctx:
        ctx.user_id = user_id


IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_networks(values: Iterable[str]) -> list[IPNetwork]:
    """Parse proxy addresses or CIDR networks."""
    return [ipaddress.ip_network(value, strict=False) for value in values]


def _is_trusted(host: str, networks: Sequence[IPNetwork]) -> bool:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return any(address in network for network in networks)


def resolve_client_ip(request: Request, trusted_proxies: Sequence[IPNetwork] = ()) -> str:
    """
    Client IP of a request.

    X-Forwarded-For is only read when the socket peer is a trusted proxy.
    The client is then the right-most hop that is not itself a trusted
    proxy.
    """
    peer = request.client.host if request.client else "unknown"
    if not _is_trusted(peer, trusted_proxies):
        return peer

    forwarded = request.headers.get("X-Forwarded-For", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if not _is_trusted(hop, trusted_proxies):
            return hop
    return hops[0] if hops else peer


def get_client_ip(request: Request) -> str:
    """Client IP resolved by RequestContextMiddleware, else the socket peer."""
    client_ip = getattr(request.state, "client_ip", None)
    if client_ip:
        return client_ip
    return resolve_client_ip(request)


# ============================================================
# MIDDLEWARE
# ============================================================

class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that creates request context for each request.

    Reuses an incoming X-Request-ID header or generates one, and echoes it
    back on the response.
    """

    def __init__(self, app, trusted_proxies: Iterable[str] = ()):
        super().__init__(app)
        self.trusted_proxies = parse_networks(trusted_proxies)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        ctx = RequestContext(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=resolve_client_ip(request, self.trusted_proxies),
        )

        # Set context vars
        id_token = _request_id.set(request_id)
        ctx_token = _request_context.set(ctx)

        # Store on request state for easy access
        request.state.request_id = request_id
        request.state.client_ip = ctx.client_ip
        request.state.context = ctx

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            _request_id.reset(id_token)
            _request_context.reset(ctx_token)


# ============================================================
# STRUCTLOG
# ============================================================

def add_request_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that adds request context to all logs."""
    request_id = get_request_id()
    if request_id:
        event_dict.setdefault("request_id", request_id)

    ctx = get_request_context()
    if ctx:
        if ctx.user_id:
            event_dict.setdefault("user_id", ctx.user_id)
        if ctx.client_ip:
            event_dict.setdefault("ip", ctx.client_ip)
        if ctx.path:
            event_dict.setdefault("path", ctx.path)

    return event_dict


def configure_logging(level: str = "INFO", fmt: str = "json", cache_loggers: bool = True) -> None:
    """
    Configure stdlib logging and structlog once at startup.

    fmt: "json" for log aggregation, "console" for local development.
    cache_loggers: off under test so structlog.testing.capture_logs sees
    every logger.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_request_context,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=cache_loggers,
    )
