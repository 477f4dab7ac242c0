"""
Business logic services.
"""

from .auth import AuthService, TokenPair, REFRESH_TOKEN_META_KEY
from .audit import AuditLogService, AuditAction, AuditOutcome
from .rate_limit import RateLimiter, BucketStore, DatabaseBucketStore, RedisBucketStore

__all__ = [
    "AuthService",
    "TokenPair",
    "REFRESH_TOKEN_META_KEY",
    "AuditLogService",
    "AuditAction",
    "AuditOutcome",
    "RateLimiter",
    "BucketStore",
    "DatabaseBucketStore",
    "RedisBucketStore",
]
