"""
Rate limit bucket model.
"""

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class RateLimitBucket(Base):
    """
    Durable per-identity request counter.

    Keyed by identity string (``auth-1.2.3.4``, a user ID, ...), unrelated
    to any RBAC entity. ``updated_at`` drives the scheduled expiry sweep.
    """

    __tablename__ = "rate_limit_buckets"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    window_started_at: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[float] = mapped_column(Float, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<RateLimitBucket {self.key} count={self.count}>"
