"""
Rate limiting dependencies for the Gemini-backed routes
"""
import time
from collections import defaultdict, deque
from fastapi import Request, HTTPException
from typing import Callable, Deque, Dict, Optional, Tuple
import logging

from intranet.config import settings

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


class RateLimiter:
    """
    Per-process sliding windows, one budget per route group and caller

    Idea classification and quiz generation spend separate budgets, so a
    burst of idea submissions from a unit does not lock admins out of
    quiz drafting.

        dependencies=[Depends(ai_rate_limiter.for_scope("ideas"))]
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        # (label, seconds, limit), shortest window first
        self.windows = (
            ("minute", MINUTE, requests_per_minute),
            ("hour", HOUR, requests_per_hour),
        )
        # {(scope, caller): timestamps in arrival order}
        self._hits: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)

    @staticmethod
    def caller_key(request: Request) -> str:
        """Authenticated user id when present, else the caller address"""
        user_id = request.headers.get("x-user-id")
        if user_id:
            return f"user:{user_id}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    def hit(self, scope: str, caller: str, now: Optional[float] = None) -> None:
        """
        Record one call of `caller` in `scope`

        Raises:
            HTTPException: 429 when any window is full; the call is not recorded
        """
        now = time.time() if now is None else now
        hits = self._hits[(scope, caller)]

        longest = self.windows[-1][1]
        while hits and hits[0] <= now - longest:
            hits.popleft()

        for label, seconds, limit in self.windows:
            used = sum(1 for ts in hits if ts > now - seconds)
            if used >= limit:
                logger.warning(f"Rate limit exceeded ({scope}, per {label}): {caller}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {label}",
                        "scope": scope,
                        "retry_after": seconds
                    }
                )

        hits.append(now)
        logger.debug(f"Rate limit check passed: {scope}/{caller} ({len(hits)} in the last hour)")

    def for_scope(self, scope: str) -> Callable:
        """FastAPI dependency charging the request to `scope`"""

        async def check_rate_limit(request: Request) -> None:
            self.hit(scope, self.caller_key(request))

        return check_rate_limit

    def reset(self) -> None:
        self._hits.clear()


# Global instance
ai_rate_limiter = RateLimiter(
    requests_per_minute=settings.AI_RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.AI_RATE_LIMIT_PER_HOUR
)
