"""Per-client request limiting with temporary bans.

Each client identifier (the ``x-client-uuid`` header) gets a fixed window of
``window_seconds``. A client that sends more than ``max_requests`` inside one
window is banned for ``ban_seconds``; while banned every request is refused
and the counter is left alone.

``check_and_record`` is deliberately synchronous: the read-modify-write on a
client's state never yields to the event loop, so interleaved requests for
the same identifier cannot lose updates.
"""

import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from metaproxy.app.core.config import Settings
from metaproxy.app.core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "UNKNOWN"


class RateLimitOutcome(str, Enum):
    ALLOWED = "allowed"
    BYPASSED = "bypassed"  # UNKNOWN client, handled by the version gate
    BANNED = "banned"
    NEWLY_BANNED = "newly_banned"


@dataclass
class ClientState:
    """Window counter and ban deadline for one client identifier."""
    request_count: int = 0
    window_start: float = 0.0
    banned_until: float = 0.0  # 0 means not banned

    def is_banned(self, now: float) -> bool:
        return self.banned_until > now


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    outcome: RateLimitOutcome
    limit: int
    remaining: int
    retry_after: Optional[int] = None

    @property
    def allowed(self) -> bool:
        return self.outcome in (RateLimitOutcome.ALLOWED, RateLimitOutcome.BYPASSED)

    @property
    def update_required(self) -> bool:
        return self.outcome is RateLimitOutcome.BYPASSED


class ClientRateLimiter:
    """In-memory fixed-window limiter with ban escalation.

    Memory optimization:
    - Uses OrderedDict for LRU ordering
    - Limits max entries to prevent unbounded memory growth
    - ``sweep()`` drops clients whose window and ban have both lapsed
    """

    DEFAULT_MAX_ENTRIES = 10000

    def __init__(
        self,
        window_seconds: float = 60,
        max_requests: int = 30,
        ban_seconds: float = 300,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            window_seconds: Length of one counting window
            max_requests: Requests allowed per window before a ban
            ban_seconds: How long a ban lasts
            max_entries: Maximum number of clients to track (LRU eviction)
            clock: Time source returning epoch seconds
        """
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.ban_seconds = ban_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._clients: OrderedDict[str, ClientState] = OrderedDict()

    @classmethod
    def from_settings(cls, config: Settings) -> "ClientRateLimiter":
        return cls(
            window_seconds=config.rate_limit_window_seconds,
            max_requests=config.rate_limit_max_requests,
            ban_seconds=config.rate_limit_ban_seconds,
            max_entries=config.rate_limit_max_entries,
        )

    def __len__(self) -> int:
        return len(self._clients)

    def get_state(self, client_id: str) -> Optional[ClientState]:
        return self._clients.get(client_id)

    def check_and_record(self, client_id: str, now: Optional[float] = None) -> RateLimitResult:
        """Count one request for ``client_id`` and decide whether it may proceed."""
        if client_id == UNKNOWN_CLIENT:
            return RateLimitResult(
                outcome=RateLimitOutcome.BYPASSED,
                limit=self.max_requests,
                remaining=self.max_requests,
            )

        if now is None:
            now = self._clock()

        state = self._clients.get(client_id)
        if state is not None:
            self._clients.move_to_end(client_id)
            if state.is_banned(now):
                return RateLimitResult(
                    outcome=RateLimitOutcome.BANNED,
                    limit=self.max_requests,
                    remaining=0,
                    retry_after=max(1, math.ceil(state.banned_until - now)),
                )
        else:
            self._enforce_lru_limit(now)
            state = ClientState(window_start=now)
            self._clients[client_id] = state

        if state.request_count == 0 or now - state.window_start > self.window_seconds:
            state.request_count = 1
            state.window_start = now
            state.banned_until = 0.0
        else:
            state.request_count += 1

        if state.request_count > self.max_requests:
            state.banned_until = now + self.ban_seconds
            logger.warning(
                f"Client banned for {self.ban_seconds}s after {state.request_count} requests",
                extra={"client_id": client_id},
            )
            return RateLimitResult(
                outcome=RateLimitOutcome.NEWLY_BANNED,
                limit=self.max_requests,
                remaining=0,
                retry_after=max(1, math.ceil(self.ban_seconds)),
            )

        return RateLimitResult(
            outcome=RateLimitOutcome.ALLOWED,
            limit=self.max_requests,
            remaining=self.max_requests - state.request_count,
        )

    def _is_stale(self, state: ClientState, now: float) -> bool:
        return (
            now - state.window_start > self.window_seconds
            and not state.is_banned(now)
        )

    def _enforce_lru_limit(self, now: float) -> None:
        """Make room for a new client once the table is full."""
        if len(self._clients) < self._max_entries:
            return
        removed = self.sweep(now)
        if len(self._clients) < self._max_entries:
            return

        # Remove oldest 20% of entries. Banned clients are never evicted, so the
        # table may exceed the cap until their bans lapse and a sweep runs
        remove_count = max(1, int(self._max_entries * 0.2))
        victims = [
            key for key, state in self._clients.items()
            if not state.is_banned(now)
        ][:remove_count]
        for key in victims:
            del self._clients[key]
        logger.debug(f"Rate limiter evicted {removed + len(victims)} client entries")

    def sweep(self, now: Optional[float] = None) -> int:
        """Drop clients whose window has expired and who are not banned.

        Returns:
            Number of entries removed
        """
        if now is None:
            now = self._clock()
        expired = [key for key, state in self._clients.items() if self._is_stale(state, now)]
        for key in expired:
            del self._clients[key]
        return len(expired)
