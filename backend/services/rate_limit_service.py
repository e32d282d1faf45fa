"""
Rate Limit Service - in-memory request admission for the public endpoints.

The contact form uses a fixed window: at most ``max_requests`` admissions
per key per window. The window starts at the first admitted request and resets once it
has fully elapsed, so up to twice the limit can pass across a window edge.

The chat assistant combines a per-IP window with a per-session total.

Note: State is in-memory and per process. Multi-instance deployments count
each instance separately; replace the backing dict with a shared store
(atomic increment + expiry) if that matters.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from models.config import settings


@dataclass
class RateLimitRecord:
    """Admission counter for one key."""

    count: int
    window_start: float


class FixedWindowRateLimiter:
    """Per-key fixed-window counter.

    Every read-modify-write of a record happens under a lock: requests and
    the scheduled sweep run on different threads.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def _is_expired(self, record: RateLimitRecord, now: float) -> bool:
        return now - record.window_start > self.window_seconds

    def admit(self, key: str) -> bool:
        """
        Try to admit a request for ``key``.

        Args:
            key: Client identity (usually the client IP)

        Returns:
            True if admitted (the count was incremented), False if the key
            is over its limit for the current window (nothing changes)
        """
        with self._lock:
            now = self._clock()
            record = self._records.get(key)

            if record is None or self._is_expired(record, now):
                self._records[key] = RateLimitRecord(count=1, window_start=now)
                return True

            if record.count >= self.max_requests:
                return False

            record.count += 1
            return True

    def remaining(self, key: str) -> int:
        """
        Get the number of admissions left for ``key`` in its current window.

        Does not modify state.
        """
        with self._lock:
            record = self._records.get(key)
            if record is None or self._is_expired(record, self._clock()):
                return self.max_requests
            return max(0, self.max_requests - record.count)

    def sweep(self) -> int:
        """
        Drop records whose window has elapsed.

        Only bounds memory; admission results are the same with or without it.

        Returns:
            Number of records removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key
                for key, record in self._records.items()
                if self._is_expired(record, now)
            ]
            for key in expired:
                del self._records[key]

        if expired:
            logger.debug(f"Rate limiter sweep removed {len(expired)} expired windows")
        return len(expired)

    def reset(self, key: str | None = None) -> None:
        """
        Forget one key, or every key when ``key`` is None.

        Useful for testing or admin operations.
        """
        with self._lock:
            if key is None:
                self._records.clear()
            else:
                self._records.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


contact_rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.CONTACT_RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.CONTACT_RATE_LIMIT_WINDOW_SECONDS,
)


def get_contact_rate_limiter() -> FixedWindowRateLimiter:
    """Get the process-wide contact limiter (for dependency injection)."""
    return contact_rate_limiter


@dataclass
class ChatIpRecord:
    """Messages sent from one IP in its current window."""

    count: int
    window_start: float
    last_message: float


@dataclass
class ChatSessionRecord:
    """Lifetime message count of one chat session."""

    total: int
    last_activity: float
    blocked: bool = False


class ChatRateLimiter:
    """Per-IP window plus per-session total for the chat assistant.

    Unlike the contact limiter, checking never counts: a message is only
    tracked once the model has answered it, so refused or failed messages
    do not use up the visitor's allowance. A session that reaches its
    total stays closed until it has been idle for the session timeout.
    """

    def __init__(
        self,
        max_per_window: int,
        window_seconds: float,
        max_per_session: int,
        session_timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_per_window = max_per_window
        self.window_seconds = window_seconds
        self.max_per_session = max_per_session
        self.session_timeout_seconds = session_timeout_seconds
        self._clock = clock
        self._ips: dict[str, ChatIpRecord] = {}
        self._sessions: dict[str, ChatSessionRecord] = {}
        self._lock = threading.Lock()

    def _live_session(self, session_id: str, now: float) -> ChatSessionRecord | None:
        session = self._sessions.get(session_id)
        if session and now - session.last_activity > self.session_timeout_seconds:
            del self._sessions[session_id]
            return None
        return session

    def is_session_limit_reached(self, session_id: str) -> bool:
        """True once the session has used its total; the session is then closed."""
        with self._lock:
            session = self._live_session(session_id, self._clock())
            if session is None:
                return False
            if session.total >= self.max_per_session:
                session.blocked = True
            return session.blocked

    def is_rate_limited(self, ip: str) -> bool:
        """True if ``ip`` has sent its window's worth of messages."""
        with self._lock:
            now = self._clock()
            record = self._ips.get(ip)
            if record is None:
                return False
            if now - record.window_start > self.window_seconds:
                del self._ips[ip]
                return False
            return record.count >= self.max_per_window

    def track(self, ip: str, session_id: str) -> None:
        """Count one answered message against ``ip`` and ``session_id``."""
        with self._lock:
            now = self._clock()

            record = self._ips.get(ip)
            if record is None or now - record.window_start > self.window_seconds:
                self._ips[ip] = ChatIpRecord(count=1, window_start=now, last_message=now)
            else:
                record.count += 1
                record.last_message = now

            session = self._live_session(session_id, now)
            if session is None:
                self._sessions[session_id] = ChatSessionRecord(total=1, last_activity=now)
            else:
                session.total += 1
                session.last_activity = now

    def remaining(self, session_id: str) -> int:
        """Messages the session may still send. Does not modify state."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or (
                self._clock() - session.last_activity > self.session_timeout_seconds
            ):
                return self.max_per_session
            if session.blocked:
                return 0
            return max(0, self.max_per_session - session.total)

    def sweep(self) -> int:
        """
        Drop IPs idle for longer than a window and sessions past the timeout.

        Returns:
            Number of records removed
        """
        with self._lock:
            now = self._clock()
            idle_ips = [
                ip
                for ip, record in self._ips.items()
                if now - record.last_message > self.window_seconds
            ]
            for ip in idle_ips:
                del self._ips[ip]

            idle_sessions = [
                session_id
                for session_id, session in self._sessions.items()
                if now - session.last_activity > self.session_timeout_seconds
            ]
            for session_id in idle_sessions:
                del self._sessions[session_id]

        removed = len(idle_ips) + len(idle_sessions)
        if removed:
            logger.debug(f"Chat limiter sweep removed {removed} idle records")
        return removed

    def reset(self) -> None:
        """Forget every IP and session. Useful for testing."""
        with self._lock:
            self._ips.clear()
            self._sessions.clear()


chat_rate_limiter = ChatRateLimiter(
    max_per_window=settings.CHAT_MAX_MESSAGES_PER_WINDOW,
    window_seconds=settings.CHAT_RATE_LIMIT_WINDOW_SECONDS,
    max_per_session=settings.CHAT_MAX_MESSAGES_PER_SESSION,
    session_timeout_seconds=settings.CHAT_SESSION_TIMEOUT_SECONDS,
)


def get_chat_rate_limiter() -> ChatRateLimiter:
    """Get the process-wide chat limiter (for dependency injection)."""
    return chat_rate_limiter
