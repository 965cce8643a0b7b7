"""Server-side store for in-flight login flows."""

import logging
import secrets
import string
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int = 32) -> str:
    """Cryptographically random alphanumeric string."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class FlowState:
    """Values a callback must present to complete a login."""

    provider: str
    state: str
    nonce: str
    created_at: float


class FlowStateStore:
    """Maps flow identifiers to their expected ``state`` and ``nonce``.

    Each login gets a fresh state and nonce; the browser only carries the
    opaque flow identifier. Entries are single-use and expire after
    ``ttl_seconds``. At most ``max_flows`` entries are held; starting a flow
    beyond that evicts the oldest one, whose callback then fails with a
    state mismatch.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        max_flows: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_flows = max_flows
        self._clock = clock
        self._flows: dict[str, FlowState] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_expired(self, flow: FlowState, now: float) -> bool:
        return now - flow.created_at > self._ttl_seconds

    def _purge_expired(self, now: float) -> None:
        # Flows are stored oldest first, so the scan stops at the first live one
        expired: list[str] = []
        for flow_id, flow in self._flows.items():
            if not self._is_expired(flow, now):
                break
            expired.append(flow_id)
        for flow_id in expired:
            del self._flows[flow_id]
        if expired:
            logger.debug("Purged %d expired login flows", len(expired))

    def _evict_oldest(self) -> None:
        evicted = 0
        while self._flows and len(self._flows) >= self._max_flows:
            del self._flows[next(iter(self._flows))]
            evicted += 1
        if evicted:
            logger.warning("Login flow store full, evicted %d oldest flows", evicted)

    def begin(self, provider: str) -> tuple[str, FlowState]:
        """Start a flow for ``provider``; returns the flow id and its state."""
        now = self._clock()
        flow = FlowState(
            provider=provider,
            state=random_string(32),
            nonce=random_string(32),
            created_at=now,
        )
        flow_id = secrets.token_urlsafe(32)

        with self._lock:
            self._purge_expired(now)
            self._evict_oldest()
            self._flows[flow_id] = flow

        return flow_id, flow

    def consume(self, flow_id: str) -> FlowState | None:
        """Remove and return the flow, or None if it is unknown or expired."""
        now = self._clock()
        with self._lock:
            flow = self._flows.pop(flow_id, None)
            self._purge_expired(now)

        if flow is None or self._is_expired(flow, now):
            return None
        return flow

    def __len__(self) -> int:
        with self._lock:
            return len(self._flows)
