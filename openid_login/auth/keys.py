"""Public signing key retrieval from a provider's JSON Web Key Set."""

import binascii
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from jwt.utils import from_base64url_uint
from prometheus_client import Counter

from openid_login.exceptions import KeyFetchError, KeyNotFound, KeySetParseError

JWKS_FETCH_TOTAL = Counter(
    "jwks_fetch_total",
    "Total JWKS fetches by status",
    ["status"],
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JsonWebKey:
    """RSA public key published in a key set."""

    key_id: str
    modulus: int
    public_exponent: int


@dataclass(frozen=True)
class KeySet:
    """Ordered collection of published RSA keys."""

    keys: tuple[JsonWebKey, ...]

    def find(self, key_id: str) -> JsonWebKey | None:
        """Return the first key whose id matches, in published order."""
        for key in self.keys:
            if key.key_id == key_id:
                return key
        return None

    @classmethod
    def from_document(cls, document: Any) -> "KeySet":
        """Build a key set from a parsed JWKS document.

        Raises:
            KeySetParseError: If the document does not have the JWKS shape
        """
        if not isinstance(document, dict):
            raise KeySetParseError("Key set document is not a JSON object")
        entries = document.get("keys")
        if not isinstance(entries, list):
            raise KeySetParseError("Key set document has no 'keys' array")

        keys: list[JsonWebKey] = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise KeySetParseError("Key set entry is not a JSON object")
            # Non-RSA keys may share the set; they can never verify RS256
            if entry.get("kty", "RSA") != "RSA":
                continue
            keys.append(_parse_key(entry))
        return cls(keys=tuple(keys))


def _parse_key(entry: dict[str, Any]) -> JsonWebKey:
    kid = entry.get("kid")
    n = entry.get("n")
    e = entry.get("e")
    if not isinstance(kid, str) or not isinstance(n, str) or not isinstance(e, str):
        raise KeySetParseError("Key set entry requires string 'kid', 'n' and 'e'")
    try:
        return JsonWebKey(
            key_id=kid,
            modulus=from_base64url_uint(n),
            public_exponent=from_base64url_uint(e),
        )
    except (binascii.Error, ValueError) as ex:
        raise KeySetParseError(f"Key {kid} has an invalid modulus or exponent") from ex


class KeyResolver:
    """Fetches key sets and selects the key a token was signed with.

    Caching is off unless ``cache_ttl`` is positive: every resolution then
    triggers a fresh fetch. With a TTL, key sets are cached per JWKS URI and
    refetched when a key id is missing, so provider key rotation is picked up
    without waiting for the TTL. Such refetches happen at most once per
    ``min_refresh_interval`` seconds per URI; unknown key ids inside that
    window are rejected from the cached set.
    """

    def __init__(
        self,
        http_timeout: float = 5.0,
        cache_ttl: float = 0,
        min_refresh_interval: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http_timeout = http_timeout
        self._cache_ttl = cache_ttl
        self._min_refresh_interval = min_refresh_interval
        self._clock = clock
        self._cache: dict[str, tuple[KeySet, float]] = {}
        self._lock = threading.Lock()

    def fetch_key_set(self, jwks_uri: str) -> KeySet:
        """Download and parse the key set published at ``jwks_uri``.

        Raises:
            KeyFetchError: On transport failure, timeout or non-2xx status
            KeySetParseError: If the body is not a valid JWKS document
        """
        try:
            response = httpx.get(jwks_uri, timeout=self._http_timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            JWKS_FETCH_TOTAL.labels(status="fetch_failed").inc()
            logger.error("Failed to fetch JWKS from %s: %s", jwks_uri, str(e))
            raise KeyFetchError(f"Failed to fetch signing keys: {e}") from e

        try:
            document = response.json()
        except ValueError as e:
            JWKS_FETCH_TOTAL.labels(status="parse_failed").inc()
            raise KeySetParseError("Key set response is not valid JSON") from e

        try:
            key_set = KeySet.from_document(document)
        except KeySetParseError:
            JWKS_FETCH_TOTAL.labels(status="parse_failed").inc()
            raise

        JWKS_FETCH_TOTAL.labels(status="success").inc()
        logger.debug("Fetched %d keys from %s", len(key_set.keys), jwks_uri)
        return key_set

    def _cached_entry(self, jwks_uri: str) -> tuple[KeySet, float] | None:
        if self._cache_ttl <= 0:
            return None
        with self._lock:
            cached = self._cache.get(jwks_uri)
        if cached is None:
            return None
        if self._clock() - cached[1] > self._cache_ttl:
            return None
        return cached

    def _refresh(self, jwks_uri: str) -> KeySet:
        key_set = self.fetch_key_set(jwks_uri)
        if self._cache_ttl > 0:
            with self._lock:
                self._cache[jwks_uri] = (key_set, self._clock())
        return key_set

    def resolve_key(self, jwks_uri: str, key_id: str) -> JsonWebKey:
        """Return the published key matching ``key_id``.

        Raises:
            KeyFetchError: If the key set cannot be retrieved
            KeySetParseError: If the key set is malformed
            KeyNotFound: If no published key carries ``key_id``
        """
        cached = self._cached_entry(jwks_uri)
        if cached is not None:
            key_set, fetched_at = cached
            key = key_set.find(key_id)
            if key is not None:
                return key
            age = self._clock() - fetched_at
            if age < self._min_refresh_interval:
                logger.info("kid %s not in key set fetched %.0fs ago", key_id, age)
                raise KeyNotFound(key_id)
            logger.info("kid %s not in cached key set, refreshing", key_id)

        key = self._refresh(jwks_uri).find(key_id)
        if key is None:
            raise KeyNotFound(key_id)
        return key
