"""eBay application token: client-credentials grant, shared session, periodic refresh."""

from __future__ import annotations

import base64
import threading
from typing import Callable, Optional

import httpx

from listings.settings import Settings
from listings.utils.logging import get_logger

from .base import PermanentError, TransientError

logger = get_logger(__name__)

TokenProviderFn = Callable[[], str]


class EbayTokenClient:
    """Exchanges the app's client credentials for an application access token."""

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None) -> None:
        self._settings = settings
        self._client = client

    def _basic_auth(self) -> str:
        raw = f"{self._settings.oauth_client_id}:{self._settings.oauth_client_secret}"
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def fetch_token(self) -> str:
        cfg = self._settings
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": f"Basic {self._basic_auth()}",
        }
        data = {"grant_type": "client_credentials", "scope": cfg.ebay_oauth_scope}
        try:
            if self._client is not None:
                resp = self._client.post(cfg.ebay_token_endpoint, headers=headers, data=data)
            else:
                resp = httpx.post(
                    cfg.ebay_token_endpoint,
                    headers=headers,
                    data=data,
                    timeout=float(cfg.ebay_timeout_seconds),
                )
        except httpx.HTTPError as exc:
            raise TransientError("eBay token endpoint unreachable") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientError(f"eBay token endpoint temporary error: {resp.status_code}")
        if resp.status_code >= 400:
            raise PermanentError(f"eBay token request rejected: {resp.status_code} {resp.text[:500]}")

        token = resp.json().get("access_token")
        if not token:
            raise PermanentError("eBay token response missing access_token")
        return str(token)


class ApplicationTokenSession:
    """Process-wide holder of the current application token.

    Refreshes run under a lock. A caller that saw a token rejected passes it as
    ``stale``; if another thread already swapped it out the fresh one is
    returned without a second round-trip.
    """

    def __init__(self, provider: TokenProviderFn) -> None:
        self._provider = provider
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self.refresh_count = 0

    @property
    def token(self) -> Optional[str]:
        return self._token

    def get_token(self) -> str:
        """Return the held token, fetching one first if none is held yet."""
        with self._lock:
            if self._token:
                return self._token
            return self._fetch_locked()

    def refresh(self, stale: Optional[str] = None) -> str:
        """Replace the token; with ``stale`` set, only if it is still the held one."""
        with self._lock:
            current = self._token
            if current and stale is not None and current != stale:
                return current
            return self._fetch_locked()

    def _fetch_locked(self) -> str:
        try:
            token = self._provider()
        except Exception:
            logger.exception("token.refresh_failed")
            raise
        self._token = token
        self.refresh_count += 1
        logger.info("token.refreshed", extra={"refresh_count": self.refresh_count})
        return token


class TokenRefresher:
    """Refreshes the session on a fixed interval from a daemon thread."""

    def __init__(self, session: ApplicationTokenSession, interval_seconds: float) -> None:
        self._session = session
        self._interval = float(interval_seconds)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="ebay-token-refresher", daemon=True)
        self._thread.start()
        logger.info("token.refresher.started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
        logger.info("token.refresher.stopped")

    def _run(self) -> None:
        # First refresh happens immediately so the first sync starts with a token.
        while not self._stop.is_set():
            try:
                self._session.refresh()
            except Exception as exc:
                logger.warning("token.refresher.tick_failed", extra={"error": str(exc)})
            if self._stop.wait(self._interval):
                break
