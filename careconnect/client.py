"""
Polling helper for the provider's pending-verification view.

The API has no push channel; a waiting provider re-fetches
``GET /verification/{provider_id}`` until every stage is approved.
"""

import logging
import time
from typing import Callable, Optional

import httpx

from .config import AUTH_HTTP_TIMEOUT, VERIFICATION_POLL_SECONDS

logger = logging.getLogger(__name__)


class VerificationPoller:
    def __init__(
        self,
        base_url: str,
        token: str,
        interval: float = VERIFICATION_POLL_SECONDS,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self._sleep = sleep
        self._client = http_client or httpx.Client(timeout=AUTH_HTTP_TIMEOUT)
        self._headers = {"Authorization": f"Bearer {token}"}

    def fetch(self, provider_id: str) -> dict:
        response = self._client.get(
            f"{self.base_url}/verification/{provider_id}", headers=self._headers
        )
        response.raise_for_status()
        return response.json()

    def wait_until_verified(self, provider_id: str, max_polls: Optional[int] = None) -> dict:
        """
        Poll until ``isFullyVerified`` is true and return the final state.

        Transport errors and 5xx replies are logged and retried on the next
        tick; any other error status (an expired token, an unknown provider)
        is raised. Raises TimeoutError when ``max_polls`` fetches pass without
        full verification.
        """
        polls = 0
        while True:
            polls += 1
            try:
                state = self.fetch(provider_id)
            except httpx.TransportError as e:
                logger.warning(f"⚠️ Verification poll {polls} for {provider_id} failed: {e}")
                state = None
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    logger.error(
                        f"❌ Verification poll for {provider_id} rejected: {e.response.status_code}"
                    )
                    raise
                logger.warning(f"⚠️ Verification poll {polls} for {provider_id} failed: {e}")
                state = None

            if state and state.get("isFullyVerified"):
                logger.info(f"✅ Provider {provider_id} fully verified after {polls} polls")
                return state

            if max_polls is not None and polls >= max_polls:
                raise TimeoutError(f"Provider {provider_id} not verified after {polls} polls")

            self._sleep(self.interval)

    def close(self) -> None:
        self._client.close()
