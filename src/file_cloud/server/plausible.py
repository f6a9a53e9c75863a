"""Server-side pageview beacon for Plausible Analytics.

Direct file links redirect straight to the object store, so the browser never
loads the tracking script. The redirect handler reports those views instead.
"""

from __future__ import annotations

from dataclasses import asdict

import httpx

from file_cloud.server.schema.event import PlausibleEvent
from file_cloud.utils import logging

PLAUSIBLE_API_URL = "https://plausible.io/api/event"

logger = logging.get_logger(__name__)


class PlausibleClient:
    def __init__(
        self,
        domain: str,
        *,
        api_url: str = PLAUSIBLE_API_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.domain = domain
        self.api_url = api_url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send_pageview(self, url: str, user_agent: str, remote_addr: str) -> None:
        event = PlausibleEvent(name="pageview", domain=self.domain, url=url)
        headers = {
            "User-Agent": user_agent,
            "X-Forwarded-For": remote_addr,
            "Content-Type": "application/json",
        }
        try:
            response = await self._client.post(self.api_url, json=asdict(event), headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to send Plausible event for %s: %s", url, exc)
            return
        logger.debug("Sent Plausible pageview for %s", url)

    async def aclose(self) -> None:
        await self._client.aclose()
