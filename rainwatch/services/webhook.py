"""Outbound webhook: POST each alert as JSON to WEBHOOK_URL. No-op when unset."""
import logging
from typing import Any

import httpx

from rainwatch.config import settings

logger = logging.getLogger(__name__)


class WebhookSink:
    def __init__(self, url: str | None = None, *, http: httpx.Client | None = None) -> None:
        self.url = (url if url is not None else settings.webhook_url).strip()
        self._http = http

    def post(self, payload: dict[str, Any]) -> bool:
        """Returns True on a 2xx response; False when disabled or on failure (logged)."""
        if not self.url:
            return False
        try:
            if self._http is not None:
                resp = self._http.post(self.url, json=payload)
            else:
                with httpx.Client(timeout=settings.http_timeout_seconds) as c:
                    resp = c.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Webhook POST to %s failed: %s", self.url, e)
            return False
        if not resp.is_success:
            logger.warning("Webhook returned %s: %s", resp.status_code, resp.text[:200])
            return False
        return True
