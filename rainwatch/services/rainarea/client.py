"""Rain area API client: lowest level, sends request only. Validation lives in fetch.py."""
from typing import Any

import httpx

from rainwatch.core.errors import TransportError
from rainwatch.services.rainarea.config import RainAreaConfig
from rainwatch.services.rainarea.types import TransportResponse


class RainAreaClient:
    """GETs rain area slices over one keep-alive connection pool."""

    def __init__(self, config: RainAreaConfig | None = None, *, http: httpx.Client | None = None) -> None:
        self._config = config or RainAreaConfig()
        self._http = http or httpx.Client(timeout=self._config.timeout, headers=self._config.headers())

    @property
    def config(self) -> RainAreaConfig:
        return self._config

    def get(self, url: str) -> TransportResponse:
        """One GET. Raises TransportError on connection failure or a non-JSON 2xx body."""
        try:
            r = self._http.get(url)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e
        body: dict[str, Any] = {}
        if r.content:
            try:
                parsed = r.json()
            except ValueError as e:
                if r.is_success:
                    raise TransportError(f"GET {url}: invalid JSON body", status_code=r.status_code) from e
                parsed = {}
            if isinstance(parsed, dict):
                body = parsed
        return TransportResponse(body=body, status_ok=r.is_success, status_code=r.status_code)

    def get_slice(self, slot: int) -> TransportResponse:
        return self.get(self._config.slice_url(slot))

    def close(self) -> None:
        self._http.close()
