"""Rain area API config. Base URL and timeout from settings (RAINAREA_API_URL, HTTP_TIMEOUT_SECONDS) or RainAreaClient args."""
from rainwatch.config import settings

DEFAULT_USER_AGENT = "rainwatch/0.1 (+https://checkweather.sg)"


class RainAreaConfig:
    """Endpoint and request options for the rain area API."""

    __slots__ = ("api_url", "timeout", "user_agent")

    def __init__(
        self,
        *,
        api_url: str | None = None,
        timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.api_url = (api_url or settings.rainarea_api_url).strip().rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.user_agent = user_agent

    def slice_url(self, slot: int) -> str:
        return f"{self.api_url}?dt={slot}"

    def headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
