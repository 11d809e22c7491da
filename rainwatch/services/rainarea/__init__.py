"""Rain area API: client (transport), typed bodies, single and retried slice fetches."""
from rainwatch.services.rainarea.client import RainAreaClient
from rainwatch.services.rainarea.config import RainAreaConfig
from rainwatch.services.rainarea.fetch import RetryPolicy, fetch_once, fetch_slice
from rainwatch.services.rainarea.types import CoverageReading, TransportResponse

__all__ = [
    "CoverageReading",
    "RainAreaClient",
    "RainAreaConfig",
    "RetryPolicy",
    "TransportResponse",
    "fetch_once",
    "fetch_slice",
]
