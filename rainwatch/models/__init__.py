from rainwatch.models.coverage_state import CoverageState
from rainwatch.models.weather_slice import WeatherSlice

__all__ = [
    "CoverageState",
    "WeatherSlice",
]
