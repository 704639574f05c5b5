from .client import WeatherForecastApiError, WeatherForecastClient

__all__ = ["WeatherForecastApiError", "WeatherForecastClient"]
__version__ = "0.1.0"
