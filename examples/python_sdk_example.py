from apiversioning_sdk import WeatherForecastApiError, WeatherForecastClient


def main() -> None:
    for version in ("1", "2"):
        with WeatherForecastClient(base_url="http://localhost:8000", api_version=version, retries=2, retry_delay=0.2) as client:
            forecast = client.get_weather_forecast()
            print({"version": version, "days": len(forecast), "forecast": forecast})

    with WeatherForecastClient(base_url="http://localhost:8000", api_version="3") as client:
        try:
            client.get_weather_forecast()
        except WeatherForecastApiError as exc:
            print({"error": str(exc), "available_versions": exc.available_versions})


if __name__ == "__main__":
    main()
