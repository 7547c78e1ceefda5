"""Exceptions raised by the pollen risk services.

Each carries a user-facing message; the API layer passes ``str(exc)``
straight through to the client.
"""


class WeatherUnavailableError(Exception):
    """Weather or air-quality data for a location could not be fetched."""

    def __init__(self, message: str = "Could not fetch weather data. Please try again shortly."):
        super().__init__(message)


class MapUnavailableError(Exception):
    """Every city in the regional map failed to load."""

    def __init__(self, message: str = "Could not fetch regional map data. Please try again shortly."):
        super().__init__(message)


class GeolocationError(Exception):
    """Current position could not be acquired (denied, failed, or timed out)."""

    def __init__(self, message: str = "Could not get your location. Check the location permission settings."):
        super().__init__(message)


class UnknownLocationError(LookupError):
    """A location id that is neither a preset nor the custom location."""
