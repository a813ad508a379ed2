"""Exception and warning hierarchy for agrosim."""


class AgrosimError(Exception):
    """Top-level exception for agrosim."""


class ConfigurationError(AgrosimError, ValueError):
    """Raised when a parameter is missing or out of its valid range."""


class WeatherFetchError(AgrosimError):
    """Raised when weather data cannot be retrieved from a remote archive."""


class ConvergenceWarning(UserWarning):
    """Issued when an iterative solver stops at its iteration cap."""
