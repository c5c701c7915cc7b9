class WorklineSearchError(Exception):
    """Base class for errors raised inside the search core."""


class FetchError(WorklineSearchError):
    """Raised when a page cannot be fetched (network, timeout or HTTP status)."""


class RefreshAborted(WorklineSearchError):
    """Raised when the index page cannot be fetched or parsed; the cache is left as is."""


class ExternalSearchUnavailable(WorklineSearchError):
    """Raised when the external search API is not configured or fails."""


class ConfigError(WorklineSearchError):
    """Raised when the configuration file cannot be read."""
