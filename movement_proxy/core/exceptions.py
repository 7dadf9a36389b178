"""Core exceptions for the proxy."""


class ProxyError(Exception):
    """Base exception for proxy errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamStatusError(ProxyError):
    """The upstream answered with a non-success status code."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Upstream API error: {status_code} {body}")
        self.status_code = status_code
        self.body = body


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code
