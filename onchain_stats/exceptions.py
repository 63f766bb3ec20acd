"""
On-chain Stats Exceptions - Custom exception hierarchy.

Library code raises these; the stat boundary converts them into
StatResult errors so a dashboard never aborts on one failing stat.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class OnchainStatsError(Exception):
    """Base exception for all on-chain stats errors."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source": self.source,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source:
            parts.append(f"[source={self.source}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class HttpError(OnchainStatsError):
    """Non-2xx response or transport failure from an upstream API."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source, original_error, context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class RateLimitError(HttpError):
    """Upstream answered 429."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
        request_url: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            source,
            status_code=429,
            request_url=request_url,
            context=context,
        )
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data


class RequestTimeoutError(HttpError):
    """A single request exceeded the configured per-request timeout."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(
            message,
            source,
            request_url=request_url,
            original_error=original_error,
        )
        self.timeout_seconds = timeout_seconds


class MalformedResponseError(OnchainStatsError):
    """Response body could not be interpreted at all."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        field_name: Optional[str] = None,
        raw_data: Optional[Any] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, source, original_error)
        self.field_name = field_name
        self.raw_data = raw_data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "field_name": self.field_name,
            "raw_data": str(self.raw_data)[:500] if self.raw_data is not None else None,
        })
        return data


class MetadataUnavailableError(OnchainStatsError):
    """Token decimals or total supply could not be determined."""

    def __init__(
        self,
        message: str,
        token_address: Optional[str] = None,
        missing_fields: Optional[list[str]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, "explorer", original_error)
        self.token_address = token_address
        self.missing_fields = missing_fields or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "token_address": self.token_address,
            "missing_fields": self.missing_fields,
        })
        return data


class InvalidAddressError(OnchainStatsError):
    """Address is not a 0x-prefixed 20-byte hex string."""

    def __init__(self, address: Any) -> None:
        super().__init__(f"Invalid address format: {address!r}")
        self.address = address


class UnknownStatError(OnchainStatsError):
    """Requested stat id is not registered."""

    def __init__(
        self,
        stat_id: str,
        available: Optional[list[str]] = None,
    ) -> None:
        super().__init__(f"Stat not found: {stat_id}")
        self.stat_id = stat_id
        self.available = available or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "stat_id": self.stat_id,
            "available": self.available,
        })
        return data


class ConfigurationError(OnchainStatsError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data
