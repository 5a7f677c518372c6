from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    MISSING_API_KEY = "MISSING_API_KEY"
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    UNKNOWN = "UNKNOWN"


# Client-side failures that another attempt cannot fix.
NON_RETRYABLE_CODES = frozenset(
    {
        ErrorCode.MISSING_API_KEY,
        ErrorCode.INVALID_API_KEY,
        ErrorCode.INVALID_PARAMS,
        ErrorCode.NOT_FOUND,
    }
)


@dataclass(frozen=True)
class ApiError:
    code: ErrorCode
    message: str
    provider: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.provider is not None:
            payload["provider"] = self.provider
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class ProviderError(RuntimeError):
    """Classified failure raised by the HTTP layer and provider adapters."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.provider = provider
        self.details = details

    @property
    def retryable(self) -> bool:
        return self.code not in NON_RETRYABLE_CODES

    def to_api_error(self) -> ApiError:
        return ApiError(code=self.code, message=self.message, provider=self.provider, details=self.details)


class MissingApiKey(ProviderError):
    """Raised when a provider needs a credential that is not configured."""

    def __init__(self, provider: str, message: Optional[str] = None) -> None:
        super().__init__(
            ErrorCode.MISSING_API_KEY,
            message or f"API key for {provider} is not configured",
            provider=provider,
        )


__all__ = ["ApiError", "ErrorCode", "MissingApiKey", "NON_RETRYABLE_CODES", "ProviderError"]
