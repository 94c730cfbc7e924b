"""
Error types and error handling utilities for upstream calls.

This module provides the exception hierarchy surfaced to callers and an
ErrorHandler that classifies transport failures for logging and retries.
"""

from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Base exception for fetch-related errors."""
    pass


class NotFoundError(FetchError):
    """Raised when a name does not resolve to an address."""
    pass


class BadRequestError(FetchError):
    """Raised when caller-supplied input is invalid."""
    pass


class UpstreamError(FetchError):
    """Raised when the indexing API or node RPC fails or returns an error payload."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class RateLimitError(UpstreamError):
    """Raised when the provider rejects a request for quota or rate reasons."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message, code=429)
        self.retry_after = retry_after


class NetworkError(UpstreamError):
    """Raised when network-related errors occur."""
    pass


class ErrorHandler:
    """
    Centralized error handling for upstream calls.

    Provides classification, logging, and retry decisions for the
    errors encountered while talking to the provider.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, base_delay: float = 1.0):
        self.logger = logger or logging.getLogger(__name__)
        self.base_delay = base_delay

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        if isinstance(error, RateLimitError):
            return 'rate_limit'
        if isinstance(error, NetworkError):
            return 'network'
        if isinstance(error, (NotFoundError, BadRequestError)):
            return 'validation'

        error_str = str(error).lower()

        # Rate limiting errors
        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429', 'exceeded']):
            return 'rate_limit'

        # Network connectivity errors
        if any(keyword in error_str for keyword in ['connection', 'timeout', 'network', 'dns']):
            return 'network'

        # Contract execution errors
        if any(keyword in error_str for keyword in ['revert', 'execution reverted', 'out of gas']):
            return 'contract'

        # Validation errors
        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400']):
            return 'validation'

        return 'unknown'

    def should_retry(self, error: Exception, attempt: int, max_retries: int) -> bool:
        """
        Determine if an error should trigger a retry.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)
            max_retries: Maximum number of attempts allowed

        Returns:
            True if operation should be retried
        """
        if attempt + 1 >= max_retries:
            return False

        return self.classify_error(error) in ('network', 'rate_limit', 'unknown')

    def get_retry_delay(self, error: Exception, attempt: int) -> float:
        """
        Calculate appropriate retry delay based on error type and attempt.

        Args:
            error: Exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds before retry
        """
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return error.retry_after

        error_category = self.classify_error(error)
        base_delay = min(self.base_delay * 2 ** attempt, 60)

        if error_category == 'rate_limit':
            return base_delay * 2
        if error_category == 'network':
            return base_delay
        return base_delay * 1.5

    def log_error(self, error: Exception, context: Dict[str, Any]):
        """
        Log error with appropriate level and context.

        Args:
            error: Exception to log
            context: Additional context for logging
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        if error_category == 'validation':
            self.logger.warning(f"Validation error: {error}", extra=log_data)
        elif error_category == 'contract':
            self.logger.error(f"Contract call failed: {error}", extra=log_data)
        elif error_category == 'rate_limit':
            self.logger.info(f"Rate limit encountered: {error}", extra=log_data)
        else:
            self.logger.warning(f"Upstream call error: {error}", extra=log_data)
