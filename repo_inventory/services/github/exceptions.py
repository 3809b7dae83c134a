"""Custom exceptions for GitHub API access."""

from __future__ import annotations


class GithubError(Exception):
    """Base exception for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GithubConfigurationError(GithubError):
    """Raised when required configuration is missing."""


class GithubNotFoundError(GithubError):
    """Raised for 404 responses (missing repository, branch or file)."""


class GithubApiError(GithubError):
    """Raised for non-retryable error responses."""


class GithubRetryableError(GithubError):
    """Raised for transient issues (502/503, network) where retrying may succeed."""


class GithubRateLimitError(GithubError):
    """Raised when the upstream service enforces a rate limit."""

    def __init__(
        self,
        message: str,
        retry_after: int | float | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class GithubSecondaryRateLimitError(GithubRateLimitError):
    """
    Raised when GitHub's secondary rate limit (abuse detection) is triggered.

    Secondary rate limits are triggered by:
    - Too many requests in a short time window (burst)
    - Too many concurrent requests
    - Too many CPU-intensive requests

    These require longer backoff (typically 60s+) compared to primary rate limits.
    """

    pass


# Errors worth retrying with backoff at the point of the individual call
RETRYABLE_ERRORS = (GithubRateLimitError, GithubRetryableError)
