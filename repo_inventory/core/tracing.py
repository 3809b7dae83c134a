"""
Tracing Context - Thread-safe context management for scan tracing.

Scans run inside Celery workers, CLI invocations and thread pools. Each
repository scan sets its own context so log lines can be filtered by
organization and repository.

Usage:
    TracingContext.set(correlation_id="abc-123", org="acme", repo="web")
    ctx = TracingContext.get()
    TracingContext.clear()

Note that contextvars are NOT inherited by ThreadPoolExecutor workers;
callers that fan out must set the context inside the worker function.
"""

import uuid
from contextvars import ContextVar
from typing import Dict

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_org: ContextVar[str] = ContextVar("org", default="")
_repo: ContextVar[str] = ContextVar("repo", default="")
_task_name: ContextVar[str] = ContextVar("task_name", default="")


class TracingContext:
    """Thread-safe tracing context."""

    @staticmethod
    def set(
        correlation_id: str = "",
        org: str = "",
        repo: str = "",
        task_name: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if org:
            _org.set(org)
        if repo:
            _repo.set(repo)
        if task_name:
            _task_name.set(task_name)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "org": _org.get(),
            "repo": _repo.get(),
            "task_name": _task_name.get(),
        }

    @staticmethod
    def get_or_create_correlation_id() -> str:
        """Get current correlation ID or create a new one."""
        corr_id = _correlation_id.get()
        if not corr_id:
            corr_id = str(uuid.uuid4())
            _correlation_id.set(corr_id)
        return corr_id

    @staticmethod
    def get_log_prefix() -> str:
        """Short prefix for log messages, e.g. ``[acme/web]``."""
        org, repo = _org.get(), _repo.get()
        if org and repo:
            return f"[{org}/{repo}]"
        return f"[{org or repo}]" if (org or repo) else ""

    @staticmethod
    def clear() -> None:
        """Clear all tracing context."""
        _correlation_id.set("")
        _org.set("")
        _repo.set("")
        _task_name.set("")
