"""
GitHub REST client used as the scanner's source adapter.

Every request goes through ``with_retry`` so rate limits and transient 5xx
responses are retried at the point of the individual call. "Not found" is
translated into empty/absent data by the adapter methods, never raised to
the scanner.
"""

from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

from repo_inventory.config import settings
from repo_inventory.dtos.scan import RepoMeta, TreeEntry
from repo_inventory.entities.repo_inventory import Contributor, LanguageShare
from repo_inventory.services.github.exceptions import (
    GithubApiError,
    GithubConfigurationError,
    GithubError,
    GithubNotFoundError,
    GithubRateLimitError,
    GithubRetryableError,
    GithubSecondaryRateLimitError,
)
from repo_inventory.services.github.retry import with_retry
from repo_inventory.utils.datetime import parse_datetime

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {502, 503}


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"GitHub API {response.status_code}: {response.text[:200]}"
    message = payload.get("message") if isinstance(payload, dict) else None
    return f"GitHub API {response.status_code}: {message or response.reason_phrase}"


def _retry_after(response: httpx.Response) -> Optional[float]:
    """Seconds to wait, from Retry-After or X-RateLimit-Reset."""
    retry_after = response.headers.get("Retry-After")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            pass

    reset = response.headers.get("X-RateLimit-Reset")
    if reset:
        try:
            return max(0.0, float(reset) - time.time())
        except ValueError:
            pass
    return None


def _is_bot(contributor: Dict[str, Any]) -> bool:
    login = contributor.get("login") or ""
    return contributor.get("type") == "Bot" or login.endswith("[bot]")


class GitHubClient:
    """Synchronous GitHub REST API client."""

    def __init__(
        self,
        token: Optional[str],
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return

        status = response.status_code
        message = _error_message(response)

        if status == 404:
            raise GithubNotFoundError(message, status_code=status)

        if status in (403, 429):
            lowered = message.lower()
            if "secondary rate limit" in lowered or "abuse" in lowered:
                raise GithubSecondaryRateLimitError(
                    message,
                    retry_after=_retry_after(response) or 60,
                    status_code=status,
                )
            if status == 429 or response.headers.get("X-RateLimit-Remaining") == "0":
                raise GithubRateLimitError(
                    message, retry_after=_retry_after(response), status_code=status
                )
            # Plain 403: permission denied, not worth retrying
            raise GithubApiError(message, status_code=status)

        if status in RETRYABLE_STATUS:
            raise GithubRetryableError(message, status_code=status)

        raise GithubApiError(message, status_code=status)

    def _send(self, method: str, url: str, params: Optional[dict] = None) -> httpx.Response:
        try:
            response = self._client.request(method, url, params=params)
        except httpx.TransportError as exc:
            raise GithubRetryableError(f"GitHub request failed: {exc}") from exc
        self._raise_for_status(response)
        return response

    def _request(self, method: str, url: str, params: Optional[dict] = None) -> httpx.Response:
        return with_retry(
            lambda: self._send(method, url, params),
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            sleep=self._sleep,
        )

    def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = self._request("GET", url, params=params)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _paginate(self, url: str, params: Optional[dict] = None) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        next_params = dict(params or {})
        while next_url:
            response = self._request("GET", next_url, params=next_params)
            if response.content:
                items.extend(response.json())
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            next_params = None
        return items

    # ------------------------------------------------------------------
    # Source adapter
    # ------------------------------------------------------------------

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._get_json(f"/repos/{owner}/{repo}")

    def get_repo_tree(self, owner: str, repo: str, branch: str) -> List[TreeEntry]:
        """
        List every file and directory at the head of ``branch``.

        Returns an empty list when the branch (or repository) does not exist.
        """
        try:
            branch_data = self._get_json(
                f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}"
            )
            sha = branch_data["commit"]["sha"]
            tree = self._get_json(
                f"/repos/{owner}/{repo}/git/trees/{sha}", params={"recursive": "1"}
            )
        except GithubNotFoundError:
            logger.warning(f"Branch {branch} not found in {owner}/{repo}")
            return []

        if tree.get("truncated"):
            logger.warning(f"Tree for {owner}/{repo}@{branch} was truncated by GitHub")

        return [
            TreeEntry(path=item["path"], type=item.get("type", "blob"), sha=item.get("sha"))
            for item in tree.get("tree", [])
            if item.get("path")
        ]

    def get_text(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Decoded UTF-8 content of a file, or None when it does not exist."""
        try:
            data = self._get_json(
                f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"
            )
        except GithubNotFoundError:
            return None

        # Directory listings come back as a list
        if not isinstance(data, dict) or "content" not in data:
            return None

        if data.get("encoding", "base64") != "base64":
            # Files over 1MB are returned without inline content
            logger.debug(f"Skipping {owner}/{repo}:{path}, content not inlined")
            return None

        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    def list_repo_languages(
        self, owner: str, repo: str, threshold_percent: int = 20
    ) -> List[LanguageShare]:
        """
        Language share by bytes, rounded to whole percent.

        Only languages at or above ``threshold_percent`` are kept, sorted by
        share descending. A failed fetch is logged and yields an empty list.
        """
        try:
            data = self._get_json(f"/repos/{owner}/{repo}/languages") or {}
        except GithubError as exc:
            logger.warning(f"Failed to fetch languages for {owner}/{repo}: {exc}")
            return []

        total = sum(data.values())
        if total <= 0:
            return []

        shares = [
            LanguageShare(name=name, percent=int(size * 100 / total + 0.5))
            for name, size in data.items()
        ]
        shares = [s for s in shares if s.percent >= threshold_percent]
        shares.sort(key=lambda s: s.percent, reverse=True)
        return shares

    def list_repo_contributors(
        self, owner: str, repo: str, limit: int = 10
    ) -> List[Contributor]:
        """Top human contributors by contribution count; empty on failure."""
        try:
            data = self._get_json(
                f"/repos/{owner}/{repo}/contributors", params={"per_page": 100}
            ) or []
        except GithubError as exc:
            logger.warning(f"Failed to fetch contributors for {owner}/{repo}: {exc}")
            return []

        humans = [c for c in data if not _is_bot(c)]
        humans.sort(key=lambda c: c.get("contributions", 0), reverse=True)
        return [
            Contributor(
                login=c["login"],
                avatar_url=c.get("avatar_url") or "",
                profile_url=c.get("html_url") or "",
                contributions=c.get("contributions", 0),
            )
            for c in humans[:limit]
        ]

    # ------------------------------------------------------------------
    # Repository listing
    # ------------------------------------------------------------------

    @staticmethod
    def _to_repo_meta(org: str, repo: Dict[str, Any]) -> RepoMeta:
        return RepoMeta(
            org=org,
            repo_id=repo["id"],
            name=repo["name"],
            owner=(repo.get("owner") or {}).get("login") or org,
            url=repo.get("html_url") or "",
            default_branch=repo.get("default_branch") or "main",
            visibility=repo.get("visibility") or "public",
            primary_language=repo.get("language"),
            updated_at=parse_datetime(repo.get("updated_at"), default_now=False),
            pushed_at=parse_datetime(repo.get("pushed_at"), default_now=False),
        )

    def get_repo_meta(self, org: str, repo: str) -> RepoMeta:
        return self._to_repo_meta(org, self.get_repository(org, repo))

    def list_org_repos(self, org: str) -> List[RepoMeta]:
        """All repositories of an organization (public, private and internal)."""
        repos = self._paginate(f"/orgs/{org}/repos", params={"type": "all", "per_page": 100})
        return [self._to_repo_meta(org, r) for r in repos]

    def list_team_repos(self, org: str, team_slug: str) -> List[RepoMeta]:
        """All repositories a team has access to."""
        repos = self._paginate(
            f"/orgs/{org}/teams/{team_slug}/repos", params={"per_page": 100}
        )
        return [self._to_repo_meta(org, r) for r in repos]


def get_github_client(token: Optional[str] = None) -> GitHubClient:
    """Build a client from settings; a token is required."""
    token = token or settings.GITHUB_TOKEN
    if not token:
        raise GithubConfigurationError("GITHUB_TOKEN is not configured")
    return GitHubClient(
        token=token,
        api_url=settings.GITHUB_API_URL,
        timeout=settings.GITHUB_REQUEST_TIMEOUT,
        max_retries=settings.GITHUB_MAX_RETRIES,
        retry_delay=settings.GITHUB_RETRY_DELAY_SECONDS,
    )
