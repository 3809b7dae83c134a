"""
Inventory scan tasks.

dispatch_org_scan lists an organization's repositories and fans out one
scan_repo task per repository; each scan_repo task scans and persists a
single repository.
"""

import logging
from typing import Any, Dict, Optional

from repo_inventory.celery_app import celery_app
from repo_inventory.config import settings
from repo_inventory.repositories.repo_inventory import RepoInventoryRepository
from repo_inventory.services.github.exceptions import GithubRateLimitError
from repo_inventory.services.inventory_scan_service import InventoryScanService
from repo_inventory.tasks.base import PipelineTask

logger = logging.getLogger(__name__)


def _service(task: PipelineTask) -> InventoryScanService:
    return InventoryScanService(task.github, RepoInventoryRepository(task.db))


@celery_app.task(
    bind=True,
    base=PipelineTask,
    name="repo_inventory.tasks.inventory_scan.scan_repo",
    queue=settings.SCAN_QUEUE,
    max_retries=5,
    soft_time_limit=600,
    time_limit=660,
)
def scan_repo(self: PipelineTask, org: str, repo: str) -> Dict[str, Any]:
    """Scan one repository by name."""
    service = _service(self)
    try:
        meta = service.adapter.get_repo_meta(org, repo)
        inventory = service.scan(meta)
    except GithubRateLimitError as e:
        wait = e.retry_after if e.retry_after else 60
        logger.warning("Rate limit hit scanning %s/%s. Retrying in %s seconds.", org, repo, wait)
        raise self.retry(exc=e, countdown=wait)

    return {
        "org": org,
        "repo": repo,
        "repo_id": inventory.repo_id,
        "detection_score": inventory.detection_score,
    }


@celery_app.task(
    bind=True,
    base=PipelineTask,
    name="repo_inventory.tasks.inventory_scan.dispatch_org_scan",
    queue=settings.SCAN_QUEUE,
    max_retries=3,
)
def dispatch_org_scan(
    self: PipelineTask,
    org: str,
    team_slug: Optional[str] = None,
    only_new: bool = False,
) -> Dict[str, Any]:
    """
    Enqueue a scan_repo task for every repository of ``org``.

    Args:
        org: Organization login
        team_slug: Restrict to repositories of this team
        only_new: Skip repositories that already have an inventory record
    """
    service = _service(self)
    try:
        repos = service.list_repos(org, team_slug)
    except GithubRateLimitError as e:
        wait = e.retry_after if e.retry_after else 60
        logger.warning("Rate limit hit listing %s. Retrying in %s seconds.", org, wait)
        raise self.retry(exc=e, countdown=wait)

    if only_new:
        known = service.store.list_repo_ids(org)
        repos = [r for r in repos if r.repo_id not in known]

    for meta in repos:
        scan_repo.delay(org, meta.name)

    logger.info(f"[{org}] Dispatched {len(repos)} repository scans")
    return {"org": org, "team_slug": team_slug, "enqueued": len(repos)}
