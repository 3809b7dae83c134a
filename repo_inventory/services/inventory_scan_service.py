"""
Inventory Scan Service

Bulk orchestration of repository scans: lists an organization's (or a
team's) repositories, scans them sequentially or in fixed-size concurrent
batches, and reports per-repository outcomes. One repository failing never
stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from repo_inventory.config import settings
from repo_inventory.dtos.scan import BulkScanReport, RepoMeta, RepoScanOutcome
from repo_inventory.entities.repo_inventory import RepoInventory
from repo_inventory.scanner.context import Detector
from repo_inventory.scanner.scan import InventoryStore, scan_one_repo

logger = logging.getLogger(__name__)


class InventoryScanService:
    """Service for scanning repositories into the inventory."""

    def __init__(
        self,
        adapter,
        store: InventoryStore,
        detectors: Optional[Sequence[Detector]] = None,
        prefetch_workers: Optional[int] = None,
        threshold_percent: Optional[int] = None,
        contributors_limit: Optional[int] = None,
    ):
        if detectors is None:
            from repo_inventory.scanner.detectors import ALL_DETECTORS

            detectors = ALL_DETECTORS

        self.adapter = adapter
        self.store = store
        self.detectors = list(detectors)
        self.prefetch_workers = prefetch_workers or settings.SCAN_PREFETCH_WORKERS
        self.threshold_percent = (
            threshold_percent
            if threshold_percent is not None
            else settings.LANGUAGE_THRESHOLD_PERCENT
        )
        self.contributors_limit = contributors_limit or settings.CONTRIBUTORS_LIMIT

    def scan(self, meta: RepoMeta) -> RepoInventory:
        """Scan one repository; failures propagate."""
        return scan_one_repo(
            self.adapter,
            meta.owner_login,
            meta.name,
            meta,
            self.detectors,
            self.store,
            prefetch_workers=self.prefetch_workers,
            threshold_percent=self.threshold_percent,
            contributors_limit=self.contributors_limit,
        )

    def scan_repo(self, meta: RepoMeta) -> RepoScanOutcome:
        """Scan one repository, capturing any failure in the outcome."""
        try:
            inventory = self.scan(meta)
        except Exception as e:
            logger.error(f"Failed to scan {meta.org}/{meta.name}: {e}", exc_info=True)
            return RepoScanOutcome(
                repo=meta.name, repo_id=meta.repo_id, status="error", error=str(e)
            )

        return RepoScanOutcome(
            repo=meta.name,
            repo_id=meta.repo_id,
            status="success",
            detection_score=inventory.detection_score,
        )

    def scan_repos(
        self,
        org: str,
        repos: Iterable[RepoMeta],
        batch_size: Optional[int] = None,
    ) -> BulkScanReport:
        """
        Scan ``repos`` and report every outcome.

        Args:
            org: Organization the report is for
            repos: Repositories to scan
            batch_size: None or 1 scans sequentially. Larger values scan
                that many repositories concurrently; the next batch starts
                once the whole previous batch has finished.

        Returns:
            BulkScanReport with one outcome per repository, in input order
        """
        repos = list(repos)
        report = BulkScanReport(org=org)
        logger.info(
            f"Scanning {len(repos)} repositories for {org} (batch_size={batch_size})"
        )

        if not batch_size or batch_size <= 1:
            for meta in repos:
                report.results.append(self.scan_repo(meta))
        else:
            with ThreadPoolExecutor(max_workers=batch_size) as executor:
                for start in range(0, len(repos), batch_size):
                    batch = repos[start : start + batch_size]
                    # map() yields in submission order and waits for the batch
                    report.results.extend(executor.map(self.scan_repo, batch))
                    logger.info(
                        f"Batch {start // batch_size + 1} done: "
                        f"{min(start + batch_size, len(repos))}/{len(repos)}"
                    )

        logger.info(
            f"Scan of {org} finished: {report.scanned} scanned, {report.failed} failed"
        )
        return report

    def list_repos(self, org: str, team_slug: Optional[str] = None) -> List[RepoMeta]:
        if team_slug:
            return self.adapter.list_team_repos(org, team_slug)
        return self.adapter.list_org_repos(org)

    def scan_org(
        self,
        org: str,
        team_slug: Optional[str] = None,
        batch_size: Optional[int] = None,
    ) -> BulkScanReport:
        """Scan every repository of an organization, or of one of its teams."""
        return self.scan_repos(org, self.list_repos(org, team_slug), batch_size)

    def scan_new_repos(
        self,
        org: str,
        team_slug: Optional[str] = None,
        batch_size: Optional[int] = None,
    ) -> BulkScanReport:
        """Scan only repositories that have no inventory record yet."""
        known = self.store.list_repo_ids(org)
        new_repos = [r for r in self.list_repos(org, team_slug) if r.repo_id not in known]
        logger.info(f"{len(new_repos)} new repositories in {org}")
        return self.scan_repos(org, new_repos, batch_size)

    def rescan_repo(self, org: str, repo_name: str) -> RepoScanOutcome:
        """Rescan a single repository by name."""
        meta = self.adapter.get_repo_meta(org, repo_name)
        return self.scan_repo(meta)

    @staticmethod
    def enqueue_org_scan(
        org: str, team_slug: Optional[str] = None, only_new: bool = False
    ) -> str:
        """Queue an organization scan on the Celery workers; returns the task id."""
        from repo_inventory.tasks.inventory_scan import dispatch_org_scan

        result = dispatch_org_scan.delay(org, team_slug=team_slug, only_new=only_new)
        logger.info(f"Queued scan of {org} as task {result.id}")
        return result.id
