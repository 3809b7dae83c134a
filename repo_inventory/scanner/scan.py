"""
Single-repository scan.

fetch tree -> prefetch common files -> load or initialize the inventory ->
run detectors -> score -> enrich -> persist.

A tree or persistence failure fails the scan and propagates to the caller.
Detector, prefetch and enrichment failures are logged and absorbed.
"""

import logging
from typing import Optional, Protocol, Sequence

from repo_inventory.core.tracing import TracingContext
from repo_inventory.dtos.scan import RepoMeta
from repo_inventory.entities.repo_inventory import DETECTOR_SCALAR_FIELDS, RepoInventory
from repo_inventory.scanner.batch_reader import batch_read_files, create_cached_reader
from repo_inventory.scanner.context import Detector, SourceAdapter
from repo_inventory.scanner.merge import average
from repo_inventory.scanner.runner import run_detectors
from repo_inventory.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class InventoryStore(Protocol):
    def find_inventory(self, org: str, repo_id: int) -> Optional[RepoInventory]: ...

    def upsert_inventory(self, inventory: RepoInventory) -> RepoInventory: ...


def init_inventory(meta: RepoMeta) -> RepoInventory:
    """Fresh inventory record for a repository that has never been scanned."""
    return RepoInventory(
        org=meta.org,
        repo_id=meta.repo_id,
        repo_name=meta.name,
        url=meta.url,
        default_branch=meta.default_branch,
        visibility=meta.visibility,
        primary_language=meta.primary_language,
    )


def reset_detector_scalars(inventory: RepoInventory) -> None:
    """Clear the scalars detectors own so they reflect only the current scan."""
    for name in DETECTOR_SCALAR_FIELDS:
        setattr(inventory, name, None)


def enrich_inventory(
    inventory: RepoInventory,
    adapter: SourceAdapter,
    owner: str,
    repo: str,
    threshold_percent: int = 20,
    contributors_limit: int = 10,
) -> RepoInventory:
    """
    Attach language shares and top contributors.

    Each step is independent: a failure is logged and the record keeps
    whatever it held before.
    """
    try:
        languages = adapter.list_repo_languages(owner, repo, threshold_percent)
        inventory.languages = languages
        if languages:
            inventory.primary_language = languages[0].name
    except Exception as e:
        logger.warning(f"Failed to fetch languages for {owner}/{repo}: {e}")

    try:
        contributors = adapter.list_repo_contributors(owner, repo, contributors_limit)
        inventory.contributors = contributors
        inventory.contributors_count = len(contributors)
        inventory.contributors_updated_at = utc_now()
    except Exception as e:
        logger.warning(f"Failed to fetch contributors for {owner}/{repo}: {e}")

    return inventory


def scan_one_repo(
    adapter: SourceAdapter,
    owner: str,
    repo_name: str,
    meta: RepoMeta,
    detectors: Sequence[Detector],
    store: InventoryStore,
    prefetch_workers: int = 8,
    threshold_percent: int = 20,
    contributors_limit: int = 10,
) -> RepoInventory:
    """
    Scan one repository and persist its inventory record.

    Args:
        adapter: Source adapter used for the tree, file reads and enrichment
        owner: Repository owner login (usually the organization)
        repo_name: Repository name
        meta: Identity and metadata of the repository; ``meta.org`` keys the record
        detectors: Detectors to run, in order
        store: Inventory persistence

    Returns:
        The persisted inventory record

    Raises:
        Whatever the adapter raises while listing the tree, and whatever the
        store raises while persisting.
    """
    TracingContext.set(org=meta.org, repo=repo_name)
    log_prefix = TracingContext.get_log_prefix()

    tree = adapter.get_repo_tree(owner, repo_name, meta.default_branch)
    logger.info(f"{log_prefix} Tree has {len(tree)} entries")

    cache = batch_read_files(
        adapter, owner, repo_name, tree, max_workers=prefetch_workers
    )
    read = create_cached_reader(cache, adapter, owner, repo_name)

    inventory = store.find_inventory(meta.org, meta.repo_id)
    if inventory is None:
        inventory = init_inventory(meta)
    else:
        # Identity may have changed since the last scan (rename, visibility)
        inventory.repo_name = meta.name
        inventory.url = meta.url or inventory.url
        inventory.default_branch = meta.default_branch
        inventory.visibility = meta.visibility
    reset_detector_scalars(inventory)

    detector_pass = run_detectors(inventory, tree, read, detectors)
    if detector_pass.failed:
        logger.warning(
            f"{log_prefix} {len(detector_pass.failed)} detector(s) failed: "
            f"{', '.join(detector_pass.failed)}"
        )

    now = utc_now()
    inventory.evidence = detector_pass.evidence
    inventory.detection_score = average(detector_pass.scores)
    inventory.last_scanned_at = now
    inventory.updated_at = now
    inventory.repo_updated_at = meta.updated_at
    inventory.repo_pushed_at = meta.pushed_at

    enrich_inventory(
        inventory,
        adapter,
        owner,
        repo_name,
        threshold_percent=threshold_percent,
        contributors_limit=contributors_limit,
    )

    store.upsert_inventory(inventory)
    logger.info(
        f"{log_prefix} Scan complete: score={inventory.detection_score}, "
        f"files fetched on demand={read.fetch_count}"
    )
    return inventory
