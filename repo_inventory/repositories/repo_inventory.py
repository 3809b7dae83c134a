"""Repository for RepoInventory entities."""

from __future__ import annotations

import logging
from typing import Optional, Set

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from repo_inventory.config import settings
from repo_inventory.entities.repo_inventory import RepoInventory
from repo_inventory.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class RepoInventoryRepository(BaseRepository[RepoInventory]):
    """Inventory store keyed by (org, repo_id)."""

    def __init__(self, db: Database, collection_name: Optional[str] = None):
        super().__init__(
            db, collection_name or settings.INVENTORY_COLLECTION, RepoInventory
        )
        self.ensure_indexes()

    def ensure_indexes(self) -> None:
        """Create the unique (org, repo_id) index. Safe to call repeatedly."""
        self.collection.create_index(
            [("org", ASCENDING), ("repo_id", ASCENDING)],
            unique=True,
            name="repo_org_id_unique",
            background=True,
        )

    def find_inventory(self, org: str, repo_id: int) -> Optional[RepoInventory]:
        """Find the inventory record for a repository within an organization."""
        return self.find_one({"org": org, "repo_id": repo_id})

    def upsert_inventory(self, inventory: RepoInventory) -> RepoInventory:
        """
        Persist a full inventory record.

        Records loaded from the store carry their ``_id`` and are replaced in
        full. Fresh records are written with an atomic upsert on
        (org, repo_id), so two scans of the same repository that both found
        nothing end up sharing one document; the stored ``_id`` is read back.
        """
        if inventory.id is not None:
            self.replace_one(inventory)
            logger.debug(
                "Updated inventory %s/%s", inventory.org, inventory.repo_name
            )
            return inventory

        doc = self.collection.find_one_and_replace(
            {"org": inventory.org, "repo_id": inventory.repo_id},
            inventory.to_mongo(),
            projection={"_id": 1},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        inventory.id = doc["_id"]
        logger.debug("Upserted inventory %s/%s", inventory.org, inventory.repo_name)
        return inventory

    def list_repo_ids(self, org: str) -> Set[int]:
        """Repository ids already present in the inventory for an organization."""
        cursor = self.collection.find({"org": org}, {"repo_id": 1, "_id": 0})
        return {doc["repo_id"] for doc in cursor}
