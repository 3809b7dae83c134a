"""
MongoDB connection helpers.
"""

from __future__ import annotations

import logging

from pymongo import MongoClient
from pymongo.database import Database

logger = logging.getLogger(__name__)

_client: MongoClient | None = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        # Import settings lazily to ensure env vars are loaded
        from repo_inventory.config import settings

        logger.info("Initializing MongoClient for database %s", settings.MONGODB_DB_NAME)
        # tz_aware so timestamps read back compare equal to the aware ones written
        _client = MongoClient(settings.MONGODB_URI, tz_aware=True)
    return _client


def get_database() -> Database:
    from repo_inventory.config import settings

    client = get_client()
    return client[settings.MONGODB_DB_NAME]
