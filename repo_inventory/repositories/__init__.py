"""Repository layer for database operations"""

from .base import BaseRepository
from .repo_inventory import RepoInventoryRepository

__all__ = ["BaseRepository", "RepoInventoryRepository"]
