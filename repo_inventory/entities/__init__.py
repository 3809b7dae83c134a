"""Database entity models - represents the actual structure stored in MongoDB"""

from .base import BaseEntity, PyObjectId
from .repo_inventory import (
    ARRAY_FIELDS,
    DETECTOR_SCALAR_FIELDS,
    Contributor,
    LanguageShare,
    Proof,
    RepoInventory,
)

__all__ = [
    "BaseEntity",
    "PyObjectId",
    "ARRAY_FIELDS",
    "DETECTOR_SCALAR_FIELDS",
    "Contributor",
    "LanguageShare",
    "Proof",
    "RepoInventory",
]
