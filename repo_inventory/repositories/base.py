"""Base repository with common MongoDB operations for typed entities."""

from __future__ import annotations

from typing import Any, Dict, Generic, Optional, Type, TypeVar

from pymongo.collection import Collection
from pymongo.database import Database

from repo_inventory.entities.base import BaseEntity

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(Generic[T]):
    """Thin wrapper around a collection that converts documents to entities."""

    def __init__(self, db: Database, collection_name: str, model_class: Type[T]):
        self.db = db
        self.collection: Collection = db[collection_name]
        self.model_class = model_class

    def _to_entity(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        if doc is None:
            return None
        return self.model_class.model_validate(doc)

    def find_one(self, query: Dict[str, Any]) -> Optional[T]:
        return self._to_entity(self.collection.find_one(query))

    def replace_one(self, entity: T) -> T:
        if entity.id is None:
            raise ValueError("Cannot replace an entity that has no _id")
        self.collection.replace_one({"_id": entity.id}, entity.to_mongo())
        return entity
