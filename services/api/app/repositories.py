"""Owner-scoped data access for the four synced entity types.

One repository per type, all sharing EntityRepository:
- get_by_id_for_owner: lookup scoped to the owner; another owner's row is simply not found
- upsert: idempotent insert-or-replace by (owner_id, id), one commit per entity
- get_changes_since: delta cursor query, live rows and tombstones alike

The create/apply_changes/soft_delete helpers are the server-side mutation path
(CRUD routers). They follow the same lifecycle as devices do: version 1 on
create, +1 on every change, tombstone instead of delete.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generic, Iterator, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Recipe, PantryItem, ShoppingList, ShoppingItem, SYNC_COLUMNS
from .orm_types import as_utc
from .sync.entities import EntityType, same_content
from .sync.errors import StorageFailure

logger = logging.getLogger("dishflow.repositories")

T = TypeVar("T", Recipe, PantryItem, ShoppingList, ShoppingItem)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityRepository(Generic[T]):
    model: type[T]
    entity_type: EntityType

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{self.entity_type.value} {operation} failed: {e}")
            raise StorageFailure(
                f"{operation} failed for {self.entity_type.value}", entity_type=self.entity_type.value
            ) from e

    # --- Sync contract ---

    def get_by_id_for_owner(self, entity_id: str, owner_id: str) -> Optional[T]:
        with self._storage("get"):
            return self.db.scalar(
                select(self.model).where(
                    self.model.id == entity_id,
                    self.model.owner_id == owner_id,
                )
            )

    def upsert(self, entity: T) -> T:
        """Insert or replace the row with entity's (owner_id, id).

        Writing the same entity twice leaves the same stored state. A write
        carrying a lower sync_version than the stored row has been superseded
        and is dropped. So is a write at the stored version with different
        content: that version is already taken by another accepted mutation.
        """
        with self._storage("upsert"):
            current = self.db.get(
                self.model,
                {"id": entity.id, "owner_id": entity.owner_id},
                populate_existing=True,
                with_for_update=True,
            )
            if current is not None and current.sync_version > entity.sync_version:
                logger.warning(
                    f"Skipping stale {self.entity_type.value} write {entity.id}: "
                    f"v{entity.sync_version} < stored v{current.sync_version}"
                )
                self.db.rollback()
                return current
            if (
                current is not None
                and current.sync_version == entity.sync_version
                and not same_content(current, entity)
            ):
                logger.warning(
                    f"Skipping concurrent {self.entity_type.value} write {entity.id}: "
                    f"v{entity.sync_version} already stored with other content"
                )
                self.db.rollback()
                return current

            stored = self.db.merge(entity)
            self.db.commit()
            return stored

    def get_changes_since(self, owner_id: str, since: Optional[datetime]) -> list[T]:
        stmt = select(self.model).where(self.model.owner_id == owner_id)
        if since is not None:
            stmt = stmt.where(self.model.updated_at > as_utc(since))
        stmt = stmt.order_by(self.model.updated_at.asc(), self.model.id.asc())

        with self._storage("get_changes_since"):
            return list(self.db.scalars(stmt).all())

    def build(self, owner_id: str, fields: dict[str, Any]) -> T:
        """Transient instance (not added to the session) owned by owner_id."""
        values = {k: v for k, v in fields.items() if k != "owner_id"}
        return self.model(owner_id=owner_id, **values)

    # --- Server-side mutations ---

    def list_live(self, owner_id: str, limit: int = 100, offset: int = 0) -> list[T]:
        stmt = (
            select(self.model)
            .where(self.model.owner_id == owner_id, self.model.deleted_at.is_(None))
            .order_by(self.model.created_at.desc(), self.model.id)
            .limit(limit)
            .offset(offset)
        )
        with self._storage("list"):
            return list(self.db.scalars(stmt).all())

    def get_live(self, entity_id: str, owner_id: str) -> Optional[T]:
        entity = self.get_by_id_for_owner(entity_id, owner_id)
        if entity is None or entity.deleted_at is not None:
            return None
        return entity

    def create(self, owner_id: str, **fields: Any) -> T:
        now = utcnow()
        entity = self.build(owner_id, fields)
        entity.sync_version = 1
        entity.deleted_at = None
        entity.created_at = now
        entity.updated_at = now
        with self._storage("create"):
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def apply_changes(self, entity: T, changes: dict[str, Any]) -> T:
        """Apply payload changes as one accepted mutation (version +1)."""
        changed = False
        for field, value in changes.items():
            if field in SYNC_COLUMNS:
                continue
            if getattr(entity, field) != value:
                setattr(entity, field, value)
                changed = True

        if not changed:
            return entity

        entity.sync_version += 1
        entity.updated_at = utcnow()
        with self._storage("update"):
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def soft_delete(self, entity: T) -> T:
        """Tombstone the entity. Deleting a tombstone is a no-op."""
        if entity.deleted_at is not None:
            return entity

        now = utcnow()
        entity.deleted_at = now
        entity.updated_at = now
        entity.sync_version += 1
        with self._storage("delete"):
            self.db.commit()
            self.db.refresh(entity)
        return entity


class RecipeRepository(EntityRepository[Recipe]):
    model = Recipe
    entity_type = EntityType.RECIPE


class PantryRepository(EntityRepository[PantryItem]):
    model = PantryItem
    entity_type = EntityType.PANTRY_ITEM


class ShoppingListRepository(EntityRepository[ShoppingList]):
    model = ShoppingList
    entity_type = EntityType.SHOPPING_LIST


class ShoppingItemRepository(EntityRepository[ShoppingItem]):
    model = ShoppingItem
    entity_type = EntityType.SHOPPING_ITEM

    def list_live_for_list(self, owner_id: str, list_id: str) -> list[ShoppingItem]:
        stmt = (
            select(ShoppingItem)
            .where(
                ShoppingItem.owner_id == owner_id,
                ShoppingItem.list_id == list_id,
                ShoppingItem.deleted_at.is_(None),
            )
            .order_by(ShoppingItem.is_checked, ShoppingItem.created_at, ShoppingItem.id)
        )
        with self._storage("list_items"):
            return list(self.db.scalars(stmt).all())

    def soft_delete_for_list(self, owner_id: str, list_id: str) -> int:
        """Tombstone every live item of a list, each as its own mutation."""
        items = self.list_live_for_list(owner_id, list_id)
        for item in items:
            self.soft_delete(item)
        return len(items)
