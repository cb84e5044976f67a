"""The capability every synced entity type shares.

The coordinator and resolver only ever see entities through this contract,
so the four concrete types (recipes, pantry items, shopping lists, shopping
items) are handled by one code path.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


class EntityType(str, Enum):
    RECIPE = "recipe"
    PANTRY_ITEM = "pantry_item"
    SHOPPING_LIST = "shopping_list"
    SHOPPING_ITEM = "shopping_item"


@runtime_checkable
class SyncableEntity(Protocol):
    id: str
    owner_id: str
    sync_version: int
    deleted_at: Optional[datetime]
    updated_at: datetime

    def payload(self) -> dict[str, Any]:
        ...


def is_deleted(entity: SyncableEntity) -> bool:
    return entity.deleted_at is not None


def same_content(a: SyncableEntity, b: SyncableEntity) -> bool:
    """Equal payload and equal deleted-state.

    The exact tombstone instant is not compared: two devices deleting the same
    entity independently hold the same content.
    """
    return is_deleted(a) == is_deleted(b) and a.payload() == b.payload()
