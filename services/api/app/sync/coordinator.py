"""Orchestrates one sync exchange for one owner.

Push first, pull second: every submitted entity is reconciled against storage
(recipes, then pantry items, then shopping lists, then shopping items, so a
list is accepted before the items that reference it), then the delta since
the device's cursor is read back. The delta therefore includes this call's
own writes.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .. import schemas
from ..repositories import (
    EntityRepository,
    RecipeRepository,
    PantryRepository,
    ShoppingListRepository,
    ShoppingItemRepository,
    utcnow,
)
from .entities import EntityType
from .errors import BatchTooLarge
from .resolver import ConflictRecord, ConflictResolver

logger = logging.getLogger("dishflow.sync")

WRITE_TICK = timedelta(microseconds=1)


@dataclass(frozen=True)
class Collection:
    entity_type: EntityType
    field: str  # attribute on SyncRequest / SyncResponse
    repo: EntityRepository
    out_schema: type[schemas.SyncableEntityIn]


class SyncCoordinator:
    def __init__(
        self,
        db: Session,
        resolver: Optional[ConflictResolver] = None,
        clock: Callable[[], datetime] = utcnow,
        max_entities: Optional[int] = None,
    ):
        self.recipes = RecipeRepository(db)
        self.pantry = PantryRepository(db)
        self.shopping_lists = ShoppingListRepository(db)
        self.shopping_items = ShoppingItemRepository(db)
        self.resolver = resolver or ConflictResolver()
        self.clock = clock
        self.max_entities = max_entities

        self.collections = (
            Collection(EntityType.RECIPE, "recipes", self.recipes, schemas.RecipeSync),
            Collection(EntityType.PANTRY_ITEM, "pantry_items", self.pantry, schemas.PantryItemSync),
            Collection(EntityType.SHOPPING_LIST, "shopping_lists", self.shopping_lists, schemas.ShoppingListSync),
            Collection(EntityType.SHOPPING_ITEM, "shopping_items", self.shopping_items, schemas.ShoppingItemSync),
        )

    def sync(self, owner_id: str, request: schemas.SyncRequest) -> schemas.SyncResponse:
        received = request.entity_count()
        if self.max_entities is not None and received > self.max_entities:
            raise BatchTooLarge(received, self.max_entities)

        server_timestamp = self.clock()
        conflicts: list[ConflictRecord] = []
        rejected: list[schemas.RejectedOut] = []
        stats: Counter = Counter()

        for collection in self.collections:
            for incoming in getattr(request, collection.field):
                self._push(owner_id, collection, incoming, server_timestamp, conflicts, rejected, stats)

        delta = {
            c.field: [
                c.out_schema.model_validate(entity)
                for entity in c.repo.get_changes_since(owner_id, request.last_sync_timestamp)
            ]
            for c in self.collections
        }

        logger.info(
            f"Sync for {owner_id}: received={received} written={stats['written']} "
            f"in_sync={stats['in_sync']} conflicts={len(conflicts)} rejected={len(rejected)} "
            f"delta={sum(len(v) for v in delta.values())} full={request.last_sync_timestamp is None}"
        )

        return schemas.SyncResponse(
            server_timestamp=server_timestamp,
            conflicts=[schemas.ConflictOut(**c.as_dict()) for c in conflicts],
            rejected=rejected,
            **delta,
        )

    def _stamp(self, server_timestamp: datetime) -> datetime:
        # Every write lands strictly after the timestamp handed back to the device
        return max(self.clock(), server_timestamp + WRITE_TICK)

    def _push(
        self,
        owner_id: str,
        collection: Collection,
        incoming: schemas.SyncableEntityIn,
        server_timestamp: datetime,
        conflicts: list[ConflictRecord],
        rejected: list[schemas.RejectedOut],
        stats: Counter,
    ) -> None:
        repo = collection.repo
        client = repo.build(owner_id, incoming.entity_fields())

        if collection.entity_type is EntityType.SHOPPING_ITEM and not self._list_exists(owner_id, client.list_id):
            logger.warning(f"Shopping item {client.id} skipped: list {client.list_id} not found for {owner_id}")
            rejected.append(
                schemas.RejectedOut(
                    entity_type=EntityType.SHOPPING_ITEM.value,
                    id=client.id,
                    client_version=client.sync_version,
                    reason="Parent shopping list not found",
                )
            )
            return

        server = repo.get_by_id_for_owner(client.id, owner_id)

        if server is None:
            stamp = self._stamp(server_timestamp)
            client.created_at = client.created_at or stamp
            client.updated_at = stamp
            repo.upsert(client)
            stats["written"] += 1
            return

        resolution = self.resolver.resolve(collection.entity_type, client, server)
        if resolution.conflict is not None:
            conflicts.append(resolution.conflict)
        else:
            stats["in_sync"] += 1

        if not resolution.write_back:
            return

        winner = resolution.winner
        record = repo.build(
            owner_id,
            {
                **winner.payload(),
                "id": server.id,
                "sync_version": resolution.version,
                "deleted_at": winner.deleted_at,
                "created_at": server.created_at,
                "updated_at": self._stamp(server_timestamp),
            },
        )
        repo.upsert(record)
        stats["written"] += 1

    def _list_exists(self, owner_id: str, list_id: str) -> bool:
        return self.shopping_lists.get_by_id_for_owner(list_id, owner_id) is not None
