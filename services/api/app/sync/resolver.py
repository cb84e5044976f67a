"""Conflict resolution between a client-submitted entity and the stored copy.

Decision order (first match wins):

1. in_sync         - same content on both sides: nothing to do, nothing to report
2. tombstone       - exactly one side is deleted: the deleted side wins
3. higher_version  - versions differ: the strictly higher sync_version wins
4. server_default  - equal versions, different payload: the server wins

Rules 2-4 always produce a conflict record. Resolution always picks one whole
entity; fields of the two copies are never merged.

The resolver never touches storage. It returns what the coordinator should
write back, if anything, and the version that write must carry. The server is
the only party that mints version numbers: ``server.sync_version + 1`` when the
client wins, and one above the client's version when the server's copy has
to be re-sent over a device that is level with or ahead of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from .entities import EntityType, SyncableEntity, is_deleted, same_content

logger = logging.getLogger("dishflow.sync.resolver")

Side = Literal["client", "server"]
Rule = Literal["in_sync", "tombstone", "higher_version", "server_default"]


@dataclass(frozen=True)
class ConflictRecord:
    entity_type: EntityType
    id: str
    resolution: Side
    server_version: int  # stored version the client was compared against
    client_version: int
    resolved_version: int  # version the server holds once resolution is applied
    reason: str

    def as_dict(self) -> dict:
        return {
            "entity_type": self.entity_type.value,
            "id": self.id,
            "resolution": self.resolution,
            "server_version": self.server_version,
            "client_version": self.client_version,
            "resolved_version": self.resolved_version,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Resolution:
    """Outcome of comparing one client entity with its stored counterpart.

    ``winner`` is the entity whose content is authoritative. ``write_back`` is
    True when the winner has to be (re)persisted at ``version``.
    """
    rule: Rule
    winner: SyncableEntity
    winning_side: Optional[Side]
    version: int
    write_back: bool
    conflict: Optional[ConflictRecord]


class ConflictResolver:
    """Version-arbitrated, tombstone-first resolver (see module docstring)."""

    def resolve(
        self,
        entity_type: EntityType,
        client: SyncableEntity,
        server: SyncableEntity,
    ) -> Resolution:
        if same_content(client, server):
            return Resolution(
                rule="in_sync",
                winner=server,
                winning_side=None,
                version=server.sync_version,
                write_back=False,
                conflict=None,
            )

        client_deleted = is_deleted(client)
        server_deleted = is_deleted(server)

        if client_deleted != server_deleted:
            rule: Rule = "tombstone"
            side: Side = "client" if client_deleted else "server"
            reason = (
                "Deleted on this device; the delete takes precedence"
                if client_deleted
                else "Deleted on another device; the delete takes precedence"
            )
        elif client.sync_version != server.sync_version:
            rule = "higher_version"
            side = "client" if client.sync_version > server.sync_version else "server"
            reason = "Client version is newer" if side == "client" else "Server version is newer"
        else:
            rule = "server_default"
            side = "server"
            reason = "Concurrent edit of the same version; server version preserved"

        if side == "client":
            winner = client
            write_back = True
            version = server.sync_version + 1
        else:
            winner = server
            # The winning copy must end up strictly above the version the device holds.
            write_back = client.sync_version >= server.sync_version
            version = client.sync_version + 1 if write_back else server.sync_version

        conflict = ConflictRecord(
            entity_type=entity_type,
            id=server.id,
            resolution=side,
            server_version=server.sync_version,
            client_version=client.sync_version,
            resolved_version=version,
            reason=reason,
        )
        logger.debug(
            f"{entity_type.value} {server.id}: {rule} -> {side} wins "
            f"(client v{client.sync_version}, server v{server.sync_version}, stored v{version})"
        )
        return Resolution(
            rule=rule,
            winner=winner,
            winning_side=side,
            version=version,
            write_back=write_back,
            conflict=conflict,
        )
