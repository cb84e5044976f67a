"""SQLAlchemy ORM models for DishFlow.

Tables:
- users: Owner anchor for multi-tenant isolation (provisioned by the identity service)
- recipes: Recipe documents (ingredients and steps embedded as JSON)
- pantry_items: Pantry inventory
- shopping_lists / shopping_items: Shopping lists and their items

Every synced table carries the SyncableMixin columns and is keyed by
(owner_id, id): ids are generated on devices, so the owner is part of the
storage identity.
"""

from __future__ import annotations

import uuid
from datetime import datetime, date
from typing import Any, Optional

from sqlalchemy import (
    String,
    Text,
    Integer,
    Boolean,
    Float,
    Date,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func, false

from .db import Base
from .orm_types import JSONDocument, UTCDateTime


def generate_uuid() -> str:
    return str(uuid.uuid4())


# Columns owned by the sync engine; everything else on a synced table is payload.
SYNC_COLUMNS = frozenset({"id", "owner_id", "sync_version", "deleted_at", "created_at", "updated_at"})


class User(Base):
    """Owner of synced data.

    Rows are created by the identity service; the API only resolves them.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now()
    )


class SyncableMixin:
    """Identity, ownership, version and tombstone columns shared by synced tables."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    sync_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    @classmethod
    def payload_columns(cls) -> list[str]:
        return [c.key for c in cls.__table__.columns if c.key not in SYNC_COLUMNS]

    def payload(self) -> dict[str, Any]:
        """Type-specific fields, used to decide whether two copies hold the same content."""
        return {name: getattr(self, name) for name in self.payload_columns()}

    def __repr__(self) -> str:
        state = "deleted" if self.deleted_at is not None else "live"
        return f"<{type(self).__name__} {self.id} v{self.sync_version} {state}>"


class Recipe(SyncableMixin, Base):
    """Recipe document. Ingredients and steps travel with the recipe as a whole."""
    __tablename__ = "recipes"
    __table_args__ = (
        Index("ix_recipes_owner_updated_at", "owner_id", "updated_at"),
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    prep_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    cook_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    difficulty: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # easy | medium | hard
    cuisine: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Source: manual | video | ai | photo
    source_type: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_metadata: Mapped[Optional[dict]] = mapped_column(JSONDocument, nullable=True)

    tags: Mapped[Optional[list]] = mapped_column(JSONDocument, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    ingredients: Mapped[Optional[list]] = mapped_column(JSONDocument, nullable=True)
    steps: Mapped[Optional[list]] = mapped_column(JSONDocument, nullable=True)


class PantryItem(SyncableMixin, Base):
    """Pantry item for inventory management."""
    __tablename__ = "pantry_items"
    __table_args__ = (
        Index("ix_pantry_items_owner_updated_at", "owner_id", "updated_at"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    expiration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class ShoppingList(SyncableMixin, Base):
    """Shopping list container."""
    __tablename__ = "shopping_lists"
    __table_args__ = (
        Index("ix_shopping_lists_owner_updated_at", "owner_id", "updated_at"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())


class ShoppingItem(SyncableMixin, Base):
    """Item in a shopping list. The list is a plain foreign key within the same owner."""
    __tablename__ = "shopping_items"
    __table_args__ = (
        ForeignKeyConstraint(
            ["list_id", "owner_id"],
            ["shopping_lists.id", "shopping_lists.owner_id"],
            ondelete="CASCADE",
        ),
        Index("ix_shopping_items_owner_updated_at", "owner_id", "updated_at"),
        Index("ix_shopping_items_list_id", "owner_id", "list_id"),
    )

    list_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_checked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    recipe_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
