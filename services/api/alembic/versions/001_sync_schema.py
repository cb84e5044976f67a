"""Sync schema: users, recipes, pantry_items, shopping_lists, shopping_items

Revision ID: 001_sync_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_sync_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_DOC = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _sync_columns() -> list[sa.Column]:
    """Identity, ownership, version and tombstone columns of every synced table."""
    return [
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("sync_version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "recipes",
        *_sync_columns(),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("servings", sa.Integer, nullable=True),
        sa.Column("prep_time", sa.Integer, nullable=True),
        sa.Column("cook_time", sa.Integer, nullable=True),
        sa.Column("difficulty", sa.String(20), nullable=True),
        sa.Column("cuisine", sa.String(80), nullable=True),
        sa.Column("thumbnail_url", sa.Text, nullable=True),
        sa.Column("source_type", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("source_url", sa.Text, nullable=True),
        sa.Column("source_metadata", JSON_DOC, nullable=True),
        sa.Column("tags", JSON_DOC, nullable=True),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("ingredients", JSON_DOC, nullable=True),
        sa.Column("steps", JSON_DOC, nullable=True),
    )
    op.create_index("ix_recipes_owner_updated_at", "recipes", ["owner_id", "updated_at"])

    op.create_table(
        "pantry_items",
        *_sync_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="other"),
        sa.Column("quantity", sa.Float, nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("expiration_date", sa.Date, nullable=True),
    )
    op.create_index("ix_pantry_items_owner_updated_at", "pantry_items", ["owner_id", "updated_at"])

    op.create_table(
        "shopping_lists",
        *_sync_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("icon", sa.String(50), nullable=True),
        sa.Column("is_template", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_archived", sa.Boolean, nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_shopping_lists_owner_updated_at", "shopping_lists", ["owner_id", "updated_at"])

    op.create_table(
        "shopping_items",
        *_sync_columns(),
        sa.Column("list_id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Float, nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("is_checked", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("recipe_name", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(
            ["list_id", "owner_id"],
            ["shopping_lists.id", "shopping_lists.owner_id"],
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_shopping_items_owner_updated_at", "shopping_items", ["owner_id", "updated_at"])
    op.create_index("ix_shopping_items_list_id", "shopping_items", ["owner_id", "list_id"])


def downgrade() -> None:
    op.drop_index("ix_shopping_items_list_id", table_name="shopping_items")
    op.drop_index("ix_shopping_items_owner_updated_at", table_name="shopping_items")
    op.drop_table("shopping_items")
    op.drop_index("ix_shopping_lists_owner_updated_at", table_name="shopping_lists")
    op.drop_table("shopping_lists")
    op.drop_index("ix_pantry_items_owner_updated_at", table_name="pantry_items")
    op.drop_table("pantry_items")
    op.drop_index("ix_recipes_owner_updated_at", table_name="recipes")
    op.drop_table("recipes")
    op.drop_table("users")
