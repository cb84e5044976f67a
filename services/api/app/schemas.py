"""Pydantic schemas for the DishFlow API.

The mobile clients speak camelCase JSON; fields are snake_case in Python and
aliased on the wire. Both spellings are accepted on input.

Request/response models for:
- Synced entities (recipes, pantry items, shopping lists, shopping items)
- The sync exchange (request, response, conflict records)
- Server-side create/update payloads for the CRUD routers
"""

from datetime import datetime, date
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .core.categories import normalize_category


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )


# --- Syncable entity base ---

class SyncableEntityIn(CamelModel):
    """Full representation of a synced entity, as devices send and receive it.

    owner_id is output-only: on input the owner always comes from the
    authenticated session. updated_at from a device is advisory; the server
    stamps its own.
    """
    id: str = Field(..., min_length=1, max_length=36)
    owner_id: Optional[str] = None
    sync_version: int = Field(1, ge=1)
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def entity_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"owner_id"})


# --- Recipe ---

class RecipeIngredient(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = Field(None, max_length=50)
    is_optional: bool = False
    notes: Optional[str] = None


class RecipeStep(CamelModel):
    step_number: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1)
    duration_seconds: Optional[int] = Field(None, ge=0)
    technique: Optional[str] = None
    temperature: Optional[str] = None


class RecipeFields(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1)
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    cuisine: Optional[str] = Field(None, max_length=80)
    thumbnail_url: Optional[str] = None
    source_type: Literal["manual", "video", "ai", "photo"] = "manual"
    source_url: Optional[str] = None
    source_metadata: Optional[dict[str, Any]] = None
    tags: list[str] = []
    is_favorite: bool = False
    ingredients: list[RecipeIngredient] = []
    steps: list[RecipeStep] = []

    @field_validator("tags", "ingredients", "steps", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v


class RecipeSync(RecipeFields, SyncableEntityIn):
    pass


class RecipeCreate(RecipeFields):
    id: Optional[str] = Field(None, min_length=1, max_length=36)


class RecipePatch(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    servings: Optional[int] = Field(None, ge=1)
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    difficulty: Optional[Literal["easy", "medium", "hard"]] = None
    cuisine: Optional[str] = Field(None, max_length=80)
    thumbnail_url: Optional[str] = None
    tags: Optional[list[str]] = None
    is_favorite: Optional[bool] = None
    ingredients: Optional[list[RecipeIngredient]] = None  # Replaces all ingredients if provided
    steps: Optional[list[RecipeStep]] = None  # Replaces all steps if provided


class FavoriteRequest(CamelModel):
    is_favorite: bool


# --- Pantry ---

class PantryItemFields(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str = "other"
    quantity: Optional[float] = Field(None, ge=0, le=99999.999)
    unit: Optional[str] = Field(None, max_length=50)
    expiration_date: Optional[date] = None

    @field_validator("category", mode="before")
    @classmethod
    def canonical_category(cls, v):
        return normalize_category(v)


class PantryItemSync(PantryItemFields, SyncableEntityIn):
    pass


class PantryItemCreate(PantryItemFields):
    id: Optional[str] = Field(None, min_length=1, max_length=36)


class PantryItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0, le=99999.999)
    unit: Optional[str] = Field(None, max_length=50)
    expiration_date: Optional[date] = None

    @field_validator("category")
    @classmethod
    def canonical_category(cls, v):
        return normalize_category(v) if v is not None else None


# --- Shopping lists ---

class ShoppingListFields(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    icon: Optional[str] = Field(None, max_length=50)
    is_template: bool = False
    is_archived: bool = False


class ShoppingListSync(ShoppingListFields, SyncableEntityIn):
    pass


class ShoppingListCreate(ShoppingListFields):
    id: Optional[str] = Field(None, min_length=1, max_length=36)


class ShoppingListUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    icon: Optional[str] = Field(None, max_length=50)
    is_template: Optional[bool] = None
    is_archived: Optional[bool] = None


# --- Shopping items ---

class ShoppingItemFields(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, ge=0, le=99999.999)
    unit: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = None
    is_checked: bool = False
    recipe_name: Optional[str] = Field(None, max_length=255)

    @field_validator("category")
    @classmethod
    def canonical_category(cls, v):
        # Items may be uncategorised; only a given category is normalised
        return normalize_category(v) if v else None


class ShoppingItemSync(ShoppingItemFields, SyncableEntityIn):
    list_id: str = Field(..., min_length=1, max_length=36)


class ShoppingItemCreate(ShoppingItemFields):
    id: Optional[str] = Field(None, min_length=1, max_length=36)


class ShoppingItemUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, ge=0, le=99999.999)
    unit: Optional[str] = Field(None, max_length=50)
    category: Optional[str] = None
    is_checked: Optional[bool] = None
    recipe_name: Optional[str] = Field(None, max_length=255)

    @field_validator("category")
    @classmethod
    def canonical_category(cls, v):
        return normalize_category(v) if v else None


class ShoppingListWithItems(ShoppingListSync):
    items: list[ShoppingItemSync] = []


# --- Sync exchange ---

class SyncRequest(CamelModel):
    last_sync_timestamp: Optional[datetime] = None  # None = full sync
    recipes: list[RecipeSync] = []
    pantry_items: list[PantryItemSync] = []
    shopping_lists: list[ShoppingListSync] = []
    shopping_items: list[ShoppingItemSync] = []

    def entity_count(self) -> int:
        return len(self.recipes) + len(self.pantry_items) + len(self.shopping_lists) + len(self.shopping_items)


class ConflictOut(CamelModel):
    entity_type: Literal["recipe", "pantry_item", "shopping_list", "shopping_item"]
    id: str
    resolution: Literal["client", "server"]
    server_version: int  # Stored version the submission was compared against
    client_version: int
    resolved_version: int  # Version the server holds after resolution
    reason: str


class RejectedOut(CamelModel):
    """A submitted entity the server refused to store (e.g. its shopping list is unknown)."""
    entity_type: Literal["recipe", "pantry_item", "shopping_list", "shopping_item"]
    id: str
    client_version: int
    reason: str


class SyncResponse(CamelModel):
    server_timestamp: datetime
    conflicts: list[ConflictOut] = []
    rejected: list[RejectedOut] = []
    recipes: list[RecipeSync] = []
    pantry_items: list[PantryItemSync] = []
    shopping_lists: list[ShoppingListSync] = []
    shopping_items: list[ShoppingItemSync] = []
