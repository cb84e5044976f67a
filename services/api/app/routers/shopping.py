"""Shopping lists and their items.

Server-side edits go through the same repositories as device sync, so each
change bumps sync_version and reaches every device on its next sync.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_owner
from ..models import generate_uuid
from ..repositories import ShoppingListRepository, ShoppingItemRepository

router = APIRouter()
logger = logging.getLogger("dishflow.shopping")


def _get_list_or_404(db: Session, list_id: str, owner_id: str) -> models.ShoppingList:
    shopping_list = ShoppingListRepository(db).get_live(list_id, owner_id)
    if not shopping_list:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return shopping_list


def _get_item_or_404(db: Session, list_id: str, item_id: str, owner_id: str) -> models.ShoppingItem:
    item = ShoppingItemRepository(db).get_live(item_id, owner_id)
    if not item or item.list_id != list_id:
        raise HTTPException(status_code=404, detail="Shopping item not found")
    return item


def _with_items(db: Session, shopping_list: models.ShoppingList) -> schemas.ShoppingListWithItems:
    items = ShoppingItemRepository(db).list_live_for_list(shopping_list.owner_id, shopping_list.id)
    out = schemas.ShoppingListWithItems.model_validate(shopping_list)
    out.items = [schemas.ShoppingItemSync.model_validate(i) for i in items]
    return out


# --- Lists ---

@router.get("/", response_model=list[schemas.ShoppingListSync])
def list_shopping_lists(
    include_archived: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    lists = ShoppingListRepository(db).list_live(owner.id, limit=limit, offset=offset)
    if not include_archived:
        lists = [sl for sl in lists if not sl.is_archived]
    return lists


@router.post("/", response_model=schemas.ShoppingListWithItems, status_code=status.HTTP_201_CREATED)
def create_shopping_list(
    list_in: schemas.ShoppingListCreate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    repo = ShoppingListRepository(db)
    fields = list_in.model_dump()
    fields["id"] = fields.get("id") or generate_uuid()

    if repo.get_by_id_for_owner(fields["id"], owner.id) is not None:
        raise HTTPException(status_code=409, detail="Shopping list already exists")

    shopping_list = repo.create(owner.id, **fields)
    return _with_items(db, shopping_list)


@router.get("/{list_id}", response_model=schemas.ShoppingListWithItems)
def get_shopping_list(
    list_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    return _with_items(db, _get_list_or_404(db, list_id, owner.id))


@router.patch("/{list_id}", response_model=schemas.ShoppingListWithItems)
def update_shopping_list(
    list_id: str,
    list_in: schemas.ShoppingListUpdate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    shopping_list = _get_list_or_404(db, list_id, owner.id)
    shopping_list = ShoppingListRepository(db).apply_changes(shopping_list, list_in.model_dump(exclude_unset=True))
    return _with_items(db, shopping_list)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shopping_list(
    list_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Soft-delete a list and every live item on it."""
    repo = ShoppingListRepository(db)
    shopping_list = repo.get_by_id_for_owner(list_id, owner.id)
    if not shopping_list:
        raise HTTPException(status_code=404, detail="Shopping list not found")

    removed = ShoppingItemRepository(db).soft_delete_for_list(owner.id, list_id)
    repo.soft_delete(shopping_list)
    logger.info(f"Deleted shopping list {list_id} with {removed} items for {owner.id}")


# --- Items ---

@router.post("/{list_id}/items", response_model=schemas.ShoppingItemSync, status_code=status.HTTP_201_CREATED)
def add_shopping_item(
    list_id: str,
    item_in: schemas.ShoppingItemCreate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    _get_list_or_404(db, list_id, owner.id)

    repo = ShoppingItemRepository(db)
    fields = item_in.model_dump()
    fields["id"] = fields.get("id") or generate_uuid()

    if repo.get_by_id_for_owner(fields["id"], owner.id) is not None:
        raise HTTPException(status_code=409, detail="Shopping item already exists")

    return repo.create(owner.id, list_id=list_id, **fields)


@router.patch("/{list_id}/items/{item_id}", response_model=schemas.ShoppingItemSync)
def update_shopping_item(
    list_id: str,
    item_id: str,
    item_in: schemas.ShoppingItemUpdate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    item = _get_item_or_404(db, list_id, item_id, owner.id)
    return ShoppingItemRepository(db).apply_changes(item, item_in.model_dump(exclude_unset=True))


@router.post("/{list_id}/items/{item_id}/toggle", response_model=schemas.ShoppingItemSync)
def toggle_shopping_item(
    list_id: str,
    item_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    item = _get_item_or_404(db, list_id, item_id, owner.id)
    return ShoppingItemRepository(db).apply_changes(item, {"is_checked": not item.is_checked})


@router.delete("/{list_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shopping_item(
    list_id: str,
    item_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    repo = ShoppingItemRepository(db)
    item = repo.get_by_id_for_owner(item_id, owner.id)
    if not item or item.list_id != list_id:
        raise HTTPException(status_code=404, detail="Shopping item not found")

    repo.soft_delete(item)
