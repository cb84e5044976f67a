from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_owner
from ..models import generate_uuid
from ..repositories import PantryRepository

router = APIRouter()


@router.get("/", response_model=list[schemas.PantryItemSync])
def get_pantry_items(
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """List live pantry items, newest first."""
    return PantryRepository(db).list_live(owner.id, limit=limit, offset=offset)


@router.post("/", response_model=schemas.PantryItemSync, status_code=status.HTTP_201_CREATED)
def create_pantry_item(
    item_in: schemas.PantryItemCreate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Create a new pantry item."""
    repo = PantryRepository(db)
    fields = item_in.model_dump()
    fields["id"] = fields.get("id") or generate_uuid()

    if repo.get_by_id_for_owner(fields["id"], owner.id) is not None:
        raise HTTPException(status_code=409, detail="Pantry item already exists")

    return repo.create(owner.id, **fields)


@router.patch("/{item_id}", response_model=schemas.PantryItemSync)
def update_pantry_item(
    item_id: str,
    item_in: schemas.PantryItemUpdate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    repo = PantryRepository(db)
    item = repo.get_live(item_id, owner.id)
    if not item:
        raise HTTPException(status_code=404, detail="Pantry item not found")

    return repo.apply_changes(item, item_in.model_dump(exclude_unset=True))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pantry_item(
    item_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Soft-delete a pantry item. Deleting it again is a no-op."""
    repo = PantryRepository(db)
    item = repo.get_by_id_for_owner(item_id, owner.id)
    if not item:
        raise HTTPException(status_code=404, detail="Pantry item not found")

    repo.soft_delete(item)
