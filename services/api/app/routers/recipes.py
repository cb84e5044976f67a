"""Recipe endpoints.

POST accepts a fully formed recipe document (manual entry or the extraction
pipeline); ingredients and steps are stored with the recipe and always
replaced as a whole.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_owner
from ..models import generate_uuid
from ..repositories import RecipeRepository

router = APIRouter()
logger = logging.getLogger("dishflow.recipes")


def _get_recipe_or_404(db: Session, recipe_id: str, owner_id: str) -> models.Recipe:
    recipe = RecipeRepository(db).get_live(recipe_id, owner_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.get("/recipes/", response_model=list[schemas.RecipeSync])
def list_recipes(
    favorites_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """List live recipes, newest first."""
    recipes = RecipeRepository(db).list_live(owner.id, limit=limit, offset=offset)
    if favorites_only:
        recipes = [r for r in recipes if r.is_favorite]
    return recipes


@router.post("/recipes/", response_model=schemas.RecipeSync, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_in: schemas.RecipeCreate,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    repo = RecipeRepository(db)
    fields = recipe_in.model_dump()
    fields["id"] = fields.get("id") or generate_uuid()

    if repo.get_by_id_for_owner(fields["id"], owner.id) is not None:
        raise HTTPException(status_code=409, detail="Recipe already exists")

    recipe = repo.create(owner.id, **fields)
    logger.info(f"Created recipe {recipe.id} ({recipe.source_type}) for {owner.id}")
    return recipe


@router.get("/recipes/{recipe_id}", response_model=schemas.RecipeSync)
def get_recipe(
    recipe_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    return _get_recipe_or_404(db, recipe_id, owner.id)


@router.patch("/recipes/{recipe_id}", response_model=schemas.RecipeSync)
def patch_recipe(
    recipe_id: str,
    patch: schemas.RecipePatch,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    """Partial update. Lists given here (tags, ingredients, steps) replace the stored ones."""
    recipe = _get_recipe_or_404(db, recipe_id, owner.id)
    return RecipeRepository(db).apply_changes(recipe, patch.model_dump(exclude_unset=True))


@router.post("/recipes/{recipe_id}/favorite", response_model=schemas.RecipeSync)
def set_favorite(
    recipe_id: str,
    body: schemas.FavoriteRequest,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    recipe = _get_recipe_or_404(db, recipe_id, owner.id)
    return RecipeRepository(db).apply_changes(recipe, {"is_favorite": body.is_favorite})


@router.delete("/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: str,
    owner: models.User = Depends(get_owner),
    db: Session = Depends(get_db),
):
    repo = RecipeRepository(db)
    recipe = repo.get_by_id_for_owner(recipe_id, owner.id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")

    repo.soft_delete(recipe)
