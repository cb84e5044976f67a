"""FastAPI dependencies for the DishFlow API.

Provides:
- Database session dependency
- Owner resolution from the X-User-Id header (set by the authenticating gateway)
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .db import get_db
from .models import User


def get_owner(
    db: Session = Depends(get_db),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> User:
    """Resolve the calling user.

    Raises:
        HTTPException 401 if the header is missing or names no known user
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    owner = db.get(User, x_user_id.strip())
    if owner is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return owner
