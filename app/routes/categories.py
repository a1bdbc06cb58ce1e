from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database.db import get_db
from app.schemas.categories import CategoryOut
from app.services.categories import get_categories, get_category

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, gt=0),
    db: Session = Depends(get_db),
):
    return get_categories(db, from_, size)


@router.get("/{category_id}", response_model=CategoryOut)
def read_category(category_id: int, db: Session = Depends(get_db)):
    return CategoryOut.model_validate(get_category(db, category_id))
