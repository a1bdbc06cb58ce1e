import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.models.categories import Category
from app.models.events import Event
from app.schemas.categories import CategoryIn, CategoryOut

logger = logging.getLogger(__name__)


def get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFoundError(f"Category with id={category_id} was not found")
    return category


def _name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Category.id).where(Category.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    return db.scalar(stmt) is not None


def add_category(db: Session, payload: CategoryIn) -> CategoryOut:
    logger.info("Adding new category: %s", payload.name)

    if _name_taken(db, payload.name):
        raise ConflictError(f"Category with name '{payload.name}' already exists")

    category = Category(name=payload.name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return CategoryOut.model_validate(category)


def update_category(db: Session, category_id: int, payload: CategoryIn) -> CategoryOut:
    logger.info("Updating category id: %s", category_id)

    category = get_category(db, category_id)
    if _name_taken(db, payload.name, exclude_id=category_id):
        raise ConflictError(f"Category with name '{payload.name}' already exists")

    category.name = payload.name
    db.commit()
    db.refresh(category)
    return CategoryOut.model_validate(category)


def delete_category(db: Session, category_id: int) -> None:
    logger.info("Deleting category id: %s", category_id)

    category = get_category(db, category_id)
    if db.scalar(select(Event.id).where(Event.category_id == category_id).limit(1)) is not None:
        raise ConflictError("The category is not empty")

    db.delete(category)
    db.commit()


def get_categories(db: Session, from_: int, size: int) -> list[CategoryOut]:
    stmt = select(Category).order_by(Category.id).offset((from_ // size) * size).limit(size)
    return [CategoryOut.model_validate(category) for category in db.scalars(stmt)]
